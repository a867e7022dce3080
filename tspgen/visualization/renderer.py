"""
Interactive HTML map of an instance and, optionally, of a route through it.

The map is a folium (Leaflet) page on the planar "Simple" CRS: no tiles, one
map unit per pixel at zoom 0, y up. Layers:
 - the map square [0, max_width)^2,
 - one circle marker per city (tooltip: index and cluster),
 - one marker per centroid (optional),
 - the route as a polyline whose popup gives the total distance and the total
   duration at the configured speed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import folium

from tspgen.errors import InvalidConfiguration, InvalidRouteError
from tspgen.instances.instance import Instance

_logger = logging.getLogger(__name__)

_DEFAULTS: Dict[str, Any] = {
    "speed": 50.0,
    "close_tour": False,
    "show_centroids": True,
    "city_color": "#3366ff",
    "centroid_color": "#583470",
    "route_color": "red",
}


@dataclass
class RouteSummary:
    """Totals of a route; distance in map units, duration in seconds."""

    distance: float
    duration_s: float
    legs: int


def parse_route(text: str) -> List[int]:
    """Parse whitespace separated city indices, e.g. "0 3 1 2"."""
    route = []
    for tok in text.split():
        try:
            route.append(int(tok))
        except ValueError:
            raise InvalidRouteError(f"route token {tok!r} is not a city index")
    return route


def check_route(instance: Instance, route: Sequence[int]) -> List[int]:
    n = instance.nb_cities
    bad = [i for i in route if not (0 <= int(i) < n)]
    if bad:
        raise InvalidRouteError(f"route refers to unknown cities {bad[:10]} (instance has {n} cities)")
    return [int(i) for i in route]


def route_path(route: Sequence[int], close_tour: bool) -> List[int]:
    path = list(route)
    if close_tour and len(path) > 1 and path[0] != path[-1]:
        path.append(path[0])
    return path


def route_summary(instance: Instance, route: Sequence[int], speed: float = 50.0, close_tour: bool = False) -> RouteSummary:
    """
    Total Euclidean length of the route in visiting order, and the time it
    takes at `speed` map units per hour. With close_tour, the leg back to the
    first city is included.
    """
    if not (speed > 0):
        raise InvalidConfiguration(f"speed must be positive, got {speed!r}")
    path = route_path(check_route(instance, route), close_tour)
    distance = 0.0
    for a, b in zip(path, path[1:]):
        ca, cb = instance.cities[a], instance.cities[b]
        distance += math.hypot(cb.x - ca.x, cb.y - ca.y)
    return RouteSummary(distance=distance, duration_s=distance / float(speed) * 3600.0, legs=max(len(path) - 1, 0))


def format_duration(seconds: float) -> str:
    hours, rest = divmod(int(math.floor(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours} hours {minutes} minutes {secs} seconds"


def _bounds(instance: Instance) -> List[List[float]]:
    # [[south, west], [north, east]]; y plays latitude on the Simple CRS
    width = float(instance.params.max_width)
    xs = [0.0, width] + [c.x for c in instance.cities]
    ys = [0.0, width] + [c.y for c in instance.cities]
    return [[min(ys), min(xs)], [max(ys), max(xs)]]


def render(
    instance: Instance,
    route: Optional[Sequence[int]] = None,
    config: Optional[Dict[str, Any]] = None,
    **options: Any,
) -> str:
    """
    Return a self-contained HTML page showing the instance and the route.

    Options (keyword arguments override config["visualization"]):
      speed, close_tour, show_centroids, city_color, centroid_color, route_color
    """
    opts = dict(_DEFAULTS)
    opts.update((config or {}).get("visualization", {}) or {})
    opts.update({k: v for k, v in options.items() if v is not None})

    width = float(instance.params.max_width)
    mapa = folium.Map(
        location=[width / 2.0, width / 2.0],
        zoom_start=0,
        crs="Simple",
        tiles=None,
        min_zoom=-10,
        max_zoom=10,
    )

    folium.Rectangle(
        bounds=[[0.0, 0.0], [width, width]],
        color="#999999",
        weight=1,
        fill=False,
        tooltip=f"map [0, {width:g})²",
    ).add_to(mapa)

    cities_layer = folium.FeatureGroup(name=f"cities ({instance.nb_cities})")
    for i, city in enumerate(instance.cities):
        folium.CircleMarker(
            location=(city.y, city.x),
            radius=4,
            color=opts["city_color"],
            fill=True,
            fill_opacity=0.9,
            tooltip=f"city {i} (cluster {city.centroid}) x={city.x:.2f} y={city.y:.2f}",
        ).add_to(cities_layer)
    cities_layer.add_to(mapa)

    if opts["show_centroids"]:
        centroids_layer = folium.FeatureGroup(name=f"centroids ({instance.nb_centroids})")
        for k, centroid in enumerate(instance.centroids):
            folium.CircleMarker(
                location=(centroid.y, centroid.x),
                radius=7,
                color=opts["centroid_color"],
                weight=3,
                fill=False,
                tooltip=f"centroid {k} x={centroid.x:.2f} y={centroid.y:.2f}",
            ).add_to(centroids_layer)
        centroids_layer.add_to(mapa)

    if route is not None:
        summary = route_summary(instance, route, speed=float(opts["speed"]), close_tour=bool(opts["close_tour"]))
        path = route_path([int(i) for i in route], bool(opts["close_tour"]))
        popup_html = (
            f'<div style="font-weight: bold; font-size: 15px;">{summary.distance:.2f} units</div>'
            f"{format_duration(summary.duration_s)}"
        )
        if len(path) > 1:
            folium.PolyLine(
                locations=[(instance.cities[i].y, instance.cities[i].x) for i in path],
                color=opts["route_color"],
                weight=3,
                opacity=0.8,
                popup=folium.Popup(popup_html, max_width=300),
            ).add_to(mapa)
        else:
            _logger.warning("route with %d stop(s) has no leg to draw", len(path))
        _logger.info("route over %d legs: %.2f units, %s", summary.legs, summary.distance, format_duration(summary.duration_s))

    folium.LayerControl().add_to(mapa)
    mapa.fit_bounds(_bounds(instance))
    return mapa.get_root().render()
