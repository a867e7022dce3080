## tests/test_visualization.py

"""
Tests of the map renderer (folium HTML) and of the static matplotlib plot.
The HTML is only checked for the layers it must contain.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tspgen.errors import InvalidConfiguration, InvalidRouteError
from tspgen.instances.instance import Instance
from tspgen.visualization.plotting import plot_instance
from tspgen.visualization.renderer import format_duration, parse_route, render, route_summary


def test_parse_route():
    assert parse_route("0 3  1\n2") == [0, 3, 1, 2]
    assert parse_route("") == []


def test_parse_route_rejects_tokens():
    with pytest.raises(InvalidRouteError):
        parse_route("0 a 2")


def test_route_summary_open_path(triangle_instance: Instance):
    summary = route_summary(triangle_instance, [0, 1, 2], speed=7.0)
    assert summary.distance == pytest.approx(7.0)
    assert summary.duration_s == pytest.approx(3600.0)
    assert summary.legs == 2


def test_route_summary_closed_tour(triangle_instance: Instance):
    summary = route_summary(triangle_instance, [0, 1, 2], speed=6.0, close_tour=True)
    assert summary.distance == pytest.approx(12.0)
    assert summary.duration_s == pytest.approx(7200.0)
    assert summary.legs == 3


def test_route_summary_single_stop(triangle_instance: Instance):
    summary = route_summary(triangle_instance, [1], close_tour=True)
    assert summary.distance == 0.0
    assert summary.legs == 0


def test_route_summary_rejects_unknown_city(triangle_instance: Instance):
    with pytest.raises(InvalidRouteError):
        route_summary(triangle_instance, [0, 3])
    with pytest.raises(InvalidRouteError):
        route_summary(triangle_instance, [-1, 0])


def test_route_summary_rejects_bad_speed(triangle_instance: Instance):
    with pytest.raises(InvalidConfiguration):
        route_summary(triangle_instance, [0, 1], speed=0.0)


def test_format_duration():
    assert format_duration(3725.9) == "1 hours 2 minutes 5 seconds"
    assert format_duration(0) == "0 hours 0 minutes 0 seconds"


def test_render_instance_only(small_instance: Instance):
    html = render(small_instance)
    assert "<html" in html.lower()
    assert "L.CRS.Simple" in html
    assert "L.circleMarker" in html
    assert "L.polyline" not in html


def test_render_with_route(triangle_instance: Instance):
    html = render(triangle_instance, [0, 1, 2], speed=7.0)
    assert "L.polyline" in html
    assert "7.00 units" in html
    assert "1 hours 0 minutes 0 seconds" in html


def test_render_closed_tour_from_config(triangle_instance: Instance):
    html = render(triangle_instance, [0, 1, 2], config={"visualization": {"close_tour": True, "speed": 12.0}})
    assert "12.00 units" in html
    assert "1 hours 0 minutes 0 seconds" in html


def test_render_hides_centroids(triangle_instance: Instance):
    shown = render(triangle_instance)
    hidden = render(triangle_instance, show_centroids=False)
    assert "centroid 0" in shown
    assert "centroid 0" not in hidden


def test_render_empty_instance():
    from tspgen.generation.generator import generate

    html = render(generate(0, 0, 100.0, 1.0, seed=1))
    assert "L.CRS.Simple" in html


def test_render_rejects_bad_route(triangle_instance: Instance):
    with pytest.raises(InvalidRouteError):
        render(triangle_instance, [0, 9])


def test_plot_instance(tmp_path: Path, small_instance: Instance):
    out = plot_instance(small_instance, tmp_path / "plots" / "instance.png", route=list(range(12)), close_tour=True)
    assert out.exists()
    assert out.read_bytes()[:4] == b"\x89PNG"


def test_plot_instance_without_route(tmp_path: Path, small_instance: Instance):
    out = plot_instance(small_instance, tmp_path / "instance.png")
    assert out.read_bytes()[:4] == b"\x89PNG"
