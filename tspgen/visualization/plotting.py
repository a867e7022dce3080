"""
tspgen/visualization/plotting.py

Static PNG rendering of an instance with matplotlib: cities coloured by
cluster, centroids as crosses, the map square, and an optional route.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from tspgen.instances.instance import Instance  # noqa: E402
from tspgen.visualization.renderer import check_route, route_path, route_summary  # noqa: E402


def plot_instance(
    instance: Instance,
    path: Union[str, Path],
    route: Optional[Sequence[int]] = None,
    close_tour: bool = False,
    speed: float = 50.0,
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    width = float(instance.params.max_width)
    cmap = plt.get_cmap("tab10")

    fig, ax = plt.subplots(figsize=(7, 7))
    ax.add_patch(plt.Rectangle((0.0, 0.0), width, width, fill=False, edgecolor="#999999", linewidth=1))

    if route is not None:
        order = route_path(check_route(instance, route), close_tour)
        ax.plot(
            [instance.cities[i].x for i in order],
            [instance.cities[i].y for i in order],
            color="red", linewidth=1, zorder=1,
        )
        summary = route_summary(instance, route, speed=speed, close_tour=close_tour)
        ax.set_title(f"{instance.id} - route length {summary.distance:.2f}")
    else:
        ax.set_title(instance.id)

    for k in range(instance.nb_centroids):
        members = [c for c in instance.cities if c.centroid == k]
        ax.scatter([c.x for c in members], [c.y for c in members], s=12, color=cmap(k % 10), zorder=2)
    ax.scatter(
        [c.x for c in instance.centroids],
        [c.y for c in instance.centroids],
        marker="x", s=60, color="black", zorder=3,
    )

    ax.set_aspect("equal")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path
