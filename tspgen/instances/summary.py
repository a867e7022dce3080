"""
tspgen/instances/summary.py

Tabular views of a generated instance, used to check how clustered it
actually came out.

 - cities_frame(instance): one row per city with its offset from its centroid.
 - cluster_summary(instance): one row per centroid with size and spread.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from tspgen.instances.instance import Instance

_CITY_COLUMNS = ["index", "x", "y", "centroid", "dx", "dy", "offset", "in_bounds"]
_CLUSTER_COLUMNS = ["centroid", "x", "y", "size", "mean_offset", "max_offset", "std_dx", "std_dy", "out_of_bounds"]


def cities_frame(instance: Instance) -> pd.DataFrame:
    rows = []
    width = float(instance.params.max_width)
    for i, city in enumerate(instance.cities):
        anchor = instance.centroids[city.centroid]
        dx = city.x - anchor.x
        dy = city.y - anchor.y
        rows.append({
            "index": i,
            "x": city.x,
            "y": city.y,
            "centroid": city.centroid,
            "dx": dx,
            "dy": dy,
            "offset": float(np.hypot(dx, dy)),
            "in_bounds": bool(0.0 <= city.x < width and 0.0 <= city.y < width),
        })
    return pd.DataFrame(rows, columns=_CITY_COLUMNS)


def cluster_summary(instance: Instance) -> pd.DataFrame:
    """
    Aggregate cities_frame() per centroid. Centroids without any city keep a
    row with size 0 and NaN statistics.
    """
    df = cities_frame(instance)
    rows = []
    for k, centroid in enumerate(instance.centroids):
        members = df[df["centroid"] == k]
        size = int(len(members))
        rows.append({
            "centroid": k,
            "x": centroid.x,
            "y": centroid.y,
            "size": size,
            "mean_offset": float(members["offset"].mean()) if size else float("nan"),
            "max_offset": float(members["offset"].max()) if size else float("nan"),
            # population std: a cluster of one city has zero spread
            "std_dx": float(members["dx"].std(ddof=0)) if size else float("nan"),
            "std_dy": float(members["dy"].std(ddof=0)) if size else float("nan"),
            "out_of_bounds": size - int(members["in_bounds"].astype(bool).sum()),
        })
    return pd.DataFrame(rows, columns=_CLUSTER_COLUMNS)
