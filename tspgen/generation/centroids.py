"""
tspgen/generation/centroids.py

Placement of the cluster anchors on the square map [0, max_width)^2.
"""

from __future__ import annotations

import logging
from typing import List

from tspgen.generation.random_source import RandomSource
from tspgen.instances.instance import Centroid

_logger = logging.getLogger(__name__)


def place_centroids(n: int, max_width: float, rng: RandomSource) -> List[Centroid]:
    """
    Return exactly n centroids drawn uniformly on the map.

    Each centroid consumes two draws, x then y, so the sequence is fully
    determined by the state of rng. Collisions are not deduplicated and
    n == 0 yields an empty list.
    """
    centroids: List[Centroid] = []
    for _ in range(n):
        x = rng.uniform(0.0, max_width)
        y = rng.uniform(0.0, max_width)
        centroids.append(Centroid(x=x, y=y))
    _logger.debug("placed %d centroids on a %.3f wide map", len(centroids), max_width)
    return centroids
