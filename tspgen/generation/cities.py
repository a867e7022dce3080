"""
tspgen/generation/cities.py

City sampler: anchors every city to one centroid and perturbs it with an
isotropic Gaussian offset.

Assignment policies (both deterministic, neither consumes random draws):
 - "round_robin": city i is anchored to centroid i mod c. This is the default;
   cluster sizes differ by at most one and interleave along the city index.
 - "block": contiguous blocks of n // c cities per centroid, the first n % c
   centroids receiving one extra city. Cluster sizes are the same as with
   round_robin but the cities of one cluster are consecutive.

Offsets are drawn in city index order, dx then dy, so for a given seed the
policy changes which centroid a city belongs to but not the offsets drawn.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from tspgen.errors import InvalidConfiguration
from tspgen.generation.random_source import RandomSource
from tspgen.instances.instance import ASSIGNMENT_POLICIES, ROUND_ROBIN, Centroid, City

_logger = logging.getLogger(__name__)


def assign_centroids(n: int, nb_centroids: int, policy: str = ROUND_ROBIN) -> List[int]:
    """Return, for each of the n cities, the index of its anchoring centroid."""
    if policy not in ASSIGNMENT_POLICIES:
        raise InvalidConfiguration(
            f"unknown assignment policy {policy!r}; expected one of {list(ASSIGNMENT_POLICIES)}"
        )
    if n == 0:
        return []
    if nb_centroids <= 0:
        raise InvalidConfiguration(f"cannot anchor {n} cities without any centroid")

    if policy == ROUND_ROBIN:
        return [i % nb_centroids for i in range(n)]

    base, extra = divmod(n, nb_centroids)
    assignment: List[int] = []
    for k in range(nb_centroids):
        assignment.extend([k] * (base + (1 if k < extra else 0)))
    return assignment


def sample_cities(
    n: int,
    centroids: Sequence[Centroid],
    std_dev: float,
    rng: RandomSource,
    assignment: str = ROUND_ROBIN,
) -> List[City]:
    """
    Return exactly n cities, each at its centroid plus (dx, dy) with
    dx, dy ~ Normal(0, std_dev) drawn independently.

    Raises InvalidConfiguration when n > 0 and centroids is empty.
    """
    anchors = assign_centroids(n, len(centroids), assignment)
    cities: List[City] = []
    for k in anchors:
        centroid = centroids[k]
        dx = rng.gaussian(0.0, std_dev)
        dy = rng.gaussian(0.0, std_dev)
        cities.append(City(x=centroid.x + dx, y=centroid.y + dy, centroid=k))
    _logger.debug("sampled %d cities around %d centroids (%s)", len(cities), len(centroids), assignment)
    return cities
