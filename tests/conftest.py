## tests/conftest.py

"""
Shared fixtures: a small seeded instance and a hand-made instance whose
geometry is known exactly.
"""

from __future__ import annotations

import pytest

from tspgen.generation.generator import generate
from tspgen.instances.instance import Centroid, City, GenerationParams, Instance


@pytest.fixture
def small_instance() -> Instance:
    """12 cities around 3 centroids, seeded."""
    return generate(12, 3, 1000.0, 10.0, seed=5)


@pytest.fixture
def triangle_instance() -> Instance:
    """
    Three cities forming a 3-4-5 right triangle around a single centroid:
    (0, 0), (3, 0), (3, 4).
    """
    params = GenerationParams(nb_cities=3, nb_centroids=1, max_width=10.0, std_dev=1.0, seed=0)
    return Instance(
        id="triangle",
        cities=[City(0.0, 0.0, 0), City(3.0, 0.0, 0), City(3.0, 4.0, 0)],
        centroids=[Centroid(2.0, 1.0)],
        params=params,
    )
