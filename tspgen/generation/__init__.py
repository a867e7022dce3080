from tspgen.generation.centroids import place_centroids
from tspgen.generation.cities import ASSIGNMENT_POLICIES, assign_centroids, sample_cities
from tspgen.generation.generator import InstanceGenerator, generate
from tspgen.generation.random_source import RandomSource

__all__ = [
    "ASSIGNMENT_POLICIES",
    "InstanceGenerator",
    "RandomSource",
    "assign_centroids",
    "generate",
    "place_centroids",
    "sample_cities",
]
