"""tspgen: generator of clustered TSP instances and map renderer."""

from tspgen.errors import InvalidConfiguration, TspGenError
from tspgen.generation.generator import InstanceGenerator, generate
from tspgen.instances.instance import Centroid, City, Coordinate, GenerationParams, Instance

__version__ = "0.1.0"

__all__ = [
    "Centroid",
    "City",
    "Coordinate",
    "GenerationParams",
    "Instance",
    "InstanceGenerator",
    "InvalidConfiguration",
    "TspGenError",
    "generate",
]
