from tspgen.instances.instance import (
    ASSIGNMENT_POLICIES,
    Centroid,
    City,
    Coordinate,
    GenerationParams,
    Instance,
    assemble,
    make_instance_id,
)

__all__ = [
    "ASSIGNMENT_POLICIES",
    "Centroid",
    "City",
    "Coordinate",
    "GenerationParams",
    "Instance",
    "assemble",
    "make_instance_id",
]
