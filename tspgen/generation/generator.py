"""
tspgen/generation/generator.py

Entry point of the clustered instance generation.

generate() runs the whole pipeline for one parameter tuple:

    RandomSource -> place_centroids -> sample_cities -> assemble

Parameters are validated before the first draw, so a run either returns a
complete Instance or raises InvalidConfiguration without partial results.

InstanceGenerator wraps generate() for the configuration-driven path used by
the command line: it reads the "generation" section of the configuration,
applies overrides and reports to an optional RunLogger.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from tspgen.generation.centroids import place_centroids
from tspgen.generation.cities import sample_cities
from tspgen.generation.random_source import RandomSource
from tspgen.instances.instance import ROUND_ROBIN, GenerationParams, Instance, assemble
from tspgen.utils.config import generation_params, load_config

_logger = logging.getLogger(__name__)

GENERATOR_NAME = "tspgen-clustered"


def generate_from_params(params: GenerationParams) -> Instance:
    """Validate params and generate one instance."""
    params.validate()
    rng = RandomSource(params.seed)
    centroids = place_centroids(params.nb_centroids, params.max_width, rng)
    cities = sample_cities(params.nb_cities, centroids, params.std_dev, rng, assignment=params.assignment)
    meta = {
        "generator": GENERATOR_NAME,
        "entropy": rng.entropy,
    }
    instance = assemble(cities, centroids, params, meta=meta)
    _logger.debug(
        "generated %s: %d cities, %d centroids, %d out of bounds",
        instance.id, instance.nb_cities, instance.nb_centroids, instance.meta["out_of_bounds"],
    )
    return instance


def generate(
    nb_cities: int,
    nb_centroids: int,
    max_width: float,
    std_dev: float,
    seed: Optional[int] = None,
    *,
    assignment: str = ROUND_ROBIN,
    clamp: bool = False,
) -> Instance:
    """
    Generate a clustered instance.

    Raises InvalidConfiguration when nb_centroids == 0 while nb_cities > 0, or
    when a numeric parameter is outside its domain.

    Example:
        >>> inst = generate(4, 1, 100.0, 0.0, seed=42)
        >>> all(c.as_tuple() == inst.centroids[0].as_tuple() for c in inst.cities)
        True
    """
    params = GenerationParams(
        nb_cities=nb_cities,
        nb_centroids=nb_centroids,
        max_width=max_width,
        std_dev=std_dev,
        seed=seed,
        assignment=assignment,
        clamp=clamp,
    )
    return generate_from_params(params)


class InstanceGenerator:
    """
    Configuration-driven generator.

    Usage:
        gen = InstanceGenerator(config=cfg, run_logger=run_log)
        inst = gen.generate_one(nb_cities=50, seed=7)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, run_logger: Optional[Any] = None) -> None:
        self.config = load_config(config)
        self.run_logger = run_logger

    def params(self, **overrides: Any) -> GenerationParams:
        return generation_params(self.config, **overrides)

    def generate_one(self, **overrides: Any) -> Instance:
        """Generate one instance from the configuration; None overrides are ignored."""
        params = self.params(**overrides)
        if self.run_logger is not None:
            self.run_logger.log("generation_start", params.to_dict())
        try:
            instance = generate_from_params(params)
        except Exception as ex:
            if self.run_logger is not None:
                self.run_logger.log("generation_failed", {"error": str(ex)}, level="ERROR")
            raise
        if self.run_logger is not None:
            self.run_logger.instance_id = instance.id
            self.run_logger.log("generation_done", {
                "instance_id": instance.id,
                "nb_cities": instance.nb_cities,
                "nb_centroids": instance.nb_centroids,
                "cluster_sizes": instance.cluster_sizes(),
                "out_of_bounds": instance.meta["out_of_bounds"],
                "entropy": str(instance.meta["entropy"]),
            })
        return instance
