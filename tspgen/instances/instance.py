# tspgen/instances/instance.py
"""
tspgen/instances/instance.py

Data model of a clustered TSP instance and the assembler that builds it.

This module implements:
 - Coordinate / Centroid / City value types,
 - GenerationParams: the parameters of one generation run and their validation,
 - Instance: cities + centroids + params + meta, with JSON-friendly conversion,
   structural validation and numeric helpers (coordinate arrays, cost matrices),
 - assemble(): aggregation of generated cities and centroids into an Instance,
   with the optional clamp of city coordinates to the map.

Notes and design constraints:
 - City order is generation order; a city's index is its position in
   Instance.cities and is what routes refer to.
 - Centroids are identified by their position in Instance.centroids only.
 - Coordinates are planar; the map is the square [0, max_width)^2. Cities may
   fall outside of it unless params.clamp is set.
 - No I/O happens here. File formats live in tspgen.utils.serialization.

Public API:
 - class Coordinate, Centroid (alias), class City
 - class GenerationParams
     - validate() -> None  (raises InvalidConfiguration)
     - to_dict() / from_dict()
 - class Instance
     - to_dict() / from_dict()
     - validate(raise_on_error: bool = True) -> bool
     - get_coords_array(kind) -> np.ndarray
     - cluster_sizes(), out_of_bounds()
     - distance_matrix(), travel_cost_matrix(duration, speed)
 - assemble(cities, centroids, params, meta=None) -> Instance
 - make_instance_id(params, entropy) -> str
"""

from __future__ import annotations

import math
import numbers
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from tspgen.errors import InvalidConfiguration, InvalidInstanceError

ROUND_ROBIN = "round_robin"
BLOCK = "block"
ASSIGNMENT_POLICIES = (ROUND_ROBIN, BLOCK)

# Seeds are 128-bit at most (see tspgen.generation.random_source)
_MAX_SEED = 2 ** 128


# ---- Value types ----
@dataclass(frozen=True)
class Coordinate:
    """A position (x, y) on the planar map."""

    x: float
    y: float

    def as_tuple(self) -> tuple:
        return (self.x, self.y)


# A centroid is a plain coordinate; its identity is its index in the instance.
Centroid = Coordinate


@dataclass(frozen=True)
class City(Coordinate):
    """A point to visit, remembering the index of the centroid it was drawn around."""

    centroid: int = 0


def _is_count(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool) and value >= 0


def _is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


# ---- Generation parameters ----
@dataclass
class GenerationParams:
    """
    Parameters of one generation run, kept with the instance for audit.

    Fields:
      - nb_cities: number of cities to generate (>= 0)
      - nb_centroids: number of cluster anchors (>= 0, >= 1 when nb_cities > 0)
      - max_width: side of the square map (> 0)
      - std_dev: standard deviation of the Gaussian offset (>= 0)
      - seed: optional non-negative integer making the run reproducible
      - assignment: "round_robin" or "block"
      - clamp: clip city coordinates to [0, max_width) after perturbation
    """

    nb_cities: int = 10
    nb_centroids: int = 3
    max_width: float = 1000.0
    std_dev: float = 10.0
    seed: Optional[int] = None
    assignment: str = ROUND_ROBIN
    clamp: bool = False

    def validate(self) -> None:
        """Raise InvalidConfiguration on the first parameter outside its domain."""
        if not _is_count(self.nb_cities):
            raise InvalidConfiguration(f"nb_cities must be a non-negative integer, got {self.nb_cities!r}")
        if not _is_count(self.nb_centroids):
            raise InvalidConfiguration(f"nb_centroids must be a non-negative integer, got {self.nb_centroids!r}")
        if self.nb_centroids == 0 and self.nb_cities > 0:
            raise InvalidConfiguration(
                f"cannot anchor {self.nb_cities} cities: nb_centroids must be at least 1"
            )
        if not _is_real(self.max_width) or not _is_real(self.std_dev):
            raise InvalidConfiguration(
                f"max_width and std_dev must be real numbers, got {self.max_width!r} and {self.std_dev!r}"
            )
        max_width = float(self.max_width)
        std_dev = float(self.std_dev)
        if not math.isfinite(max_width) or max_width <= 0.0:
            raise InvalidConfiguration(f"max_width must be a finite positive number, got {self.max_width!r}")
        if not math.isfinite(std_dev) or std_dev < 0.0:
            raise InvalidConfiguration(f"std_dev must be a finite non-negative number, got {self.std_dev!r}")
        if self.seed is not None:
            if not _is_count(self.seed) or self.seed >= _MAX_SEED:
                raise InvalidConfiguration(f"seed must be an integer in [0, 2**128), got {self.seed!r}")
        if self.assignment not in ASSIGNMENT_POLICIES:
            raise InvalidConfiguration(
                f"unknown assignment policy {self.assignment!r}; expected one of {list(ASSIGNMENT_POLICIES)}"
            )
        if not isinstance(self.clamp, bool):
            raise InvalidConfiguration(f"clamp must be a boolean, got {self.clamp!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nb_cities": int(self.nb_cities),
            "nb_centroids": int(self.nb_centroids),
            "max_width": float(self.max_width),
            "std_dev": float(self.std_dev),
            "seed": None if self.seed is None else int(self.seed),
            "assignment": str(self.assignment),
            "clamp": bool(self.clamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationParams":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


def make_instance_id(params: GenerationParams, entropy: Optional[int] = None) -> str:
    """
    Deterministic identifier: seeded runs are named after their seed, unseeded
    ones after the low 32 bits of the entropy they drew.
    """
    base = f"clustered_n{params.nb_cities}_c{params.nb_centroids}"
    if params.seed is not None:
        return f"{base}_seed{params.seed}"
    if entropy is not None:
        return f"{base}_{int(entropy) & 0xFFFFFFFF:08x}"
    return base


# ---- Instance ----
@dataclass
class Instance:
    """
    A generated problem: ordered cities, ordered centroids, and the parameters
    used to produce them.

    meta carries run information that is not part of the problem itself:
      - generated_at: UTC timestamp
      - entropy: entropy of the random stream (replays an unseeded run)
      - generator: name and version of the generator
      - out_of_bounds: number of cities outside [0, max_width)^2
    """

    id: str
    cities: List[City]
    centroids: List[Centroid]
    params: GenerationParams
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.cities = list(self.cities)
        self.centroids = list(self.centroids)
        if "generated_at" not in self.meta:
            self.meta["generated_at"] = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

    @property
    def nb_cities(self) -> int:
        return len(self.cities)

    @property
    def nb_centroids(self) -> int:
        return len(self.centroids)

    # --------------------
    # Serialization
    # --------------------
    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dict; cities keep their centroid index."""
        return {
            "id": str(self.id),
            "params": self.params.to_dict(),
            "centroids": [[float(c.x), float(c.y)] for c in self.centroids],
            "cities": [[float(c.x), float(c.y), int(c.centroid)] for c in self.cities],
            "meta": _clean_meta(self.meta),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Instance":
        """Rebuild an Instance from to_dict() output. Raises InvalidInstanceError on bad shape."""
        if not isinstance(data, dict):
            raise InvalidInstanceError("instance payload must be a mapping")
        try:
            params = GenerationParams.from_dict(data["params"])
            centroids = [Centroid(x=float(x), y=float(y)) for x, y in data["centroids"]]
            cities = []
            for row in data["cities"]:
                if len(row) not in (2, 3):
                    raise InvalidInstanceError(f"city entry must be [x, y] or [x, y, centroid], got {row!r}")
                centroid = int(row[2]) if len(row) == 3 else 0
                cities.append(City(x=float(row[0]), y=float(row[1]), centroid=centroid))
            id_ = str(data.get("id") or make_instance_id(params))
            meta = dict(data.get("meta") or {})
        except KeyError as e:
            raise InvalidInstanceError(f"missing required instance key: {e}")
        except (TypeError, ValueError) as e:
            raise InvalidInstanceError(f"malformed instance payload: {e}")
        return cls(id=id_, cities=cities, centroids=centroids, params=params, meta=meta)

    # --------------------
    # Validation
    # --------------------
    def validate(self, raise_on_error: bool = True) -> bool:
        """
        Check the structural invariants of the instance.

        Checks performed:
          - params themselves are valid
          - number of cities / centroids matches params
          - centroid components lie in [0, max_width)
          - all coordinates are finite
          - city centroid indices refer to existing centroids
          - when params.clamp is set, city components lie in [0, max_width)

        Returns True when valid. On failure raises InvalidInstanceError, or, if
        raise_on_error is False, records the errors in meta["validation"] and
        returns False.
        """
        errors: List[str] = []
        try:
            self.params.validate()
        except InvalidConfiguration as e:
            errors.append(f"invalid params: {e}")

        if self.nb_cities != self.params.nb_cities:
            errors.append(f"expected {self.params.nb_cities} cities, got {self.nb_cities}")
        if self.nb_centroids != self.params.nb_centroids:
            errors.append(f"expected {self.params.nb_centroids} centroids, got {self.nb_centroids}")

        width = float(self.params.max_width)
        for k, c in enumerate(self.centroids):
            if not (math.isfinite(c.x) and math.isfinite(c.y)):
                errors.append(f"centroid {k} has non-finite coordinates {c.as_tuple()}")
            elif not (0.0 <= c.x < width and 0.0 <= c.y < width):
                errors.append(f"centroid {k} at {c.as_tuple()} lies outside [0, {width})")

        for i, c in enumerate(self.cities):
            if not (math.isfinite(c.x) and math.isfinite(c.y)):
                errors.append(f"city {i} has non-finite coordinates {c.as_tuple()}")
            if not (0 <= c.centroid < self.nb_centroids):
                errors.append(f"city {i} refers to unknown centroid {c.centroid}")
        if self.params.clamp:
            bad = self.out_of_bounds()
            if bad:
                errors.append(f"clamped instance has cities outside the map: {bad[:10]}")

        if errors:
            if raise_on_error:
                raise InvalidInstanceError(
                    "Instance validation failed with errors:\n" + "\n".join(f"- {e}" for e in errors)
                )
            self.meta.setdefault("validation", {})["errors"] = errors
            return False
        return True

    # --------------------
    # Convenience accessors
    # --------------------
    def get_coords_array(self, kind: str = "cities") -> np.ndarray:
        """Return the city (or centroid) coordinates as an (m x 2) array."""
        if kind == "cities":
            points: Sequence[Coordinate] = self.cities
        elif kind == "centroids":
            points = self.centroids
        else:
            raise ValueError(f"kind must be 'cities' or 'centroids', got {kind!r}")
        arr = np.zeros((len(points), 2), dtype=float)
        for idx, p in enumerate(points):
            arr[idx, 0] = p.x
            arr[idx, 1] = p.y
        return arr

    def cluster_sizes(self) -> List[int]:
        sizes = [0] * self.nb_centroids
        for c in self.cities:
            sizes[c.centroid] += 1
        return sizes

    def out_of_bounds(self) -> List[int]:
        """Indices of the cities lying outside [0, max_width)^2."""
        width = float(self.params.max_width)
        return [
            i for i, c in enumerate(self.cities)
            if not (0.0 <= c.x < width and 0.0 <= c.y < width)
        ]

    def distance_matrix(self) -> np.ndarray:
        """Euclidean distance between every pair of cities (n x n)."""
        coords = self.get_coords_array("cities")
        if len(coords) == 0:
            return np.zeros((0, 0), dtype=float)
        delta = coords[:, None, :] - coords[None, :, :]
        return np.sqrt((delta ** 2).sum(axis=-1))

    def travel_cost_matrix(self, duration: bool = False, speed: float = 50.0) -> np.ndarray:
        """
        Cost of going from one city to another: distance in map units, or, when
        duration is set, travel time in seconds at `speed` map units per hour.
        """
        dist = self.distance_matrix()
        if not duration:
            return dist
        if not (speed > 0):
            raise InvalidConfiguration(f"speed must be positive, got {speed!r}")
        return dist / float(speed) * 3600.0

    def __repr__(self) -> str:
        return f"Instance(id={self.id!r}, cities={self.nb_cities}, centroids={self.nb_centroids})"


def _clean_meta(meta: Dict[str, Any]) -> Dict[str, Any]:
    def _clean_value(v):
        if isinstance(v, np.integer):
            return int(v)
        if isinstance(v, np.floating):
            return float(v)
        if isinstance(v, (list, tuple)):
            return [_clean_value(x) for x in v]
        if isinstance(v, dict):
            return {str(k): _clean_value(val) for k, val in v.items()}
        return v

    return {str(k): _clean_value(v) for k, v in (meta or {}).items()}


# ---- Assembler ----
def _clamp(value: float, upper: float) -> float:
    return min(max(value, 0.0), upper)


def assemble(
    cities: Sequence[City],
    centroids: Sequence[Centroid],
    params: GenerationParams,
    meta: Optional[Dict[str, Any]] = None,
) -> Instance:
    """
    Bundle generated cities and centroids with their parameters.

    When params.clamp is set, every city component is clipped to
    [0, max_width); the upper bound is the largest float below max_width.
    meta["out_of_bounds"] records how many cities remain outside the map.
    """
    meta = dict(meta or {})
    cities = list(cities)
    if params.clamp:
        upper = float(np.nextafter(float(params.max_width), 0.0))
        cities = [
            City(x=_clamp(c.x, upper), y=_clamp(c.y, upper), centroid=c.centroid)
            for c in cities
        ]
    instance = Instance(
        id=make_instance_id(params, meta.get("entropy")),
        cities=cities,
        centroids=list(centroids),
        params=params,
        meta=meta,
    )
    instance.meta["out_of_bounds"] = len(instance.out_of_bounds())
    return instance
