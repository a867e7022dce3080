"""
tspgen/utils/config.py

YAML configuration for the generator, the serializer, the run logger and the
renderer.

A configuration file only needs the keys it changes: load_config() deep-merges
it over DEFAULT_CONFIG. Command line flags are applied last, on top of the
merged dict (see generation_params()).
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from tspgen.errors import InvalidConfiguration
from tspgen.instances.instance import GenerationParams

DEFAULT_CONFIG: Dict[str, Any] = {
    "generation": {
        "nb_cities": 10,
        "nb_centroids": 3,
        "max_width": 1000.0,
        "std_dev": 10.0,
        "seed": None,
        "assignment": "round_robin",
        "clamp": False,
    },
    "output": {
        "format": None,  # inferred from the output suffix, json otherwise
        "include_distances": False,
        "duration": False,
        "logs_dir": None,  # structured run log disabled when null
    },
    "logging": {
        "level": "INFO",
        "structured_json": True,
    },
    "visualization": {
        "speed": 50.0,  # map units per hour
        "close_tour": False,
        "show_centroids": True,
        "city_color": "#3366ff",
        "centroid_color": "#583470",
        "route_color": "red",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def load_config(config: Optional[Union[str, Path, Dict[str, Any]]] = None) -> Dict[str, Any]:
    """
    Return DEFAULT_CONFIG merged with `config`, which may be a dict, a path to
    a YAML file, or None.
    """
    if config is None:
        return copy.deepcopy(DEFAULT_CONFIG)
    if isinstance(config, dict):
        loaded = config
    else:
        path = Path(config)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "rt", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise InvalidConfiguration(f"configuration root must be a mapping: {path}")
    return _deep_merge(DEFAULT_CONFIG, loaded)


def generation_params(cfg: Dict[str, Any], **overrides: Any) -> GenerationParams:
    """
    Build GenerationParams from cfg["generation"]; keyword overrides set to
    None are ignored so unset command line flags fall through to the config.
    """
    section = dict((cfg or {}).get("generation", {}) or {})
    unknown = sorted(set(section) - set(GenerationParams.__dataclass_fields__))
    if unknown:
        raise InvalidConfiguration(f"unknown generation keys in configuration: {unknown}")
    section.update({k: v for k, v in overrides.items() if v is not None})
    return GenerationParams.from_dict(section)
