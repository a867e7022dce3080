"""
tspgen/utils/serialization.py

Serialization of generated instances.

Formats:
- "json": the canonical Instance.to_dict() payload plus an integrity block
  holding the sha256 of the canonical payload. Optionally carries the travel
  cost matrix ("distances" or "durations"). A ".gz" suffix gzips the file.
- "geojson": a FeatureCollection with one Point feature per city and per
  centroid. The instance id, params and meta ride in the "tspgen" foreign
  member so the file can be loaded back.
- "tsplib": TSPLIB EUC_2D text. Write-only; centroids are listed as comments.

All file writes are atomic (write to temp file then os.replace).

Usage:
    ser = InstanceSerializer(config=config_dict, run_logger=run_log)
    meta = ser.save(instance, "out/instance.geojson")
    instance = ser.load("out/instance.geojson")
    text = ser.dumps(instance, "tsplib")
"""

from __future__ import annotations

import gzip
import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tspgen.errors import IntegrityError, InvalidInstanceError, SerializationError
from tspgen.instances.instance import Centroid, City, GenerationParams, Instance

_logger = logging.getLogger(__name__)

FORMATS = ("json", "geojson", "tsplib")
_SUFFIX_FORMATS = {".json": "json", ".geojson": "geojson", ".tsp": "tsplib"}
_FOREIGN_MEMBER = "tspgen"


def infer_format(path: Union[str, Path], default: str = "json") -> str:
    """Format from the file suffix, ignoring a trailing .gz; `default` when unknown."""
    suffixes = [s.lower() for s in Path(path).suffixes]
    if suffixes and suffixes[-1] == ".gz":
        suffixes = suffixes[:-1]
    if suffixes and suffixes[-1] in _SUFFIX_FORMATS:
        return _SUFFIX_FORMATS[suffixes[-1]]
    return default


def payload_sha256(payload: Dict[str, Any]) -> str:
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write data to path through a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmpname = tempfile.mkstemp(prefix=f".{path.name}.tmp.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmpname, str(path))
    except BaseException:
        if os.path.exists(tmpname):
            os.remove(tmpname)
        raise


# -------------------------
# Format converters
# -------------------------
def to_geojson(instance: Instance) -> Dict[str, Any]:
    features: List[Dict[str, Any]] = []
    for i, city in enumerate(instance.cities):
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [float(city.x), float(city.y)]},
            "properties": {"kind": "city", "index": i, "centroid": int(city.centroid)},
        })
    for k, centroid in enumerate(instance.centroids):
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [float(centroid.x), float(centroid.y)]},
            "properties": {"kind": "centroid", "index": k},
        })
    payload = instance.to_dict()
    return {
        "type": "FeatureCollection",
        "features": features,
        _FOREIGN_MEMBER: {"id": payload["id"], "params": payload["params"], "meta": payload["meta"]},
    }


def from_geojson(obj: Dict[str, Any]) -> Instance:
    """Rebuild an Instance from to_geojson() output."""
    if not isinstance(obj, dict) or obj.get("type") != "FeatureCollection":
        raise InvalidInstanceError("GeoJSON root must be a FeatureCollection")
    extra = obj.get(_FOREIGN_MEMBER)
    if not isinstance(extra, dict) or "params" not in extra:
        raise InvalidInstanceError(f"GeoJSON lacks the '{_FOREIGN_MEMBER}' member with generation params")

    cities: Dict[int, City] = {}
    centroids: Dict[int, Centroid] = {}
    try:
        for feature in obj.get("features", []):
            props = feature.get("properties") or {}
            x, y = feature["geometry"]["coordinates"][:2]
            index = int(props["index"])
            if props.get("kind") == "city":
                cities[index] = City(x=float(x), y=float(y), centroid=int(props.get("centroid", 0)))
            elif props.get("kind") == "centroid":
                centroids[index] = Centroid(x=float(x), y=float(y))
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidInstanceError(f"malformed GeoJSON feature: {e}")

    if sorted(cities) != list(range(len(cities))) or sorted(centroids) != list(range(len(centroids))):
        raise InvalidInstanceError("GeoJSON feature indices are not contiguous")
    return Instance(
        id=str(extra.get("id", "")),
        cities=[cities[i] for i in range(len(cities))],
        centroids=[centroids[k] for k in range(len(centroids))],
        params=GenerationParams.from_dict(extra["params"]),
        meta=dict(extra.get("meta") or {}),
    )


def to_tsplib(instance: Instance) -> str:
    """TSPLIB EUC_2D text with 1-based node ids."""
    p = instance.params
    lines = [
        f"NAME : {instance.id}",
        (
            f"COMMENT : Clustered instance with {instance.nb_cities} cities around "
            f"{instance.nb_centroids} centroids (max={p.max_width:g}, std_dev={p.std_dev:g}, seed={p.seed})"
        ),
        "TYPE : TSP",
        f"DIMENSION : {instance.nb_cities}",
        "EDGE_WEIGHT_TYPE : EUC_2D",
    ]
    for k, c in enumerate(instance.centroids):
        lines.append(f"COMMENT : centroid {k} {c.x:.4f} {c.y:.4f}")
    lines.append("NODE_COORD_SECTION")
    for i, c in enumerate(instance.cities, start=1):
        lines.append(f"{i} {c.x:.4f} {c.y:.4f}")
    lines.append("EOF")
    return "\n".join(lines) + "\n"


class InstanceSerializer:
    """
    Save / load instances in the supported formats.

    Configuration (tspgen.utils.config):
      - output.format: default format when the path suffix does not decide
      - output.include_distances: add the travel cost matrix to json output
      - output.duration: the matrix holds durations (seconds) instead of distances
      - visualization.speed: map units per hour used for durations
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, run_logger: Optional[Any] = None) -> None:
        self.config: Dict[str, Any] = dict(config or {})
        output_cfg = self.config.get("output", {}) or {}
        self.default_format: Optional[str] = output_cfg.get("format")
        self.include_distances = bool(output_cfg.get("include_distances", False))
        self.duration = bool(output_cfg.get("duration", False))
        self.speed = float((self.config.get("visualization", {}) or {}).get("speed", 50.0))
        self.run_logger = run_logger

        if self.default_format is not None and self.default_format not in FORMATS:
            raise SerializationError(f"unknown output format {self.default_format!r}; expected one of {list(FORMATS)}")

    # -------------------------
    # Public API
    # -------------------------
    def to_payload(self, instance: Instance) -> Dict[str, Any]:
        """Canonical JSON payload with its integrity block."""
        payload = instance.to_dict()
        if self.include_distances:
            key = "durations" if self.duration else "distances"
            matrix = instance.travel_cost_matrix(duration=self.duration, speed=self.speed)
            payload[key] = [[float(v) for v in row] for row in matrix]
        payload["integrity"] = {"algorithm": "sha256", "sha256": payload_sha256(payload)}
        return payload

    def dumps(self, instance: Instance, fmt: Optional[str] = None) -> str:
        fmt = fmt or self.default_format or "json"
        if fmt == "json":
            return json.dumps(self.to_payload(instance), ensure_ascii=False, sort_keys=True, indent=2)
        if fmt == "geojson":
            return json.dumps(to_geojson(instance), ensure_ascii=False, indent=2)
        if fmt == "tsplib":
            return to_tsplib(instance)
        raise SerializationError(f"unknown output format {fmt!r}; expected one of {list(FORMATS)}")

    def save(self, instance: Instance, path: Union[str, Path], fmt: Optional[str] = None) -> Dict[str, Any]:
        """
        Write the instance to path and return metadata: path, format, sha256
        of the file bytes, file_size_bytes, created_at.
        """
        path = Path(path)
        fmt = fmt or infer_format(path, default=self.default_format or "json")
        data = self.dumps(instance, fmt).encode("utf-8")
        if path.suffix.lower() == ".gz":
            data = gzip.compress(data)
        _atomic_write_bytes(path, data)

        metadata = {
            "path": str(path.resolve()),
            "format": fmt,
            "sha256": hashlib.sha256(data).hexdigest(),
            "file_size_bytes": len(data),
            "created_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        }
        _logger.info("wrote %s instance %s to %s", fmt, instance.id, path)
        if self.run_logger is not None:
            self.run_logger.log("instance_saved", {"instance_id": instance.id, **metadata})
        return metadata

    def load(self, path: Union[str, Path]) -> Instance:
        """
        Load a json (optionally gzipped) or geojson instance.

        Raises FileNotFoundError, IntegrityError when the stored checksum does
        not match, InvalidInstanceError on malformed content.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Instance file not found: {path}")
        fmt = infer_format(path)
        if fmt == "tsplib":
            raise SerializationError("TSPLIB files are write-only; load the json or geojson output instead")

        raw = path.read_bytes()
        if path.suffix.lower() == ".gz":
            raw = gzip.decompress(raw)
        try:
            obj = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidInstanceError(f"cannot parse {path}: {e}")

        if isinstance(obj, dict) and obj.get("type") == "FeatureCollection":
            instance = from_geojson(obj)
        else:
            self._check_integrity(obj, path)
            instance = Instance.from_dict(obj)

        if self.run_logger is not None:
            self.run_logger.log("instance_loaded", {"path": str(path), "instance_id": instance.id})
        return instance

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _check_integrity(obj: Any, path: Path) -> None:
        if not isinstance(obj, dict):
            raise InvalidInstanceError("Instance JSON root must be an object")
        integrity = obj.get("integrity") or {}
        expected = integrity.get("sha256")
        if not expected:
            return
        payload = {k: v for k, v in obj.items() if k != "integrity"}
        actual = payload_sha256(payload)
        if actual != expected:
            raise IntegrityError(f"Checksum mismatch for instance file {path}: expected {expected}, got {actual}")
