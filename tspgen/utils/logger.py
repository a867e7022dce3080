"""utils/logger.py

Structured, thread-safe run logger.

The RunLogger writes either newline-delimited JSON (JSON Lines) or
human-readable text lines to a per-run log file under the configured logs
directory. Each event gets an envelope with timestamp, level, run_id,
instance_id and elapsed time.

Public API:
- RunLogger.log(event: str, payload: Dict, level: Optional[str] = None) -> None
- RunLogger.save_run(summary: Optional[Dict] = None, path: Optional[str] = None) -> Path

Usage:
    run_log = RunLogger(run_id="run123", instance_id=None, config=config_data)
    run_log.log("generation_start", {"nb_cities": 10, "seed": 3})
    ...
    run_log.save_run(summary={"status": "completed"})

This complements the module loggers (logging.getLogger(__name__)): those are
for humans watching the console, the run log is the audit trail of one run.
"""

from __future__ import annotations

import datetime
import hashlib
import json
import logging
import threading
import time
from pathlib import Path
from typing import IO, Any, Dict, Optional, Union

_logger = logging.getLogger(__name__)

_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_STRUCTURED_JSON = True
_DEFAULT_LOGS_DIR = "logs"
_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}


def _now_iso_utc() -> str:
    """Return current UTC time in ISO8601 with Z suffix and millisecond precision."""
    now = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec="milliseconds") + "Z"


def _hash_config(obj: Any) -> str:
    """Return a short SHA256 hex digest of a JSON-serializable object."""
    data = json.dumps(obj, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(data).hexdigest()[:12]


class RunLogger:
    """
    Thread-safe structured logger for one generation or rendering run.

    Parameters:
      - run_id: unique identifier for the run. If None, one is derived from the
                timestamp, the instance id and a hash of the configuration.
      - instance_id: optional instance identifier attached to every event.
      - config: configuration dict (see tspgen.utils.config); reads
                logging.level, logging.structured_json and output.logs_dir.
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        instance_id: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._config: Dict[str, Any] = dict(config or {})
        logging_cfg = self._config.get("logging", {}) or {}
        output_cfg = self._config.get("output", {}) or {}

        self._level = str(logging_cfg.get("level", _DEFAULT_LOG_LEVEL)).upper()
        self._structured = bool(logging_cfg.get("structured_json", _DEFAULT_STRUCTURED_JSON))
        self._logs_dir = Path(output_cfg.get("logs_dir") or _DEFAULT_LOGS_DIR)
        self._logs_dir.mkdir(parents=True, exist_ok=True)

        if run_id and run_id.strip():
            self.run_id = run_id
        else:
            ts = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%dT%H%M%S")
            self.run_id = f"{ts}__{instance_id or 'global'}__{_hash_config(self._config)}"
        self.instance_id = instance_id

        suffix = "log.jsonl" if self._structured else "log.txt"
        self.log_path = self._logs_dir / f"{self.run_id}.{suffix}"
        self._fh: IO[str] = open(self.log_path, "a", encoding="utf-8")
        self._lock = threading.Lock()
        self._start_time = time.time()
        self._num_events = 0

        self.log("logger_initialised", {"config_snapshot_hash": _hash_config(self._config)})

    # Public API ------------------------------------------------------------

    def log(self, event: str, payload: Dict[str, Any], level: Optional[str] = None) -> None:
        """
        Log an event with a payload.

        Parameters:
            event: event name (e.g. "generation_start", "instance_saved")
            payload: JSON-serializable dictionary with event-specific keys
            level: optional level ("DEBUG", "INFO", ...); INFO when omitted
        """
        level = (level or "INFO").upper()
        if not self._level_allowed(level):
            return

        envelope = {
            "timestamp": _now_iso_utc(),
            "level": level,
            "run_id": self.run_id,
            "instance_id": self.instance_id,
            "elapsed_time_s": round(time.time() - self._start_time, 6),
            "event": event,
            "payload": payload,
        }
        if self._structured:
            line = json.dumps(envelope, ensure_ascii=False, separators=(",", ":"), default=str)
        else:
            payload_str = json.dumps(payload, ensure_ascii=False, default=str)
            line = f"[{envelope['timestamp']}] {level} {event} | {payload_str}"
        with self._lock:
            if self._fh.closed:
                _logger.warning("run log %s already closed; dropping event %s", self.run_id, event)
                return
            self._fh.write(line + "\n")
            self._fh.flush()
            self._num_events += 1

    def save_run(self, summary: Optional[Dict[str, Any]] = None, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Close the log file and write a summary JSON next to it (or to `path`).
        Provided summary keys override the defaults. Returns the summary path.
        """
        end_time = time.time()
        merged = {
            "run_id": self.run_id,
            "instance_id": self.instance_id,
            "start_time": datetime.datetime.fromtimestamp(self._start_time, datetime.timezone.utc).isoformat(),
            "end_time": datetime.datetime.fromtimestamp(end_time, datetime.timezone.utc).isoformat(),
            "total_time_s": round(end_time - self._start_time, 6),
            "num_logged_events": self._num_events,
            "log_path": str(self.log_path),
        }
        merged.update(summary or {})

        with self._lock:
            if not self._fh.closed:
                self._fh.flush()
                self._fh.close()

        summary_path = Path(path) if path else self._logs_dir / f"{self.run_id}.summary.json"
        summary_path.parent.mkdir(parents=True, exist_ok=True)
        with open(summary_path, "wt", encoding="utf-8") as sf:
            json.dump(merged, sf, indent=2, default=str)
        return summary_path

    # Internal helpers -----------------------------------------------------

    def _level_allowed(self, event_level: str) -> bool:
        """DEBUG < INFO < WARNING < ERROR < CRITICAL; unknown levels count as INFO."""
        min_val = _LEVELS.get(self._level, 20)
        return _LEVELS.get(event_level, 20) >= min_val
