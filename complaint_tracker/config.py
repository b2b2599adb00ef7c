"""
Tracker configuration.

Settings come from an optional JSON file, then environment variables,
which take precedence:

    COMPLAINT_TRACKER_DB_URL     database URL
    COMPLAINT_TRACKER_STRICT     "1", "true" or "yes" to enforce the transition table
    COMPLAINT_TRACKER_LOG_LEVEL  logging level name (DEBUG, INFO, ...)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

DEFAULT_DB_URL = "sqlite:///complaint_tracker.db"

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class TrackerConfig:
    """Runtime settings for the complaint tracker.

    Attributes:
        db_url: SQLAlchemy database URL.
        strict_transitions: Enforce the status transition table (off by default).
        log_level: Level name passed to ``logging.basicConfig`` by the CLI.
    """

    db_url: str = DEFAULT_DB_URL
    strict_transitions: bool = False
    log_level: str = "WARNING"


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in _FALSE_VALUES


def load_config(config_path: Optional[str | Path] = None) -> TrackerConfig:
    """Build a TrackerConfig from a JSON file and the environment.

    Args:
        config_path: Optional path to a JSON file with any of the keys
                     ``db_url``, ``strict_transitions``, ``log_level``.

    Raises:
        FileNotFoundError: If config_path is given but does not exist.
        json.JSONDecodeError: If the JSON is malformed.
    """
    raw: dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Tracker config not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)

    config = TrackerConfig(
        db_url=raw.get("db_url", DEFAULT_DB_URL),
        strict_transitions=_parse_bool(raw.get("strict_transitions", False)),
        log_level=str(raw.get("log_level", "WARNING")).upper(),
    )

    if os.environ.get("COMPLAINT_TRACKER_DB_URL"):
        config.db_url = os.environ["COMPLAINT_TRACKER_DB_URL"]
    if os.environ.get("COMPLAINT_TRACKER_STRICT"):
        config.strict_transitions = _parse_bool(os.environ["COMPLAINT_TRACKER_STRICT"])
    if os.environ.get("COMPLAINT_TRACKER_LOG_LEVEL"):
        config.log_level = os.environ["COMPLAINT_TRACKER_LOG_LEVEL"].upper()

    return config
