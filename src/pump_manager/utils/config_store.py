"""Shared JSON configuration storage."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def load_config_data(config_path: Path) -> dict[str, Any]:
    """Load configuration JSON data from disk.

    A missing, unreadable or malformed file yields an empty mapping so callers
    always fall back to their defaults.
    """
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning("Ignoring unreadable config file %s", config_path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not an object", config_path)
        return {}
    return data


def save_config_data(config_path: Path, data: dict[str, Any]) -> None:
    """Persist configuration JSON data to disk."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def update_config_section(
    config_path: Path, section: str, values: dict[str, Any]
) -> dict[str, Any]:
    """Merge ``values`` into one top-level section and save the file."""
    payload = load_config_data(config_path)
    current = payload.get(section)
    if not isinstance(current, dict):
        current = {}
    current.update(values)
    payload[section] = current
    save_config_data(config_path, payload)
    return payload
