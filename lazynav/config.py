"""Persistent JSON config helpers.

Stores navigator tuning knobs, local roots, and the expanded-node set.
Reads are lenient: malformed or missing config falls back to defaults.
Writes are atomic and raise ``PersistenceFailure`` so callers decide how to
degrade.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .errors import PersistenceFailure

logger = logging.getLogger(__name__)

APP_NAME = "lazynav"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

EXPANDED_NODES_KEY = "expanded_nodes"

DEFAULT_DEBOUNCE_SECONDS = 0.25
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0
DEFAULT_SEARCH_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_WORKERS = 4
SEARCH_JOIN_POLICIES = ("fail_fast", "partial")


@dataclass(frozen=True)
class NavigatorSettings:
    """Validated runtime knobs for one navigation session."""

    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    search_timeout_seconds: float = DEFAULT_SEARCH_TIMEOUT_SECONDS
    search_join_policy: str = "fail_fast"
    max_workers: int = DEFAULT_MAX_WORKERS
    show_hidden: bool = False
    local_roots: tuple[Path, ...] = ()


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except Exception as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON, replacing the file atomically."""
    try:
        payload = json.dumps(data, indent=2) + "\n"
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{CONFIG_PATH.name}.",
            dir=str(CONFIG_PATH.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, CONFIG_PATH)
        except BaseException:
            _unlink_quietly(tmp_name)
            raise
    except (OSError, TypeError, ValueError) as exc:
        raise PersistenceFailure(exc) from exc


def _unlink_quietly(path: str) -> None:
    """Remove a leftover temp file, ignoring a file that is already gone."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def _positive_float(value: object, default: float) -> float:
    """Accept strictly positive JSON numbers; booleans are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value <= 0:
        return default
    return float(value)


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value > 0 else default


def _coerce_roots(value: object) -> tuple[Path, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(Path(item) for item in value if isinstance(item, str) and item)


def load_settings(data: dict[str, object] | None = None) -> NavigatorSettings:
    """Build ``NavigatorSettings`` from config, dropping invalid values."""
    config = load_config() if data is None else data
    policy = config.get("search_join_policy")
    if policy not in SEARCH_JOIN_POLICIES:
        policy = "fail_fast"
    show_hidden = config.get("show_hidden")
    return NavigatorSettings(
        debounce_seconds=_positive_float(config.get("debounce_seconds"), DEFAULT_DEBOUNCE_SECONDS),
        fetch_timeout_seconds=_positive_float(
            config.get("fetch_timeout_seconds"), DEFAULT_FETCH_TIMEOUT_SECONDS
        ),
        search_timeout_seconds=_positive_float(
            config.get("search_timeout_seconds"), DEFAULT_SEARCH_TIMEOUT_SECONDS
        ),
        search_join_policy=str(policy),
        max_workers=_positive_int(config.get("max_workers"), DEFAULT_MAX_WORKERS),
        show_hidden=show_hidden if isinstance(show_hidden, bool) else False,
        local_roots=_coerce_roots(config.get("local_roots")),
    )


def load_expanded_node_ids() -> list[str]:
    """Load persisted expanded ids in stored order, dropping junk and repeats."""
    value = load_config().get(EXPANDED_NODES_KEY)
    if not isinstance(value, list):
        return []
    seen: set[str] = set()
    out: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item or item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def save_expanded_node_ids(node_ids: list[str]) -> None:
    """Persist expanded ids, preserving every other config key."""
    config = load_config()
    config[EXPANDED_NODES_KEY] = list(node_ids)
    save_config(config)


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "EXPANDED_NODES_KEY",
    "NavigatorSettings",
    "load_config",
    "save_config",
    "load_settings",
    "load_expanded_node_ids",
    "save_expanded_node_ids",
]
