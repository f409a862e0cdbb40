"""Top-of-file document-class detection with a small metadata cache.

Recognizes ``class: Workflow`` / ``class: CommandLineTool`` declarations in
YAML or JSON documents so local entries can be ranked and marked draggable.
"""

from __future__ import annotations

from collections import OrderedDict
from pathlib import Path
import re
import threading

from .types import PREFERRED_DOCUMENT_CLASSES

DOCUMENT_CLASS_READ_BYTES = 8_192
DOCUMENT_CLASS_MAX_FILE_BYTES = 4 * 1024 * 1024
DOCUMENT_CLASS_CACHE_MAX = 4_096
DOCUMENT_SUFFIXES = frozenset({".cwl", ".yml", ".yaml", ".json"})

_CLASS_RE = re.compile(r"""^\s*["']?class["']?\s*:\s*["']?([A-Za-z]+)["']?""", re.MULTILINE)
_DOCUMENT_CLASS_CACHE: OrderedDict[tuple[str, int, int], str | None] = OrderedDict()
_DOCUMENT_CLASS_CACHE_LOCK = threading.RLock()
_CACHE_MISS = object()


def detect_document_class(path: Path, size_bytes: int | None = None) -> str | None:
    """Return the declared top-level document class when it is a preferred one."""
    if path.suffix.lower() not in DOCUMENT_SUFFIXES:
        return None
    if size_bytes is not None and size_bytes > DOCUMENT_CLASS_MAX_FILE_BYTES:
        return None

    try:
        with path.open("rb") as handle:
            sample = handle.read(DOCUMENT_CLASS_READ_BYTES)
    except OSError:
        return None
    if not sample or b"\x00" in sample:
        return None

    text = sample.decode("utf-8", errors="replace").lstrip("\ufeff")
    for match in _CLASS_RE.finditer(text):
        declared = match.group(1)
        if declared in PREFERRED_DOCUMENT_CLASSES:
            return declared
    return None


def _cache_key(path: Path) -> tuple[str, int, int] | None:
    try:
        resolved = path.resolve()
        stat = resolved.stat()
    except OSError:
        return None
    return str(resolved), int(stat.st_mtime_ns), int(stat.st_size)


def cached_document_class(path: Path) -> str | None:
    """Return ``detect_document_class`` keyed by path, mtime, and size."""
    cache_key = _cache_key(path)
    if cache_key is not None:
        with _DOCUMENT_CLASS_CACHE_LOCK:
            cached = _DOCUMENT_CLASS_CACHE.get(cache_key, _CACHE_MISS)
            if cached is not _CACHE_MISS:
                _DOCUMENT_CLASS_CACHE.move_to_end(cache_key)
                return cached

    detected = detect_document_class(path, cache_key[2] if cache_key is not None else None)

    if cache_key is not None:
        with _DOCUMENT_CLASS_CACHE_LOCK:
            _DOCUMENT_CLASS_CACHE[cache_key] = detected
            _DOCUMENT_CLASS_CACHE.move_to_end(cache_key)
            while len(_DOCUMENT_CLASS_CACHE) > DOCUMENT_CLASS_CACHE_MAX:
                _DOCUMENT_CLASS_CACHE.popitem(last=False)

    return detected


def clear_document_class_cache() -> None:
    with _DOCUMENT_CLASS_CACHE_LOCK:
        _DOCUMENT_CLASS_CACHE.clear()


__all__ = [
    "detect_document_class",
    "cached_document_class",
    "clear_document_class_cache",
]
