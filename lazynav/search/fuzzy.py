from __future__ import annotations

import os
from pathlib import Path

_PROJECT_FILES_CACHE: dict[tuple[Path, bool], list[Path]] = {}
MAX_LOCAL_SEARCH_RESULTS = 200

# Relevance tiers: a name hit outranks a path hit, which outranks a fuzzy hit.
NAME_SUBSTRING_RELEVANCE = 3.0
PATH_SUBSTRING_RELEVANCE = 2.0
FUZZY_RELEVANCE = 1.0


def clear_project_files_cache() -> None:
    _PROJECT_FILES_CACHE.clear()


def invalidate_project_files(path: Path) -> None:
    """Drop cached file lists for roots that contain or sit under ``path``."""
    target = path.resolve()
    for key in list(_PROJECT_FILES_CACHE):
        root = key[0]
        if root == target or root in target.parents or target in root.parents:
            _PROJECT_FILES_CACHE.pop(key, None)


def collect_project_files(root: Path, show_hidden: bool) -> list[Path]:
    root = root.resolve()
    cache_key = (root, show_hidden)
    cached = _PROJECT_FILES_CACHE.get(cache_key)
    if cached is not None:
        return list(cached)

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        if not show_hidden:
            dirnames[:] = [name for name in dirnames if not name.startswith(".")]
            filenames = [name for name in filenames if not name.startswith(".")]
        dirnames.sort(key=str.lower)
        filenames.sort(key=str.lower)
        for filename in filenames:
            path = base / filename
            if path.is_file():
                files.append(path)

    files.sort(key=lambda p: to_project_relative(p, root).casefold())
    _PROJECT_FILES_CACHE[cache_key] = files
    return list(files)


def to_project_relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def fuzzy_score(query: str, candidate: str) -> int | None:
    if not query:
        return 0
    query_folded = query.casefold()
    candidate_folded = candidate.casefold()

    score = 0
    prev_idx = -1
    run = 0
    for needle in query_folded:
        idx = candidate_folded.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            gap = idx - prev_idx - 1
            run = 0
            score -= min(40, gap * 2)
        if idx == 0 or candidate_folded[idx - 1] in "/_- .":
            score += 35
        prev_idx = idx

    score -= len(candidate_folded) // 5
    return score


def label_relevance(query: str, label: str) -> float | None:
    """Return a tiered relevance for ``label`` or ``None`` when it does not match.

    The fractional part orders hits inside a tier and always stays below 1,
    so one preferred-kind bonus can lift a result by exactly one tier.
    """
    query_folded = query.casefold()
    label_folded = label.casefold()
    name_folded = label_folded.rsplit("/", 1)[-1]

    name_idx = name_folded.find(query_folded)
    if name_idx >= 0:
        return NAME_SUBSTRING_RELEVANCE + _tier_fraction(name_idx * 50 + len(name_folded))
    path_idx = label_folded.find(query_folded)
    if path_idx >= 0:
        return PATH_SUBSTRING_RELEVANCE + _tier_fraction(path_idx * 50 + len(label_folded))
    score = fuzzy_score(query, label)
    if score is None:
        return None
    return FUZZY_RELEVANCE + _tier_fraction(max(0, 1_000 - score))


def _tier_fraction(penalty: int) -> float:
    return 1.0 / (2.0 + max(0, penalty))


def rank_project_files(
    query: str,
    roots: list[Path],
    show_hidden: bool,
    limit: int = MAX_LOCAL_SEARCH_RESULTS,
) -> list[tuple[Path, float]]:
    """Return ``(path, relevance)`` for matching files, best first."""
    if not query:
        return []
    scored: list[tuple[float, int, Path]] = []
    order = 0
    for root in roots:
        resolved_root = root.resolve()
        for path in collect_project_files(resolved_root, show_hidden):
            relevance = label_relevance(query, to_project_relative(path, resolved_root))
            if relevance is None:
                continue
            scored.append((relevance, order, path))
            order += 1
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [(path, relevance) for relevance, _order, path in scored[: max(1, limit)]]
