"""Command-line front door for lazynav.

Builds a navigation session over local folders, applies requested
expand/collapse toggles, and prints the visible tree plus optional ranked
search results.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .config import load_expanded_node_ids, load_settings
from .errors import NavigationError, UnknownNodeError
from .expansion import ConfigExpandedNodeStore, ExpandedNodeStore, MemoryExpandedNodeStore
from .session import NavigationSession
from .sources import LocalFilesystemGateway
from .tree_model import format_tree_rows

logger = logging.getLogger(__name__)

WAIT_SECONDS_FLOOR = 1.0


class StdoutWorkbox:
    """Workbox that "opens" a tab by printing its target."""

    def open_or_create_tab(self, target_id: str) -> str:
        return target_id

    def open_tab(self, tab: str) -> None:
        sys.stdout.write(f"open {tab}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazynav",
        description="Browse local folders as a lazily expanded navigation tree.",
    )
    parser.add_argument("roots", nargs="*", help="Local root folders. Defaults to config or the current directory.")
    parser.add_argument("--expand", action="append", default=[], metavar="ID", help="Expand node ID (repeatable).")
    parser.add_argument("--collapse", action="append", default=[], metavar="ID", help="Collapse node ID (repeatable).")
    parser.add_argument("--open", action="append", default=[], metavar="ID", help="Open file/app node ID.")
    parser.add_argument("--search", metavar="TERM", help="Run a ranked search and print results.")
    parser.add_argument("--show-hidden", action="store_true", help="Include dotfiles in listings and search.")
    parser.add_argument(
        "--partial-search",
        action="store_true",
        help="Publish results from providers that succeeded even if another failed.",
    )
    parser.add_argument("--no-persist", action="store_true", help="Do not write expanded state to config.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def _resolve_roots(raw_roots: list[str], configured: tuple[Path, ...]) -> list[Path]:
    if raw_roots:
        return [Path(raw) for raw in raw_roots]
    if configured:
        return list(configured)
    return [Path.cwd()]


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments, run one navigation pass, and return an exit status."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    failures: list[NavigationError] = []

    def notify(failure: NavigationError) -> None:
        failures.append(failure)
        logger.warning("%s", failure)

    settings = load_settings()
    overrides: dict[str, object] = {}
    if args.show_hidden:
        overrides["show_hidden"] = True
    if args.partial_search:
        overrides["search_join_policy"] = "partial"
    settings = replace(settings, **overrides)

    roots = _resolve_roots(args.roots, settings.local_roots)
    for root in roots:
        if not root.exists():
            raise SystemExit(f"Path not found: {root}")

    store: ExpandedNodeStore
    if args.no_persist:
        store = MemoryExpandedNodeStore(load_expanded_node_ids())
    else:
        store = ConfigExpandedNodeStore(on_failure=notify)

    gateway = LocalFilesystemGateway(roots, show_hidden=settings.show_hidden)
    wait_seconds = max(WAIT_SECONDS_FLOOR, settings.fetch_timeout_seconds + settings.debounce_seconds)

    with NavigationSession(gateway, store, StdoutWorkbox(), settings=settings, notify=notify) as session:
        session.load_sources()
        session.wait_idle(wait_seconds)

        for intent, node_ids in ((session.expand, args.expand), (session.collapse, args.collapse)):
            for node_id in node_ids:
                try:
                    intent(node_id)
                except UnknownNodeError as exc:
                    notify(exc)
                    continue
                session.wait_idle(wait_seconds)

        for node_id in args.open:
            if not session.open(node_id):
                sys.stderr.write(f"not openable: {node_id}\n")

        sys.stdout.write(format_tree_rows(session.visible_rows()) + "\n")

        if args.search is not None:
            session.search(args.search)
            session.wait_idle(wait_seconds)
            for result in session.search_results or []:
                label = f"  ({result.label})" if result.label else ""
                sys.stdout.write(f"{result.relevance:6.2f}  {result.title}{label}\n")

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
