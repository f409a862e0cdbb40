"""Public package surface for lazynav.

Exports the navigation session and ``main`` for programmatic CLI invocation.
Most implementation lives in submodules under ``lazynav``.
"""

from __future__ import annotations

from .session import NavigationSession


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = ["NavigationSession", "main"]
