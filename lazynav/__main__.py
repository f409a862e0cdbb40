"""Module entrypoint for ``python -m lazynav``.

This keeps module-mode execution behavior identical to the console script.
All argument parsing and session setup happen in ``lazynav.cli``.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
