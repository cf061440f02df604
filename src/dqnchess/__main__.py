"""Allow `python -m dqnchess`."""

from __future__ import annotations

from dqnchess.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
