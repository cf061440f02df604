"""Run dqnchess from an uninstalled checkout: ``python . train ...``."""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def main(argv: list[str] | None = None) -> int:
    """Dispatch to dqnchess.cli.main using the checkout's sources.

    Args:
        argv: Command-line arguments; defaults to sys.argv[1:].

    Returns:
        Process exit code from the CLI.
    """
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))
    from dqnchess.cli import main as cli_main

    return cli_main(argv)


if __name__ == "__main__":
    sys.exit(main())
