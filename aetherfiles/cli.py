"""Command-line entry point for the privileged helper modes."""

from __future__ import annotations

import sys
from typing import List, Optional

from .privileged_ops import run, run_daemon

_USAGE = (
    "usage: aetherfiles --privileged <operation> [args...]\n"
    "       aetherfiles --privileged-daemon"
)


def main(argv: Optional[List[str]] = None) -> int:
    """Dispatch to single-command or daemon mode; return the exit status."""
    argv = sys.argv[1:] if argv is None else list(argv)
    if argv and argv[0] == "--privileged":
        return run(argv[1:], sys.stdout)
    if argv and argv[0] == "--privileged-daemon":
        return run_daemon(sys.stdin, sys.stdout)
    print(_USAGE, file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())