"""``local-providers`` command line (package entrypoint).

Wires argument parsing to the async handlers in ``cli_actions``. It performs
no provider logic directly.
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Optional

from ..base.logging import LOG_LEVEL_ENV, configure_logger
from .cli_actions import dispatch
from .cli_parser import build_parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint.

    Parameters
    ----------
    argv: Optional[list[str]]
        Argument vector; when ``None`` uses ``sys.argv[1:]``.

    Returns
    -------
    int
        Process exit code (0 success, 1 provider error, 2 usage error).
    """
    args = build_parser().parse_args(list(sys.argv[1:] if argv is None else argv))
    # Quiet by default; structured events go to stderr only when asked for.
    configure_logger(level=args.log_level or os.getenv(LOG_LEVEL_ENV) or "WARNING")
    try:
        return asyncio.run(dispatch(args))
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return 130


__all__ = ["main"]
