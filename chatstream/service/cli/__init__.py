"""chatstream command-line interface (package entrypoint).

Wires argument parsing to the handlers in ``cli_actions`` and ``cli_shell``.
Without a subcommand the interactive shell starts.

Public API re-exports:
- ``main``: CLI entrypoint callable
"""

from __future__ import annotations

import sys
from typing import Optional

from .cli_actions import handle_ask, handle_history, handle_show
from .cli_parser import SUBCOMMANDS, build_parser
from .cli_shell import handle_shell


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint.

    Parameters
    ----------
    argv: Optional[list[str]]
        Argument vector; when ``None`` uses ``sys.argv[1:]``.

    Returns
    -------
    int
        Process exit code (0 success, non-zero on error).
    """
    p = build_parser()
    argv_list = list(sys.argv[1:] if argv is None else argv)
    if not argv_list or (argv_list[0] not in SUBCOMMANDS and argv_list[0] not in {"-h", "--help"}):
        argv_list = ["shell"] + argv_list
    args = p.parse_args(argv_list)

    if args.cmd == "ask":
        return handle_ask(args)
    if args.cmd == "history":
        return handle_history(args)
    if args.cmd == "show":
        return handle_show(args)
    return handle_shell(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
