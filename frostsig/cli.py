"""Command-line entry point that runs a FROST server or client.

Usage::

    frostsig server keygen <participants> <threshold>
    frostsig server sign <participants> <threshold>
    frostsig client keygen <path>
    frostsig client sign <path>
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Coroutine, Sequence
from typing import Any

from .client import run_keygen_client, run_sign_client
from .server import run_keygen_server, run_sign_server

HOST = "localhost"
PORT = 3333

_U32_MAX = 2**32 - 1
_MISSING = "Failed to give enough arguments."
_INVALID = "Invalid arguments."


class _UsageError(Exception):
    """Raised when the command line cannot be understood."""


def _arg(args: Sequence[str], index: int) -> str:
    if index >= len(args):
        raise _UsageError(_MISSING)
    return args[index]


def _u32(args: Sequence[str], index: int) -> int:
    text = _arg(args, index)
    digits = text.removeprefix("+")
    if not (digits.isascii() and digits.isdigit()):
        raise _UsageError(_INVALID)
    value = int(digits)
    if value > _U32_MAX:
        raise _UsageError(_INVALID)
    return value


def _operation(args: Sequence[str]) -> Coroutine[Any, Any, None] | None:
    mode = _arg(args, 0)
    operation = _arg(args, 1)
    match (mode, operation):
        case ("server", "keygen"):
            return run_keygen_server(HOST, PORT, _u32(args, 2), _u32(args, 3))
        case ("client", "keygen"):
            return run_keygen_client(HOST, PORT, _arg(args, 2))
        case ("server", "sign"):
            return run_sign_server(HOST, PORT, _u32(args, 2), _u32(args, 3))
        case ("client", "sign"):
            return run_sign_client(HOST, PORT, _arg(args, 2))
        case _:
            return None


def main(argv: Sequence[str] | None = None) -> int:
    """Run the operation named on the command line and return an exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        operation = _operation(args)
    except _UsageError as error:
        print(error, file=sys.stderr)
        return 2
    if operation is None:
        print(_INVALID, file=sys.stderr)
        return 0
    try:
        asyncio.run(operation)
    except Exception as error:  # noqa: BLE001 - every failure is reported the same way
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())