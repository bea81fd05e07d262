"""
Entry point for `python -m cluster_genesis`.

Usage::

    python -m cluster_genesis keygen new -o identity.json
    python -m cluster_genesis genesis --bootstrap-validator ... --ledger ./ledger
    python -m cluster_genesis verify ./ledger
"""

from __future__ import annotations

import sys
from typing import Callable, Sequence

from cluster_genesis.cli import genesis, keygen, verify

COMMANDS: dict[str, Callable[[Sequence[str] | None], int]] = {
    "keygen": keygen.main,
    "genesis": genesis.main,
    "verify": verify.main,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Dispatch to the named command."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] not in COMMANDS:
        names = ", ".join(COMMANDS)
        print(f"usage: python -m cluster_genesis {{{names}}} ...", file=sys.stderr)
        return 2
    return COMMANDS[args[0]](args[1:])


if __name__ == "__main__":
    raise SystemExit(main())
