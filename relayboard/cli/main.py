from __future__ import annotations

from pathlib import Path
from typing import Optional

from relayboard.core.errors import RelayBoardError

from relayboard.cli.args import parse_args
from relayboard.cli.commands import (
    configure_console_logging,
    configure_file_logging,
    dispatch,
    resolve_config,
)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_console_logging(args.verbose)
    if args.log_file:
        configure_file_logging(Path(args.log_file))

    try:
        cfg = resolve_config(args)
        rc = dispatch(cfg, args)
        return 2 if rc is None else rc
    except RelayBoardError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
