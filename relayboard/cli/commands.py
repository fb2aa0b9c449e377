# relayboard/cli/commands.py
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from relayboard.app.config import RelayBoardConfig
from relayboard.app.loader import load_config
from relayboard.app.runner import BoardRun, start_run
from relayboard.cli.shell import run_shell
from relayboard.runtime.state import ConnectionState

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------- Logging ----------------

def configure_console_logging(verbose: bool = False) -> None:
    """
    Attach a stderr handler to the root logger (idempotent).
    """
    root = logging.getLogger()
    level = logging.DEBUG if verbose else logging.WARNING

    for h in root.handlers:
        if getattr(h, "_relayboard_console", False):
            h.setLevel(level)
            break
    else:
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        sh.setLevel(level)
        sh._relayboard_console = True  # type: ignore[attr-defined]
        root.addHandler(sh)

    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)


def configure_file_logging(app_log_path: Path) -> None:
    """
    Add a file handler to the root logger (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

    if root.level > logging.INFO:
        root.setLevel(logging.INFO)


# ---------------- Config ----------------

def resolve_config(args: argparse.Namespace) -> RelayBoardConfig:
    base = load_config(args.config) if args.config else RelayBoardConfig()
    return base.with_overrides(
        host=args.host,
        port=args.port,
        connect_timeout_s=args.connect_timeout_s,
    )


def _open(cfg: RelayBoardConfig, args: argparse.Namespace) -> BoardRun:
    trace = Path(args.trace) if getattr(args, "trace", None) else None
    return start_run(cfg, trace_path=trace)


# ---------------- Commands ----------------

def cmd_relay(cfg: RelayBoardConfig, args: argparse.Namespace) -> int:
    with _open(cfg, args) as run:
        run.wait_connected()
        sent = run.dispatcher.set_relay(args.index, args.state, args.period_ms)
    print(f"relay {args.index} -> {args.state} ({args.period_ms} ms): {'sent' if sent else 'dropped'}")
    return 0 if sent else 1


def cmd_output(cfg: RelayBoardConfig, args: argparse.Namespace) -> int:
    with _open(cfg, args) as run:
        run.wait_connected()
        sent = run.dispatcher.set_output(args.index, args.state)
    print(f"output {args.index} -> {args.state}: {'sent' if sent else 'dropped'}")
    return 0 if sent else 1


def cmd_status(cfg: RelayBoardConfig, args: argparse.Namespace) -> int:
    with _open(cfg, args) as run:
        status = run.manager.wait_settled(timeout=cfg.connect_timeout_s)
    print(f"Board:  {cfg.host or '-'}:{cfg.port}")
    print(f"Status: {status}")
    return 0 if status.state is ConnectionState.CONNECTED else 1


def cmd_shell(cfg: RelayBoardConfig, args: argparse.Namespace, *, stdin=None, stdout=None) -> int:
    with _open(cfg, args) as run:
        run.wait_connected()
        kwargs = {}
        if stdin is not None:
            kwargs["stdin"] = stdin
        if stdout is not None:
            kwargs["stdout"] = stdout
        return run_shell(run, **kwargs)


COMMANDS = {
    "relay": cmd_relay,
    "output": cmd_output,
    "status": cmd_status,
    "shell": cmd_shell,
}


def dispatch(cfg: RelayBoardConfig, args: argparse.Namespace) -> Optional[int]:
    fn = COMMANDS.get(args.cmd)
    return fn(cfg, args) if fn else None
