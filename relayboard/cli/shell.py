# relayboard/cli/shell.py
"""
Interactive shell over one board connection.

    relay <index> <on|off> [period_ms]
    output <index> <on|off>
    status
    help
    quit
"""

from __future__ import annotations

import shlex
import sys
from typing import TextIO

from relayboard.app.runner import BoardRun
from relayboard.core.errors import CommandValidationError, RelayBoardError

PROMPT = "relayboard> "
HELP = (
    "commands:\n"
    "  relay <index> <on|off> [period_ms]\n"
    "  output <index> <on|off>\n"
    "  status\n"
    "  quit"
)


def run_shell(run: BoardRun, *, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> int:
    def say(text: str) -> None:
        stdout.write(text + "\n")
        stdout.flush()

    say(f"Connected to {run.manager.host}:{run.manager.port}. Type 'help' for commands.")

    while True:
        stdout.write(PROMPT)
        stdout.flush()
        line = stdin.readline()
        if not line:
            break

        try:
            words = shlex.split(line)
        except ValueError as e:
            say(f"ERROR: {e}")
            continue
        if not words:
            continue

        cmd, args = words[0].lower(), words[1:]
        if cmd in ("quit", "exit"):
            break
        if cmd == "help":
            say(HELP)
            continue
        if cmd == "status":
            say(f"status: {run.manager.status}")
            continue

        try:
            if cmd == "relay" and len(args) in (2, 3):
                period = _int_arg(args[2]) if len(args) == 3 else 0
                sent = run.dispatcher.set_relay(_int_arg(args[0]), args[1], period)
            elif cmd == "output" and len(args) == 2:
                sent = run.dispatcher.set_output(_int_arg(args[0]), args[1])
            else:
                say(f"ERROR: unrecognised command {line.strip()!r} (try 'help')")
                continue
        except RelayBoardError as e:
            say(f"ERROR: {e.message}")
            continue

        say("ok" if sent else f"dropped (status: {run.manager.status})")

    return 0


def _int_arg(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise CommandValidationError(f"Expected an integer, got {text!r}.") from None
