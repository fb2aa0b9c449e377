# relayboard/cli/args.py
from __future__ import annotations

import argparse
from typing import Optional

from relayboard.protocol.commands import INDEX_MAX, INDEX_MIN, PERIOD_MAX_MS, PERIOD_MIN_MS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relayboard",
        description="Drive a DSxxx relay/output board over raw TCP.",
    )
    parser.add_argument("--config", help="YAML config file (relayboard: {host, port, ...}).")
    parser.add_argument("--host", help="Board IP / hostname (overrides config).")
    parser.add_argument("--port", type=int, help="Board TCP port (default: 17123).")
    parser.add_argument(
        "--connect-timeout",
        type=float,
        dest="connect_timeout_s",
        help="Seconds to wait for the connection (default: 5).",
    )
    parser.add_argument("--trace", help="Append a JSONL record of every command to this file.")
    parser.add_argument("--log-file", help="Also write INFO logs to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_relay = sub.add_parser("relay", help="Set one relay on/off.")
    p_relay.add_argument("index", type=int, help=f"Relay index ({INDEX_MIN}..{INDEX_MAX}).")
    p_relay.add_argument("state", choices=("on", "off"))
    p_relay.add_argument(
        "--period-ms",
        type=int,
        default=0,
        help=f"On time in ms ({PERIOD_MIN_MS}..{PERIOD_MAX_MS}, 0 = latch).",
    )

    p_output = sub.add_parser("output", help="Set one output on/off.")
    p_output.add_argument("index", type=int, help=f"Output index ({INDEX_MIN}..{INDEX_MAX}).")
    p_output.add_argument("state", choices=("on", "off"))

    sub.add_parser("status", help="Connect and report the connection status.")
    sub.add_parser("shell", help="Interactive command shell.")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
