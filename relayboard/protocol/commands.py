"""Wire format for the DSxxx relay board.

One ASCII command per line, newline-terminated:

    SR <index> <on|off> <period_ms>\\n    set relay (period 0 = latch)
    SO <index> <on|off>\\n                set output

The board defines no reply protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from relayboard.core.errors import CommandValidationError

INDEX_MIN = 1
INDEX_MAX = 32
PERIOD_MIN_MS = 0
PERIOD_MAX_MS = 10000

LINE_TERMINATOR = "\n"
WIRE_ENCODING = "latin-1"


class CommandKind(str, Enum):
    SET_RELAY = "SR"
    SET_OUTPUT = "SO"


class SwitchState(str, Enum):
    ON = "on"
    OFF = "off"

    @classmethod
    def parse(cls, value: Union["SwitchState", str]) -> "SwitchState":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise CommandValidationError(
            f"Invalid state {value!r}.",
            hint="Use 'on' or 'off'.",
            details={"field": "state", "value": value},
        )


@dataclass(frozen=True)
class Command:
    """
    One board command. Validated on construction; never holds an
    out-of-range index or period.
    """
    kind: CommandKind
    index: int
    state: SwitchState
    period_ms: Optional[int] = None

    def __post_init__(self) -> None:
        _check_int("index", self.index, INDEX_MIN, INDEX_MAX)

        if not isinstance(self.state, SwitchState):
            raise CommandValidationError(
                f"Invalid state {self.state!r}.",
                hint="Use SwitchState.ON or SwitchState.OFF.",
                details={"field": "state", "value": self.state},
            )

        if self.kind is CommandKind.SET_RELAY:
            if self.period_ms is None:
                raise CommandValidationError(
                    "Relay command requires period_ms.",
                    hint=f"Use {PERIOD_MIN_MS} for a latching change.",
                    details={"field": "period_ms"},
                )
            _check_int("period_ms", self.period_ms, PERIOD_MIN_MS, PERIOD_MAX_MS)
        elif self.period_ms is not None:
            raise CommandValidationError(
                "Output command does not take period_ms.",
                details={"field": "period_ms", "value": self.period_ms},
            )

    @property
    def name(self) -> str:
        return self.kind.name

    def to_line(self) -> str:
        """Command text without the line terminator."""
        parts = [self.kind.value, str(self.index), self.state.value]
        if self.kind is CommandKind.SET_RELAY:
            parts.append(str(self.period_ms))
        return " ".join(parts)

    def encode(self) -> bytes:
        return (self.to_line() + LINE_TERMINATOR).encode(WIRE_ENCODING)

    def as_dict(self) -> dict:
        out = {"index": self.index, "state": self.state.value}
        if self.period_ms is not None:
            out["period_ms"] = self.period_ms
        return out


def build_set_relay(index: int, state: Union[SwitchState, str], period_ms: int = 0) -> Command:
    return Command(CommandKind.SET_RELAY, index, SwitchState.parse(state), period_ms)


def build_set_output(index: int, state: Union[SwitchState, str]) -> Command:
    return Command(CommandKind.SET_OUTPUT, index, SwitchState.parse(state))


def encode_command(cmd: Command) -> bytes:
    return cmd.encode()


def _check_int(field: str, value: Any, lo: int, hi: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise CommandValidationError(
            f"{field} must be an integer, got {type(value).__name__}.",
            details={"field": field, "value": value},
        )
    if not lo <= value <= hi:
        raise CommandValidationError(
            f"{field} {value} out of range [{lo}, {hi}].",
            details={"field": field, "value": value, "min": lo, "max": hi},
        )
