# relayboard/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConnectionState(str, Enum):
    """Lifecycle of the single board connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    BAD_CONFIG = "bad_config"


@dataclass(frozen=True)
class StatusEvent:
    """
    One connection status report. `message` carries the reason for
    ERROR / BAD_CONFIG and is otherwise optional.
    """
    state: ConnectionState
    message: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def __str__(self) -> str:
        if self.message:
            return f"{self.state.value}: {self.message}"
        return self.state.value
