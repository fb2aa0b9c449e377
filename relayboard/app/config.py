# relayboard/app/config.py
from __future__ import annotations

from dataclasses import dataclass, replace

from relayboard.transport.tcp import DEFAULT_PORT


@dataclass(frozen=True)
class RelayBoardConfig:
    host: str = ""
    port: int = DEFAULT_PORT
    connect_timeout_s: float = 5.0
    read_timeout_s: float = 0.1

    def with_overrides(self, **overrides) -> "RelayBoardConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
