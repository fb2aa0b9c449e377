# relayboard/app/runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from relayboard.app.config import RelayBoardConfig
from relayboard.core.errors import ConfigError, ConnectionFailureError
from relayboard.core.recording.command import CommandTraceLogger
from relayboard.interfaces.command_sink import CommandSink
from relayboard.protocol.dispatcher import CommandDispatcher
from relayboard.runtime.state import ConnectionState, StatusEvent
from relayboard.runtime.transport_manager import TransportFactory, TransportManager


@dataclass
class BoardRun:
    """A configured manager + dispatcher pair for one CLI invocation."""
    config: RelayBoardConfig
    manager: TransportManager
    dispatcher: CommandDispatcher
    cmd_sink: Optional[CommandSink] = None

    def wait_connected(self) -> StatusEvent:
        """
        Wait for the link to settle; raise unless it ended up CONNECTED.
        """
        status = self.manager.wait_settled(timeout=self.config.connect_timeout_s)
        target = f"{self.manager.host or '-'}:{self.manager.port}"

        if status.state is ConnectionState.CONNECTED:
            return status
        if status.state is ConnectionState.BAD_CONFIG:
            raise ConfigError(
                status.message or "Bad configuration.",
                hint="Pass --host (and --port) or set them in the config file.",
                details={"target": target},
            )
        if status.state is ConnectionState.CONNECTING:
            raise ConnectionFailureError(
                f"Timed out connecting to {target}.",
                hint=f"No answer within {self.config.connect_timeout_s}s; check the board is powered and reachable.",
                details={"target": target},
            )
        raise ConnectionFailureError(
            f"Could not connect to {target}.",
            hint=status.message,
            details={"target": target, "state": status.state.value},
        )

    def stop(self) -> None:
        try:
            self.manager.disconnect()
        finally:
            if self.cmd_sink is not None:
                self.cmd_sink.close()

    def __enter__(self) -> "BoardRun":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def start_run(
    cfg: RelayBoardConfig,
    *,
    trace_path: Optional[Path] = None,
    transport_factory: Optional[TransportFactory] = None,
) -> BoardRun:
    """Build the manager/dispatcher pair and start connecting to `cfg.host`."""
    log = logging.getLogger(__name__)

    cmd_sink: Optional[CommandSink] = None
    if trace_path is not None:
        cmd_sink = CommandTraceLogger(logger=logging.getLogger("commands"), file_path=trace_path)

    manager = TransportManager(
        transport_factory=transport_factory,
        read_timeout_s=cfg.read_timeout_s,
        logger=log,
    )
    dispatcher = CommandDispatcher(manager, cmd_sink=cmd_sink, logger=log)

    manager.configure(cfg.host, cfg.port)
    return BoardRun(config=cfg, manager=manager, dispatcher=dispatcher, cmd_sink=cmd_sink)
