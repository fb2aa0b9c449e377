# relayboard/app/instance.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from relayboard.app.actions import ACTIONS, CONFIG_FIELDS, SET_OUTPUT_ACTION, SET_RELAY_ACTION, resolve_options
from relayboard.app.config import RelayBoardConfig
from relayboard.core.errors import CommandValidationError
from relayboard.interfaces.command_sink import CommandSink
from relayboard.protocol.dispatcher import CommandDispatcher
from relayboard.runtime.state import ConnectionState, StatusEvent
from relayboard.runtime.transport_manager import TransportManager

StatusHandler = Callable[[str, Optional[str]], None]   # (level, message)
LogHandler = Callable[[str, str], None]                # (level, message)

STATUS_LEVELS: Dict[ConnectionState, str] = {
    ConnectionState.CONNECTED: "ok",
    ConnectionState.CONNECTING: "warning",
    ConnectionState.ERROR: "error",
    ConnectionState.BAD_CONFIG: "bad_config",
    ConnectionState.DISCONNECTED: "disconnected",
}

_PY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class RelayBoardInstance:
    """
    Host-facing adapter: one configured board, its actions, and status/log
    reporting in the host's vocabulary.

    Lifecycle: init() -> update_config()* -> destroy().
    """

    def __init__(
        self,
        config: RelayBoardConfig,
        *,
        on_status: Optional[StatusHandler] = None,
        on_log: Optional[LogHandler] = None,
        manager: Optional[TransportManager] = None,
        cmd_sink: Optional[CommandSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._on_status = on_status
        self._on_log = on_log
        self._log = logger or logging.getLogger(__name__)

        self._manager = manager or TransportManager(
            read_timeout_s=config.read_timeout_s,
            logger=self._log,
        )
        self._dispatcher = CommandDispatcher(self._manager, cmd_sink=cmd_sink, logger=self._log)
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def config(self) -> RelayBoardConfig:
        return self._config

    @property
    def manager(self) -> TransportManager:
        return self._manager

    # ---------------- Lifecycle ----------------
    def init(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._manager.subscribe(self._forward_status)
        self._manager.configure(self._config.host, self._config.port)

    def update_config(self, config: RelayBoardConfig) -> None:
        self._config = config
        self._manager.set_read_timeout(config.read_timeout_s)
        self.init()

    def destroy(self) -> None:
        self._manager.disconnect()
        if self._unsubscribe:
            try:
                self._unsubscribe()
            finally:
                self._unsubscribe = None
        self._log.debug("INSTANCE_DESTROYED host=%s", self._config.host or "-")

    # ---------------- Definitions ----------------
    def config_fields(self) -> List[Dict[str, Any]]:
        return [dict(f) for f in CONFIG_FIELDS]

    def action_definitions(self) -> Dict[str, Dict[str, Any]]:
        return {
            action_id: {"label": a["label"], "options": [dict(o) for o in a["options"]]}
            for action_id, a in ACTIONS.items()
        }

    def feedback_definitions(self) -> Dict[str, Any]:
        return {}

    def preset_definitions(self) -> List[Any]:
        return []

    def variable_definitions(self) -> List[Any]:
        return []

    # ---------------- Actions ----------------
    def run_action(self, action_id: str, options: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Execute a host action. Returns True if a command was written.
        Invalid options are reported on the log sink, not raised.
        """
        opts = resolve_options(action_id, options)

        try:
            if action_id == SET_RELAY_ACTION:
                sent = self._dispatcher.set_relay(opts["index"], opts["state"], opts["period"])
            elif action_id == SET_OUTPUT_ACTION:
                sent = self._dispatcher.set_output(opts["index"], opts["state"])
            else:
                return False
        except CommandValidationError as e:
            self._emit_log("error", f"Invalid options for {action_id}: {e.message}")
            return False

        if not sent:
            self._emit_log("warn", f"Not connected to {self._config.host or '-'}, command dropped")
        return sent

    # ---------------- Internal ----------------
    def _forward_status(self, event: StatusEvent) -> None:
        level = STATUS_LEVELS[event.state]
        if self._on_status:
            try:
                self._on_status(level, event.message)
            except Exception:
                self._log.exception("HOST_STATUS_HANDLER_ERROR")

        if event.state is ConnectionState.ERROR:
            self._emit_log("error", f"Network error: {event.message}")

    def _emit_log(self, level: str, message: str) -> None:
        self._log.log(_PY_LEVELS.get(level, logging.INFO), "HOST_LOG level=%s msg=%s", level, message)
        if self._on_log:
            try:
                self._on_log(level, message)
            except Exception:
                self._log.exception("HOST_LOG_HANDLER_ERROR")
