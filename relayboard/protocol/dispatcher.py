# relayboard/protocol/dispatcher.py
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol as TypingProtocol, Union

from relayboard.core.errors import CommandValidationError
from relayboard.interfaces.command_sink import CommandEvent, CommandSink
from .commands import Command, CommandKind, SwitchState, build_set_output, build_set_relay


class CommandSender(TypingProtocol):
    """Minimal send interface the dispatcher needs (TransportManager satisfies it)."""
    def send(self, data: bytes) -> bool: ...


class CommandDispatcher:
    """
    Translates user intents into wire commands and hands them to the sender.
    Fire-and-forget: one write per call, no acknowledgement.
    """

    def __init__(
        self,
        sender: CommandSender,
        *,
        cmd_sink: Optional[CommandSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._sender = sender
        self._cmd_sink = cmd_sink
        self._log = logger or logging.getLogger(__name__)

    def set_relay(self, index: int, state: Union[SwitchState, str], period_ms: int = 0) -> bool:
        cmd = self._build(
            CommandKind.SET_RELAY,
            lambda: build_set_relay(index, state, period_ms),
            {"index": index, "state": state, "period_ms": period_ms},
        )
        return self.dispatch(cmd)

    def set_output(self, index: int, state: Union[SwitchState, str]) -> bool:
        cmd = self._build(
            CommandKind.SET_OUTPUT,
            lambda: build_set_output(index, state),
            {"index": index, "state": state},
        )
        return self.dispatch(cmd)

    def dispatch(self, cmd: Command) -> bool:
        """Send an already-built command. Returns False if it was dropped."""
        raw = cmd.encode()
        self._log.debug("DISPATCH cmd=%s line=%r", cmd.name, cmd.to_line())

        sent = self._sender.send(raw)
        self._emit(cmd.name, "sent" if sent else "dropped", {**cmd.as_dict(), "line": cmd.to_line()})
        return sent

    def _build(self, kind: CommandKind, factory: Callable[[], Command], args: dict) -> Command:
        try:
            return factory()
        except CommandValidationError as e:
            self._log.warning("CMD_REJECTED cmd=%s args=%s err=%s", kind.name, args, e.message)
            self._emit(kind.name, "rejected", {"args": {k: _plain(v) for k, v in args.items()}, "error": e.message})
            raise

    def _emit(self, name: str, kind: str, payload: dict) -> None:
        if self._cmd_sink is None:
            return
        try:
            self._cmd_sink.on_command(CommandEvent(name=name, kind=kind, payload=payload))
        except Exception:
            self._log.exception("CMD_SINK_ERROR cmd=%s", name)


def _plain(value):
    return value.value if isinstance(value, SwitchState) else value
