# protocol/__init__.py

from .commands import (
    Command,
    CommandKind,
    SwitchState,
    build_set_relay,
    build_set_output,
    encode_command,
)
from .dispatcher import CommandDispatcher

__all__ = [
    "Command", "CommandKind", "SwitchState",
    "build_set_relay", "build_set_output", "encode_command",
    "CommandDispatcher"]
