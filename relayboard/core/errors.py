# relayboard/core/errors.py
from __future__ import annotations


class RelayBoardError(Exception):
    """
    Base class for all expected operational errors in relayboard.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, host adapters, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration errors (no network access yet)
# ---------------------------------------------------------------------------

class ConfigError(RelayBoardError):
    """
    Configuration is missing or malformed.

    Examples:
      - no target host
      - port outside 1..65535
      - config file missing its root node or carrying unknown keys
    """
    code = "bad_config"


# ---------------------------------------------------------------------------
# Connection lifecycle errors
# ---------------------------------------------------------------------------

class ConnectionFailureError(RelayBoardError):
    """
    The TCP connection to the board could not be established or was lost.

    Examples:
      - connection refused / host unreachable
      - DNS failure
      - peer reset while connected
    """
    code = "connection_failure"


# ---------------------------------------------------------------------------
# Command errors
# ---------------------------------------------------------------------------

class CommandValidationError(RelayBoardError):
    """
    A command's fields are outside their declared bounds.

    Examples:
      - index outside 1..32
      - period outside 0..10000 ms
      - state other than on/off
    """
    code = "validation_failure"


class UnknownActionError(RelayBoardError):
    """
    The host asked for an action id that is not defined.
    """
    code = "unknown_action"
