# relayboard/transport/errors.py
from __future__ import annotations

class TransportError(Exception):
    """Base class for transport-layer failures."""

class TransportOpenError(TransportError):
    """Connection could not be established (refused, unreachable, DNS failure)."""

class TransportIOError(TransportError):
    """Read/write failed on an established connection, or the peer closed it."""
