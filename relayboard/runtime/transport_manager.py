# relayboard/runtime/transport_manager.py
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional, Protocol as TypingProtocol

from relayboard.runtime.link_worker import LinkWorker
from relayboard.runtime.state import ConnectionState, StatusEvent
from relayboard.transport.base import Transport
from relayboard.transport.tcp import DEFAULT_PORT, TCPTransport

StatusCallback = Callable[[StatusEvent], None]


class TransportFactory(TypingProtocol):
    def __call__(self, host: str, port: int, *, timeout: float) -> Transport: ...


class TransportManager:
    """
    Owns the single outbound connection to the relay board.

    Responsibilities:
      - (re)configure the target and tear down the previous link first
      - open the link asynchronously (LinkWorker thread) and publish status
      - write raw bytes on the live link; drop them when there is none
      - log, but never interpret, inbound bytes

    All state changes happen under one re-entrant lock, so a `send` never
    observes a half torn-down link and `CONNECTING` is always published before
    the matching `CONNECTED` / `ERROR`.
    """

    def __init__(
        self,
        *,
        transport_factory: Optional[TransportFactory] = None,
        read_timeout_s: float = 0.1,
        read_size: int = 256,
        join_timeout_s: float = 2.0,
        logger: Optional[logging.Logger] = None,
    ):
        self._factory: TransportFactory = transport_factory or TCPTransport
        self._read_timeout_s = float(read_timeout_s)
        self._read_size = int(read_size)
        self._join_timeout_s = float(join_timeout_s)
        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.RLock()

        self._host: str = ""
        self._port: int = DEFAULT_PORT
        self._config_error: Optional[str] = "Target host is not configured"

        self._transport: Optional[Transport] = None
        self._link: Optional[LinkWorker] = None
        self._retired: Optional[LinkWorker] = None
        self._connected = False

        self._status = StatusEvent(ConnectionState.DISCONNECTED)
        self._status_cbs: List[StatusCallback] = []

    # ---------------- State ----------------
    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def read_timeout_s(self) -> float:
        return self._read_timeout_s

    def set_read_timeout(self, seconds: float) -> None:
        """Applies to transports created from now on (next configure/connect)."""
        with self._lock:
            self._read_timeout_s = float(seconds)

    @property
    def status(self) -> StatusEvent:
        with self._lock:
            return self._status

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def subscribe(self, cb: StatusCallback, *, replay: bool = True) -> Callable[[], None]:
        """
        Register a status observer. With `replay`, the current status is
        delivered immediately so the observer sees a complete sequence.
        """
        with self._lock:
            self._status_cbs.append(cb)
            if replay:
                self._notify(cb, self._status)

        def _unsubscribe() -> None:
            with self._lock:
                if cb in self._status_cbs:
                    self._status_cbs.remove(cb)

        return _unsubscribe

    def wait_settled(self, timeout: Optional[float] = None) -> StatusEvent:
        """Block until the status is anything but CONNECTING (or timeout)."""
        settled = threading.Event()

        def _on_status(event: StatusEvent) -> None:
            if event.state is not ConnectionState.CONNECTING:
                settled.set()

        unsubscribe = self.subscribe(_on_status)
        try:
            settled.wait(timeout)
        finally:
            unsubscribe()
        return self.status

    # ---------------- Lifecycle ----------------
    def configure(self, host: Optional[str], port: Any = DEFAULT_PORT) -> None:
        """
        Replace the target. The previous link is closed before anything else;
        an empty host or an invalid port is reported as BAD_CONFIG and no
        connection is attempted.
        """
        with self._lock:
            self._teardown()

            self._host = (host or "").strip()
            resolved = _coerce_port(port)
            self._port = resolved if resolved is not None else DEFAULT_PORT

            if not self._host:
                self._config_error = "Target host is not configured"
            elif resolved is None:
                self._config_error = f"Invalid port {port!r} (expected 1..65535)"
            else:
                self._config_error = None

            self._log.info("CONFIGURE host=%s port=%s", self._host or "-", port)
            self._connect_locked()

    def connect(self) -> None:
        """Start connecting to the configured target. No-op while a link is active."""
        with self._lock:
            self._connect_locked()

    def disconnect(self) -> None:
        """Close the active link, if any, and report DISCONNECTED. Idempotent."""
        with self._lock:
            stale = self._teardown()
            self._publish(ConnectionState.DISCONNECTED)
        self._join(stale)

    def close(self) -> None:
        self.disconnect()

    def __enter__(self) -> "TransportManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    # ---------------- Data path ----------------
    def send(self, data: bytes) -> bool:
        """
        Write `data` on the live link. Returns False (and logs) when there is
        no live link or the write fails; never raises.
        """
        with self._lock:
            transport = self._transport if self._connected else None
            if transport is None:
                self._log.warning(
                    "SEND_DROPPED_NOT_CONNECTED host=%s state=%s data=%r",
                    self._host or "-",
                    self._status.state.value,
                    bytes(data),
                )
                return False

            try:
                transport.write(data)
                transport.flush()
            except Exception as e:
                self._log.error("SEND_FAILED host=%s port=%s err=%s", self._host, self._port, e)
                self._fail_locked(e)
                return False

            self._log.debug("SENT host=%s port=%s data=%r", self._host, self._port, bytes(data))
            return True

    # ---------------- LinkWorker callbacks ----------------
    def _on_link_up(self, worker: LinkWorker) -> bool:
        with self._lock:
            if worker is not self._link or worker.stopped:
                self._log.debug("STALE_LINK_UP transport=%r", worker.transport)
                return False
            self._connected = True
            self._log.info("LINK_UP host=%s port=%s", self._host, self._port)
            self._publish(ConnectionState.CONNECTED)
            return True

    def _on_link_failed(self, worker: LinkWorker, err: BaseException) -> None:
        with self._lock:
            if worker is not self._link:
                self._log.debug("STALE_LINK_ERROR transport=%r err=%s", worker.transport, err)
                return
            self._fail_locked(err)

    def _on_rx(self, worker: LinkWorker, data: bytes) -> None:
        # No reply protocol is defined for the board; inbound bytes are only logged.
        self._log.debug("RX host=%s len=%d data=%r", self._host, len(data), data)

    # ---------------- Internal ----------------
    def _connect_locked(self) -> None:
        if self._config_error is not None:
            self._log.warning("CONNECT_SKIPPED_BAD_CONFIG reason=%s", self._config_error)
            self._publish(ConnectionState.BAD_CONFIG, self._config_error)
            return

        if self._link is not None:
            return

        try:
            transport = self._factory(self._host, self._port, timeout=self._read_timeout_s)
        except Exception as e:
            self._log.exception("TRANSPORT_CREATE_FAILED host=%s port=%s", self._host, self._port)
            self._publish(ConnectionState.ERROR, str(e) or type(e).__name__)
            return

        # The new worker waits for the one it replaces before opening.
        previous, self._retired = self._retired, None
        worker = LinkWorker(self, transport, read_size=self._read_size, previous=previous)
        self._transport = transport
        self._link = worker
        self._connected = False

        self._log.info("LINK_CONNECTING host=%s port=%s", self._host, self._port)
        self._publish(ConnectionState.CONNECTING, "Connecting")
        worker.start()

    def _teardown(self) -> Optional[LinkWorker]:
        worker, transport, was_up = self._link, self._transport, self._connected
        self._link = None
        self._transport = None
        self._connected = False

        if worker is None:
            return None

        worker.stop()
        self._retired = worker
        try:
            # A link still opening is closed by its own worker once open() returns.
            if was_up and transport is not None:
                transport.close()
        except Exception:
            self._log.exception("TRANSPORT_CLOSE_FAILED host=%s port=%s", self._host, self._port)
        finally:
            self._log.info("LINK_CLOSED host=%s port=%s", self._host, self._port)
            self._publish(ConnectionState.DISCONNECTED)
        return worker

    def _fail_locked(self, err: BaseException) -> None:
        worker, transport, was_up = self._link, self._transport, self._connected
        self._link = None
        self._transport = None
        self._connected = False

        if worker is not None:
            worker.stop()
            self._retired = worker
        if was_up and transport is not None:
            try:
                transport.close()
            except Exception:
                self._log.exception("TRANSPORT_CLOSE_FAILED host=%s port=%s", self._host, self._port)

        message = str(err) or type(err).__name__
        self._log.error("NETWORK_ERROR host=%s port=%s err=%s", self._host, self._port, message)
        self._publish(ConnectionState.ERROR, message)

    def _publish(self, state: ConnectionState, message: Optional[str] = None) -> None:
        event = StatusEvent(state, message)
        if event == self._status:
            return
        self._status = event
        for cb in list(self._status_cbs):
            self._notify(cb, event)

    def _notify(self, cb: StatusCallback, event: StatusEvent) -> None:
        try:
            cb(event)
        except Exception:
            self._log.exception("STATUS_CALLBACK_ERROR state=%s", event.state.value)

    def _join(self, worker: Optional[LinkWorker]) -> None:
        if worker is None:
            return
        if worker is threading.current_thread() or not worker.is_alive():
            return
        worker.join(timeout=self._join_timeout_s)


def _coerce_port(port: Any) -> Optional[int]:
    if port is None:
        return DEFAULT_PORT
    if isinstance(port, bool):
        return None
    try:
        value = int(port)
    except (TypeError, ValueError):
        return None
    if isinstance(port, float) and value != port:
        return None
    if not 1 <= value <= 65535:
        return None
    return value
