# relayboard/runtime/link_worker.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Optional

from relayboard.transport.base import Transport

if TYPE_CHECKING:
    from relayboard.runtime.transport_manager import TransportManager


class LinkWorker(threading.Thread):
    """
    Thread that opens one transport, then drains inbound bytes until stopped
    or the connection drops. Outcomes are reported back to the manager.

    `previous` is the worker this one replaces; it is joined before open() so
    the superseded connection is closed before a new one is attempted.
    """

    def __init__(
        self,
        manager: "TransportManager",
        transport: Transport,
        *,
        read_size: int = 256,
        previous: Optional["LinkWorker"] = None,
    ):
        super().__init__(daemon=True, name=f"relayboard-link-{transport!r}")
        self.manager = manager
        self.transport = transport
        self.read_size = int(read_size)
        self.previous = previous
        self._stop_event = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        previous, self.previous = self.previous, None
        if previous is not None and previous.is_alive():
            previous.join()
        if self._stop_event.is_set():
            return

        try:
            self.transport.open()
        except Exception as e:
            self.manager._on_link_failed(self, e)
            return

        if not self.manager._on_link_up(self):
            # Superseded while connecting: nobody else will close this one.
            self._close_quietly()
            return

        while not self._stop_event.is_set():
            try:
                data = self.transport.read(self.read_size)
            except Exception as e:
                if not self._stop_event.is_set():
                    self.manager._on_link_failed(self, e)
                return

            if data:
                self.manager._on_rx(self, data)

    def stop(self) -> None:
        self._stop_event.set()

    def _close_quietly(self) -> None:
        try:
            self.transport.close()
        except Exception:
            self.manager._log.exception("LINK_CLOSE_FAILED transport=%r", self.transport)
