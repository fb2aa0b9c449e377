# relayboard/transport/tcp.py
from __future__ import annotations

from typing import Optional

import serial
from serial import SerialException

from .base import Transport
from .errors import TransportIOError, TransportOpenError

DEFAULT_PORT = 17123


class TCPTransport(Transport):
    """
    Raw TCP client transport implemented via pyserial's ``socket://`` handler.

    Notes:
      - read(n) returns whatever arrived within ``timeout`` seconds (possibly b"").
      - A peer that closes the connection surfaces as TransportIOError from read().
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float = 0.1,
        write_timeout: float = 2.0,
    ):
        self.host = host
        self.port = int(port)
        self.timeout = timeout
        self.write_timeout = write_timeout
        self.conn: Optional[serial.SerialBase] = None

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"socket://{host}:{self.port}"

    def open(self) -> None:
        try:
            self.conn = serial.serial_for_url(
                self.url,
                timeout=self.timeout,
                write_timeout=self.write_timeout,
            )
        except (SerialException, ValueError) as e:
            self.conn = None
            raise TransportOpenError(f"could not connect to {self.host}:{self.port}: {e}") from None

    def close(self) -> None:
        if self.conn is not None:
            try:
                self.conn.close()
            finally:
                self.conn = None

    def is_open(self) -> bool:
        return self.conn is not None and self.conn.is_open

    def read(self, n: int) -> bytes:
        conn = self.conn
        if conn is None:
            raise TransportIOError("read while transport not open")

        try:
            return conn.read(n)
        except SerialException as e:
            self.conn = None
            raise TransportIOError(f"TCP read failed (connection lost?): {e}") from None

    def write(self, data: bytes) -> int:
        conn = self.conn
        if conn is None:
            raise TransportIOError("write while transport not open")

        try:
            written = conn.write(data)
        except SerialException as e:
            self.conn = None
            raise TransportIOError(f"TCP write failed (connection lost?): {e}") from None
        return len(data) if written is None else written

    def flush(self) -> None:
        conn = self.conn
        if conn is None:
            raise TransportIOError("flush while transport not open")

        try:
            conn.flush()
        except SerialException as e:
            self.conn = None
            raise TransportIOError(f"TCP flush failed (connection lost?): {e}") from None

    def __repr__(self) -> str:
        return f"TCPTransport(host='{self.host}', port={self.port})"
