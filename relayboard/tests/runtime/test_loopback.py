from __future__ import annotations

import logging
import time

from relayboard.protocol.dispatcher import CommandDispatcher
from relayboard.runtime.state import ConnectionState as CS
from relayboard.runtime.transport_manager import TransportManager


def _wait_for_state(manager: TransportManager, state: CS, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if manager.status.state is state:
            return True
        time.sleep(0.01)
    return manager.status.state is state


def test_connect_send_disconnect_over_real_socket(board_server):
    manager = TransportManager(read_timeout_s=0.05)
    dispatcher = CommandDispatcher(manager)
    seen = []
    manager.subscribe(seen.append)

    manager.configure("127.0.0.1", board_server.port)
    assert manager.wait_settled(timeout=5.0).state is CS.CONNECTED

    assert dispatcher.set_relay(1, "on", 500) is True
    assert dispatcher.set_output(32, "off") is True

    expected = b"SR 1 on 500\nSO 32 off\n"
    assert board_server.wait_for_data(expected) == expected

    manager.disconnect()
    assert manager.status.state is CS.DISCONNECTED
    assert [e.state for e in seen] == [CS.DISCONNECTED, CS.CONNECTING, CS.CONNECTED, CS.DISCONNECTED]
    assert board_server.connections == 1


def test_inbound_greeting_is_ignored(board_server, caplog):
    caplog.set_level(logging.DEBUG, logger="relayboard.runtime.transport_manager")
    board_server.greeting = b"DS-RELAY READY\r\n"

    manager = TransportManager(read_timeout_s=0.05)
    try:
        manager.configure("127.0.0.1", board_server.port)
        assert manager.wait_settled(timeout=5.0).state is CS.CONNECTED

        assert manager.send(b"SO 1 on\n") is True
        assert board_server.wait_for_data(b"SO 1 on\n") == b"SO 1 on\n"
        assert manager.status.state is CS.CONNECTED
    finally:
        manager.disconnect()


def test_refused_connection_reports_error(closed_port):
    manager = TransportManager(read_timeout_s=0.05)
    manager.configure("127.0.0.1", closed_port)

    status = manager.wait_settled(timeout=10.0)
    assert status.state is CS.ERROR
    assert status.message
    assert manager.send(b"SO 1 on\n") is False
    manager.disconnect()


def test_peer_hang_up_reports_error(board_server):
    board_server.hang_up = True

    manager = TransportManager(read_timeout_s=0.05)
    manager.configure("127.0.0.1", board_server.port)

    assert _wait_for_state(manager, CS.ERROR, timeout=5.0)
    assert manager.is_connected is False
    manager.disconnect()


def test_bad_config_scenario_sends_nothing(board_server, caplog):
    caplog.set_level(logging.WARNING, logger="relayboard.runtime.transport_manager")
    manager = TransportManager()
    dispatcher = CommandDispatcher(manager)

    manager.configure("", 17123)
    assert manager.status.state is CS.BAD_CONFIG

    assert dispatcher.set_output(1, "on") is False
    assert any("SEND_DROPPED_NOT_CONNECTED" in r.getMessage() for r in caplog.records)
    assert board_server.connections == 0
