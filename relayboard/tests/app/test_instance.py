from __future__ import annotations

import time

import pytest

from relayboard.app.config import RelayBoardConfig
from relayboard.app.instance import STATUS_LEVELS, RelayBoardInstance
from relayboard.core.errors import UnknownActionError
from relayboard.runtime.state import ConnectionState
from relayboard.runtime.transport_manager import TransportManager
from relayboard.transport.tcp import TCPTransport


class HostRecorder:
    def __init__(self):
        self.statuses = []
        self.logs = []

    def on_status(self, level, message):
        self.statuses.append((level, message))

    def on_log(self, level, message):
        self.logs.append((level, message))


def _wait_for_level(host: HostRecorder, level: str, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if host.statuses and host.statuses[-1][0] == level:
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def host():
    return HostRecorder()


@pytest.fixture
def make_instance(host):
    created = []

    def _make(cfg: RelayBoardConfig) -> RelayBoardInstance:
        inst = RelayBoardInstance(cfg, on_status=host.on_status, on_log=host.on_log)
        created.append(inst)
        return inst

    yield _make
    for inst in created:
        inst.destroy()


def test_status_levels_cover_every_state():
    assert set(STATUS_LEVELS) == set(ConnectionState)
    assert STATUS_LEVELS[ConnectionState.CONNECTED] == "ok"
    assert STATUS_LEVELS[ConnectionState.CONNECTING] == "warning"
    assert STATUS_LEVELS[ConnectionState.BAD_CONFIG] == "bad_config"


def test_init_without_host_reports_bad_config(make_instance, host):
    inst = make_instance(RelayBoardConfig(host=""))
    inst.init()

    assert host.statuses == [("disconnected", None), ("bad_config", "Target host is not configured")]


def test_connected_actions_write_exact_lines(make_instance, host, board_server):
    inst = make_instance(RelayBoardConfig(host="127.0.0.1", port=board_server.port, read_timeout_s=0.05))
    inst.init()
    assert _wait_for_level(host, "ok")

    assert inst.run_action("set_relay_single", {"index": 1, "state": "on", "period": 500}) is True
    assert inst.run_action("set_output_single", {"index": 32.0, "state": "off"}) is True

    expected = b"SR 1 on 500\nSO 32 off\n"
    assert board_server.wait_for_data(expected) == expected
    assert [lvl for lvl, _ in host.statuses] == ["disconnected", "warning", "ok"]
    assert host.logs == []


def test_action_defaults_are_applied(make_instance, host, board_server):
    inst = make_instance(RelayBoardConfig(host="127.0.0.1", port=board_server.port, read_timeout_s=0.05))
    inst.init()
    assert _wait_for_level(host, "ok")

    assert inst.run_action("set_relay_single", {}) is True
    assert board_server.wait_for_data(b"SR 1 on 0\n") == b"SR 1 on 0\n"


def test_dropped_action_warns_on_log_sink(make_instance, host):
    inst = make_instance(RelayBoardConfig(host=""))
    inst.init()

    assert inst.run_action("set_output_single", {"index": 1, "state": "on"}) is False
    assert host.logs == [("warn", "Not connected to -, command dropped")]


def test_invalid_options_are_logged_not_raised(make_instance, host):
    inst = make_instance(RelayBoardConfig(host=""))
    inst.init()

    assert inst.run_action("set_output_single", {"index": 40, "state": "on"}) is False
    assert len(host.logs) == 1
    level, message = host.logs[0]
    assert level == "error"
    assert message.startswith("Invalid options for set_output_single")


def test_unknown_action_raises(make_instance):
    inst = make_instance(RelayBoardConfig(host=""))
    with pytest.raises(UnknownActionError):
        inst.run_action("nope", {})


def test_network_error_is_forwarded_to_log_sink(make_instance, host, closed_port):
    inst = make_instance(RelayBoardConfig(host="127.0.0.1", port=closed_port))
    inst.init()

    assert _wait_for_level(host, "error", timeout=10.0)
    assert any(lvl == "error" and msg.startswith("Network error:") for lvl, msg in host.logs)


def test_update_config_reconnects_to_new_target(make_instance, host, board_server):
    inst = make_instance(RelayBoardConfig(host=""))
    inst.init()
    assert host.statuses[-1][0] == "bad_config"

    inst.update_config(RelayBoardConfig(host="127.0.0.1", port=board_server.port, read_timeout_s=0.05))
    assert _wait_for_level(host, "ok")
    assert inst.config.host == "127.0.0.1"
    assert host.statuses.count(("disconnected", None)) == 1


def test_destroy_disconnects_and_stops_reporting(make_instance, host, board_server):
    inst = make_instance(RelayBoardConfig(host="127.0.0.1", port=board_server.port, read_timeout_s=0.05))
    inst.init()
    assert _wait_for_level(host, "ok")

    inst.destroy()
    count = len(host.statuses)

    assert inst.manager.status.state is ConnectionState.DISCONNECTED
    assert inst.run_action("set_output_single", {"index": 1, "state": "on"}) is False
    assert len(host.statuses) == count


def test_definitions():
    inst = RelayBoardInstance(RelayBoardConfig())

    assert [f["id"] for f in inst.config_fields()] == ["info", "host", "port"]
    actions = inst.action_definitions()
    assert actions["set_relay_single"]["label"] == "Set Relay State"
    assert actions["set_output_single"]["label"] == "Set Output State"
    assert inst.feedback_definitions() == {}
    assert inst.preset_definitions() == []
    assert inst.variable_definitions() == []


def test_update_config_applies_new_read_timeout(host, board_server):
    timeouts = []

    def factory(h, p, *, timeout):
        timeouts.append(timeout)
        return TCPTransport(h, p, timeout=timeout)

    manager = TransportManager(transport_factory=factory, read_timeout_s=0.05)
    cfg = RelayBoardConfig(host="127.0.0.1", port=board_server.port, read_timeout_s=0.05)
    inst = RelayBoardInstance(cfg, on_status=host.on_status, manager=manager)
    try:
        inst.init()
        assert _wait_for_level(host, "ok")

        inst.update_config(cfg.with_overrides(read_timeout_s=0.2))
        assert _wait_for_level(host, "ok")

        assert timeouts == [0.05, 0.2]
        assert manager.read_timeout_s == 0.2
    finally:
        inst.destroy()
