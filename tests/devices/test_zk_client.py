from __future__ import annotations

import errno
import socket
from datetime import date, datetime
from types import SimpleNamespace

import pytest
from zk.exception import ZKErrorResponse, ZKNetworkError

from src.attendance_sync.attendance_sync.core.exceptions import (
    BindConflictError,
    DeviceProtocolError,
    DeviceTimeout,
    DeviceUnreachable,
)
from src.attendance_sync.attendance_sync.devices.zk_client import ZKClientOptions, ZKDeviceClient


class FakeSocket:
    def __init__(self):
        self.timeouts: list[float] = []

    def settimeout(self, seconds):
        self.timeouts.append(seconds)


class FakeConnection:
    def __init__(self, attendance=None, *, fetch_error=None, disconnect_error=None):
        self._ZK__sock = FakeSocket()
        self.attendance = list(attendance or [])
        self.fetch_error = fetch_error
        self.disconnect_error = disconnect_error
        self.enabled = True
        self.enable_calls = 0

    def disable_device(self):
        self.enabled = False

    def enable_device(self):
        self.enabled = True
        self.enable_calls += 1

    def get_attendance(self):
        if self.fetch_error:
            raise self.fetch_error
        return self.attendance

    def get_time(self):
        return datetime(2024, 1, 8, 9, 0)

    def get_serialnumber(self):
        return "SN-1"

    def get_firmware_version(self):
        raise ZKErrorResponse("unsupported")

    def disconnect(self):
        if self.disconnect_error:
            raise self.disconnect_error


class FakeZKFactory:
    """Stands in for ``zk.ZK``; each call is one connection attempt."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def __call__(self, address, **kwargs):
        self.calls.append({"address": address, **kwargs})
        outcome = self.outcomes.pop(0)

        def connect():
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

        return SimpleNamespace(connect=connect)


def _att(user_id, ts, punch=0, status=1):
    return SimpleNamespace(user_id=user_id, uid=int(user_id), timestamp=ts, status=status, punch=punch)


def _client(outcomes, sleeps=None) -> tuple[ZKDeviceClient, FakeZKFactory]:
    factory = FakeZKFactory(outcomes)
    sleeps = sleeps if sleeps is not None else []
    return ZKDeviceClient(ZKClientOptions(), zk_factory=factory, sleep=sleeps.append), factory


def test_connect_builds_zk_with_timeout_and_port():
    conn = FakeConnection()
    client, factory = _client([conn])

    session = client.connect("10.0.0.5", 4370)

    assert session.handle is conn
    assert session.attempts == 1
    assert factory.calls[0]["port"] == 4370
    assert factory.calls[0]["timeout"] == 10
    assert factory.calls[0]["ommit_ping"] is True


def test_connect_retries_bind_conflict_with_fresh_instance():
    sleeps: list[float] = []
    conn = FakeConnection()
    client, factory = _client([OSError(errno.EADDRINUSE, "in use"), conn], sleeps)

    session = client.connect("10.0.0.5", 4370)

    assert session.handle is conn
    assert session.attempts == 2
    assert len(factory.calls) == 2
    assert sleeps == pytest.approx([0.1])


def test_connect_bind_conflict_ceiling():
    client, _ = _client([OSError(errno.EADDRINUSE, "in use")] * 3)

    with pytest.raises(BindConflictError):
        client.connect("10.0.0.5", 4370)


def test_network_failure_is_unreachable():
    client, factory = _client([ZKNetworkError("can't reach device (ping 10.0.0.5)")])

    with pytest.raises(DeviceUnreachable) as exc:
        client.connect("10.0.0.5", 4370)

    assert exc.value.code == "DEVICE_UNREACHABLE"
    assert len(factory.calls) == 1


def test_connect_timeout_is_device_timeout():
    client, _ = _client([socket.timeout("timed out")])

    with pytest.raises(DeviceTimeout):
        client.connect("10.0.0.5", 4370)


def test_fetch_filters_by_inclusive_dates_and_reenables_device():
    conn = FakeConnection([
        _att("7", datetime(2024, 1, 7, 9, 0)),
        _att("7", datetime(2024, 1, 8, 9, 12)),
        _att("7", datetime(2024, 1, 9, 17, 30), punch=1),
        _att("8", datetime(2024, 1, 10, 9, 0)),
    ])
    client, _ = _client([conn])
    session = client.connect("10.0.0.5", 4370)

    punches = client.fetch_punches(session, since=date(2024, 1, 8), until=date(2024, 1, 9))

    assert [p["timestamp"].day for p in punches] == [8, 9]
    assert punches[1] == {"user_id": "7", "uid": 7, "timestamp": datetime(2024, 1, 9, 17, 30), "status": 1, "punch": 1}
    assert conn.enabled and conn.enable_calls == 1
    assert conn._ZK__sock.timeouts == [25]


def test_fetch_timeout_reenables_device_and_maps_error():
    conn = FakeConnection(fetch_error=ZKNetworkError("timed out"))
    client, _ = _client([conn])
    session = client.connect("10.0.0.5", 4370)

    with pytest.raises(DeviceTimeout):
        client.fetch_punches(session)

    assert conn.enabled


def test_malformed_response_is_protocol_error():
    conn = FakeConnection(fetch_error=ZKErrorResponse("Invalid response"))
    client, _ = _client([conn])
    session = client.connect("10.0.0.5", 4370)

    with pytest.raises(DeviceProtocolError):
        client.fetch_punches(session)


def test_get_info_tolerates_missing_firmware_commands():
    conn = FakeConnection()
    client, _ = _client([conn])
    session = client.connect("10.0.0.5", 4370)

    info = client.get_info(session)

    assert info.device_time == datetime(2024, 1, 8, 9, 0)
    assert info.serial_number == "SN-1"
    assert info.firmware_version is None
    assert info.device_name is None
    assert conn._ZK__sock.timeouts == [5]


def test_disconnect_never_raises():
    conn = FakeConnection(disconnect_error=ZKNetworkError("broken pipe"))
    client, _ = _client([conn])
    session = client.connect("10.0.0.5", 4370)

    client.disconnect(session)
