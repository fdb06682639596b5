from __future__ import annotations

import errno
import logging
import socket
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, List, Optional, Sequence

from zk import ZK
from zk.exception import ZKError, ZKErrorConnection, ZKErrorResponse, ZKNetworkError

from ..common.datetime_utils import now_utc
from ..core.constants import (
    DEFAULT_BIND_BACKOFF_SECONDS,
    DEFAULT_BIND_RETRIES,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_INFO_TIMEOUT_SECONDS,
)
from ..core.exceptions import (
    BindConflictError,
    DeviceError,
    DeviceProtocolError,
    DeviceTimeout,
    DeviceUnreachable,
)
from .client import DeviceClient
from .model import DeviceInfo, DeviceSession, RawPunch
from .retry import retry_on_bind_conflict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZKClientOptions:
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    info_timeout: float = DEFAULT_INFO_TIMEOUT_SECONDS
    bind_retries: int = DEFAULT_BIND_RETRIES
    bind_backoff: float = DEFAULT_BIND_BACKOFF_SECONDS
    password: int = 0
    force_udp: bool = False
    omit_ping: bool = True


def _chain(exc: BaseException):
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        yield exc
        exc = exc.__cause__ or exc.__context__


def _is_timeout(exc: BaseException) -> bool:
    for e in _chain(exc):
        if isinstance(e, (socket.timeout, TimeoutError)):
            return True
        if "timed out" in str(e).lower():
            return True
    return False


def _is_bind_conflict(exc: BaseException) -> bool:
    return any(isinstance(e, OSError) and e.errno == errno.EADDRINUSE for e in _chain(exc))


def _translate(address: str, exc: BaseException, *, during: str) -> DeviceError:
    """Map pyzk / socket failures onto the device error taxonomy."""
    if isinstance(exc, DeviceError):
        return exc
    if _is_bind_conflict(exc):
        return BindConflictError(address, f"{during}: local port already in use")
    if _is_timeout(exc):
        return DeviceTimeout(address, f"{during} timed out")
    if isinstance(exc, ZKErrorResponse):
        return DeviceProtocolError(address, f"{during}: {exc}")
    if isinstance(exc, (ZKNetworkError, ZKErrorConnection, OSError)):
        if during == "connect":
            return DeviceUnreachable(address, f"{during}: {exc}")
        return DeviceProtocolError(address, f"{during}: {exc}")
    return DeviceProtocolError(address, f"{during}: unexpected {type(exc).__name__}: {exc}")


def _set_socket_timeout(handle: Any, seconds: float) -> None:
    # pyzk fixes one timeout at construction; fetching a full log needs longer.
    sock = getattr(handle, "_ZK__sock", None)
    if sock is not None:
        sock.settimeout(seconds)


def _probe(fn: Optional[Callable[[], Any]]):
    # Older firmware lacks some info commands; absence is not an error.
    if fn is None:
        return None
    try:
        return fn()
    except (ZKError, OSError, ValueError) as e:
        logger.debug("Device info probe %s failed: %s", getattr(fn, "__name__", fn), e)
        return None


def attendance_to_raw(att: Any) -> RawPunch:
    """pyzk ``Attendance`` -> plain dict, preserving every field it carries."""
    return {
        "user_id": getattr(att, "user_id", None),
        "uid": getattr(att, "uid", None),
        "timestamp": getattr(att, "timestamp", None),
        "status": getattr(att, "status", None),
        "punch": getattr(att, "punch", None),
    }


def within_range(ts: Optional[datetime], since: Optional[date], until: Optional[date]) -> bool:
    if not isinstance(ts, datetime):
        # Keep undated rows; the transform rejects and counts them.
        return True
    d = ts.date()
    if since and d < since:
        return False
    if until and d > until:
        return False
    return True


class ZKDeviceClient(DeviceClient):
    """DeviceClient adapter for ZKTeco terminals via pyzk."""

    def __init__(self, options: ZKClientOptions | None = None, *, zk_factory: Callable[..., Any] = ZK, sleep=None):
        self._options = options or ZKClientOptions()
        self._zk_factory = zk_factory
        self._sleep = sleep

    def _open(self, address: str, port: int, attempt: int):
        zk = self._zk_factory(
            address,
            port=int(port),
            timeout=self._options.connect_timeout,
            password=self._options.password,
            force_udp=self._options.force_udp,
            ommit_ping=self._options.omit_ping,
        )
        try:
            return zk.connect()
        except Exception as e:
            raise _translate(address, e, during="connect") from e

    def connect(self, address: str, port: int) -> DeviceSession:
        logger.info("Connecting to device %s:%s", address, port)
        attempts = {"n": 0}

        def attempt_fn(attempt: int):
            attempts["n"] = attempt
            return self._open(address, port, attempt)

        kwargs = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        handle = retry_on_bind_conflict(
            attempt_fn,
            max_attempts=self._options.bind_retries,
            backoff_seconds=self._options.bind_backoff,
            **kwargs,
        )
        return DeviceSession(
            address=address,
            port=int(port),
            handle=handle,
            connected_at=now_utc(),
            attempts=attempts["n"],
        )

    def get_info(self, session: DeviceSession) -> DeviceInfo:
        h = session.handle
        try:
            _set_socket_timeout(h, self._options.info_timeout)
            device_time = h.get_time()
        except Exception as e:
            raise _translate(session.address, e, during="get_time") from e

        return DeviceInfo(
            address=session.address,
            port=session.port,
            device_time=device_time,
            serial_number=_probe(getattr(h, "get_serialnumber", None)),
            firmware_version=_probe(getattr(h, "get_firmware_version", None)),
            device_name=_probe(getattr(h, "get_device_name", None)),
            platform=_probe(getattr(h, "get_platform", None)),
            mac=_probe(getattr(h, "get_mac", None)),
        )

    def fetch_punches(
        self,
        session: DeviceSession,
        *,
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> Sequence[RawPunch]:
        h = session.handle
        try:
            _set_socket_timeout(h, self._options.fetch_timeout)
            h.disable_device()
            try:
                records = h.get_attendance() or []
            finally:
                h.enable_device()
        except Exception as e:
            raise _translate(session.address, e, during="fetch") from e

        punches: List[RawPunch] = [attendance_to_raw(a) for a in records]
        in_range = [p for p in punches if within_range(p.get("timestamp"), since, until)]
        logger.info(
            "Device %s returned %d punches, %d within %s..%s",
            session.address, len(punches), len(in_range), since or "beginning", until or "now",
        )
        return in_range

    def disconnect(self, session: DeviceSession) -> None:
        try:
            session.handle.disconnect()
            logger.info("Disconnected from device %s:%s", session.address, session.port)
        except Exception as e:
            logger.warning("Disconnect from %s failed (ignored): %s", session.address, e)
