from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import DeviceInfo, DeviceSession, RawPunch


class DeviceClient(Protocol):
    """Narrow contract the sync engine consumes; vendor SDKs adapt behind it.

    ``connect`` raises DeviceUnreachable / DeviceTimeout, ``fetch_punches``
    raises DeviceProtocolError / DeviceTimeout, ``disconnect`` never raises.
    """

    def connect(self, address: str, port: int) -> DeviceSession:
        raise NotImplementedError

    def get_info(self, session: DeviceSession) -> DeviceInfo:
        raise NotImplementedError

    def fetch_punches(
        self,
        session: DeviceSession,
        *,
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> Sequence[RawPunch]:
        raise NotImplementedError

    def disconnect(self, session: DeviceSession) -> None:
        raise NotImplementedError
