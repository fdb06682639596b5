from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

# Raw punch exactly as the terminal reported it; keys vary across firmware.
RawPunch = Mapping[str, Any]


@dataclass
class DeviceSession:
    """One exclusive connection to a terminal; never shared between syncs."""

    address: str
    port: int
    handle: Any
    connected_at: datetime
    attempts: int = 1


@dataclass(frozen=True)
class DeviceInfo:
    address: str
    port: int
    device_time: Optional[datetime] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    device_name: Optional[str] = None
    platform: Optional[str] = None
    mac: Optional[str] = None
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "deviceAddress": self.address,
            "port": self.port,
            "deviceTime": self.device_time.isoformat() if self.device_time else None,
            "serialNumber": self.serial_number,
            "firmwareVersion": self.firmware_version,
            "deviceName": self.device_name,
            "platform": self.platform,
            "mac": self.mac,
        }
