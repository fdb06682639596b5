class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConfigurationError(DomainError):
    """Raised when attendance settings or app configuration are missing or malformed."""


class SettingsConflictError(DomainError):
    """Raised when another writer replaced the current settings version first."""


class DeviceError(DomainError):
    """Base class for failures at the biometric terminal boundary."""

    code = "DEVICE_ERROR"

    def __init__(self, address: str, message: str):
        super().__init__(f"{address}: {message}")
        self.address = address


class DeviceUnreachable(DeviceError):
    """Network-level failure reaching the terminal."""

    code = "DEVICE_UNREACHABLE"


class DeviceTimeout(DeviceError):
    """The terminal did not answer within the bounded wait."""

    code = "DEVICE_TIMEOUT"


class DeviceProtocolError(DeviceError):
    """The terminal answered with a malformed or rejected response."""

    code = "DEVICE_PROTOCOL_ERROR"


class BindConflictError(DeviceUnreachable):
    """Local ephemeral port was already in use; retried inside the device adapter."""

    code = "DEVICE_BIND_CONFLICT"
