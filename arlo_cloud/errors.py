"""Client error types for Arlo cloud interactions."""

from __future__ import annotations

from typing import Any


class ArloClientError(Exception):
    """Base error for Arlo cloud client failures."""


class ArloTimeout(ArloClientError):
    """Timeout while communicating with the cloud service."""


class ArloConnectionError(ArloClientError):
    """Network connection to the cloud service failed."""


class ArloResponseError(ArloClientError):
    """HTTP response error from the cloud service."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class ArloAuthenticationError(ArloResponseError):
    """Login rejected or push channel refused the token."""


class ArloFrameError(ArloClientError):
    """Push channel frame could not be decoded."""


class ArloCommandError(ArloClientError):
    """Asynchronous command reply carried an error payload."""

    def __init__(self, error: Any) -> None:
        super().__init__(f"Command failed: {error}")
        self.error = error


class ArloCommandTimeout(ArloClientError):
    """No reply arrived for a pending transaction in time."""

    def __init__(self, trans_id: str) -> None:
        super().__init__(f"Command timed out: {trans_id}")
        self.trans_id = trans_id


class ArloDeviceNotFound(ArloClientError):
    """Device id is not present in the registry."""

    def __init__(self, device_id: str) -> None:
        super().__init__(f"Unknown device: {device_id}")
        self.device_id = device_id


class ArloConfigError(ArloClientError):
    """Configuration file or environment value is invalid."""
