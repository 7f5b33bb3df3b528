"""
Error taxonomy for device commands and API requests
"""

from typing import Optional


class RemoteError(Exception):
    """Base class for failures reported to API callers"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RemoteError):
    """A required request field is missing or invalid"""

    status_code = 400


class DeviceError(RemoteError):
    """A command against a Roku device failed"""

    status_code = 502


class DeviceUnreachable(DeviceError):
    """Connection to the device was refused"""

    status_code = 502


class DeviceTimeout(DeviceError):
    """No response in time, or the device name could not be resolved"""

    status_code = 504


class ProtocolError(DeviceError):
    """The device answered with an error status or an unreadable body"""

    status_code = 502

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
