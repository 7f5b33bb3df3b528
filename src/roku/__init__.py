"""
Roku ECP module for device control
"""

from .ecp_client import RokuEcpClient
from .errors import (
    RemoteError, ValidationError, DeviceError,
    DeviceUnreachable, DeviceTimeout, ProtocolError
)

__all__ = [
    'RokuEcpClient', 'RemoteError', 'ValidationError', 'DeviceError',
    'DeviceUnreachable', 'DeviceTimeout', 'ProtocolError'
]
