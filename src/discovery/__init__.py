"""
Discovery module for Roku device discovery
"""

from .manager import RokuDiscovery
from .models import DeviceDescriptor, DeviceDirectory, DiscoveryResult, DiscoverySession, MdnsRecord
from .mdns_listener import MdnsListener

__all__ = [
    'RokuDiscovery', 'DeviceDescriptor', 'DeviceDirectory', 'DiscoveryResult',
    'DiscoverySession', 'MdnsRecord', 'MdnsListener'
]
