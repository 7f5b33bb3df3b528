"""
API module for Roku remote control and discovery
"""

from .main_api import RemoteAPI
from .device_routes import create_device_routes
from .system_routes import create_system_routes

__all__ = ['RemoteAPI', 'create_device_routes', 'create_system_routes']
