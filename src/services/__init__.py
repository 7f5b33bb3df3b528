"""
Server orchestration
"""

from .remote_server import RemoteServer

__all__ = ['RemoteServer']
