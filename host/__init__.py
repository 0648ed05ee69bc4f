"""WebSocket host: wraps the Da Vinci Code session with networking."""

from .server import ClientSession, HostServer

__all__ = ["ClientSession", "HostServer"]
