"""Connection management commands."""

from .commands import complete_auth, connect, connections, disconnect

__all__ = ["complete_auth", "connect", "connections", "disconnect"]
