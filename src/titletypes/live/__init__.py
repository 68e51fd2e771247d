"""Live view sessions over WebSocket."""

from titletypes.live.session import ViewSession

__all__ = ["ViewSession"]
