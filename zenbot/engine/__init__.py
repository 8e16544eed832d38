"""Event dispatch engine."""

from zenbot.engine.loop import ZenLoop

__all__ = ["ZenLoop"]
