"""Route group exports."""

from . import analytics, health, routes

__all__ = ["routes", "analytics", "health"]
