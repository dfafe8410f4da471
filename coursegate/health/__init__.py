"""Health check module."""

from coursegate.health.router import router


__all__ = ["router"]
