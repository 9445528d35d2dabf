"""
Package: config
Description: Configuration for eventrelay.

Exposes the global settings instance loaded from environment variables.
"""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
