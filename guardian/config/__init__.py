"""
Application configuration.

Settings come from environment variables (and .env). Each external
collaborator has a mock mode for local development.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
