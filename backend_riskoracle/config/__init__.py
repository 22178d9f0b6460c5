"""
Configuration management for the risk oracle backend.

Loads and validates settings from environment variables and the optional
.env file. Exposes a single source of truth for database and chain settings.
"""

from backend_riskoracle.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
