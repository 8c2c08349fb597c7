"""Configuration management for contentchecker.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for sensitive values like
the mail API token.
"""

from contentchecker.config.settings import Settings, WatchConfig, load_settings

__all__ = ["Settings", "WatchConfig", "load_settings"]
