"""Configuration management for moodlight.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides with the MOODLIGHT_ prefix.
"""

from moodlight.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
