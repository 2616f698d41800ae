"""
Configuration management for the Nina SDK.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for endpoints, program ids and policies.
"""

from nina_sdk.config.settings import NinaIds, Settings, get_settings  # noqa: F401

__all__ = ["NinaIds", "Settings", "get_settings"]
