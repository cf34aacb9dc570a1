"""Configuration module for the Portfolio Dashboard backend."""

from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
