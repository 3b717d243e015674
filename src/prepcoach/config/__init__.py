"""Configuration management."""

from prepcoach.config.settings import (
    EngineConfig,
    Settings,
    TrackingConfig,
    get_settings,
    reload_settings,
)

__all__ = ["EngineConfig", "Settings", "TrackingConfig", "get_settings", "reload_settings"]
