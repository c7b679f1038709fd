"""Configuration module."""

from screenrecorder.config.settings import (
    EnvironmentSettings,
    FFmpegSettings,
    ScreencastSettings,
    Settings,
    get_settings,
)

__all__ = [
    "EnvironmentSettings",
    "FFmpegSettings",
    "ScreencastSettings",
    "Settings",
    "get_settings",
]
