"""Screen and audio recording orchestrated around ffmpeg and GNOME Shell screencasts."""

__version__ = "1.0.0"
