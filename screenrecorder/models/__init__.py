"""Data models module."""

from screenrecorder.models.recording import (
    BackendKind,
    CaptureRegion,
    RecordingConfig,
    SessionState,
)

__all__ = [
    "BackendKind",
    "CaptureRegion",
    "RecordingConfig",
    "SessionState",
]
