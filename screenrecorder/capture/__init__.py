"""Video and audio capture module."""

from screenrecorder.capture.audio import AudioCapture
from screenrecorder.capture.backends import (
    CaptureBackend,
    CaptureHandle,
    CompositorCaptureBackend,
    CompositorCaptureHandle,
    DirectCaptureBackend,
    DirectCaptureHandle,
    detect_backend_kind,
    is_compositor_session,
)
from screenrecorder.capture.screencast import GnomeScreencastClient
from screenrecorder.capture.worker import CompositorCaptureWorker

__all__ = [
    "AudioCapture",
    "CaptureBackend",
    "CaptureHandle",
    "CompositorCaptureBackend",
    "CompositorCaptureHandle",
    "CompositorCaptureWorker",
    "DirectCaptureBackend",
    "DirectCaptureHandle",
    "GnomeScreencastClient",
    "detect_backend_kind",
    "is_compositor_session",
]
