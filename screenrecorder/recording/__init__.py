"""Recording orchestration module."""

from screenrecorder.recording.artifacts import ArtifactPaths
from screenrecorder.recording.manager import RecordingManager
from screenrecorder.recording.pipeline import MergeAction, PostProcessPipeline
from screenrecorder.recording.progress import LoggingProgressReporter, ProgressReporter
from screenrecorder.recording.session import RecordingSession

__all__ = [
    "ArtifactPaths",
    "LoggingProgressReporter",
    "MergeAction",
    "PostProcessPipeline",
    "ProgressReporter",
    "RecordingManager",
    "RecordingSession",
]
