"""Recording manager keeping exactly one session active."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from screenrecorder.capture.audio import AudioCapture
from screenrecorder.capture.backends import (
    CaptureBackend,
    CompositorCaptureBackend,
    DirectCaptureBackend,
)
from screenrecorder.errors import ConflictDeclined, RecorderError
from screenrecorder.ffmpeg.runner import FFmpegRunner
from screenrecorder.models.recording import BackendKind, RecordingConfig, SessionState
from screenrecorder.playback import PlaybackLauncher
from screenrecorder.recording.pipeline import PostProcessPipeline
from screenrecorder.recording.progress import ProgressReporter
from screenrecorder.recording.session import RecordingSession

if TYPE_CHECKING:
    from screenrecorder.config.settings import Settings

logger = logging.getLogger(__name__)


class RecordingManager:
    """Starts, stops and replays recordings.

    Only one session records at a time: starting a new recording fully stops
    the previous one first. Everything runs on the caller's thread.
    """

    def __init__(
        self,
        settings: "Settings",
        progress: ProgressReporter | None = None,
        confirm_overwrite: Callable[[Path], bool] | None = None,
        runner: FFmpegRunner | None = None,
        backends: dict[BackendKind, CaptureBackend] | None = None,
        launcher: PlaybackLauncher | None = None,
        on_recording_complete: Callable[[RecordingSession], None] | None = None,
    ):
        self.settings = settings
        self.progress = progress
        self.confirm_overwrite = confirm_overwrite
        self._on_recording_complete = on_recording_complete

        # Initialize components
        self.runner = runner or FFmpegRunner(settings.ffmpeg)
        self.backends = backends or {
            BackendKind.DIRECT: DirectCaptureBackend(self.runner, settings.environment),
            BackendKind.COMPOSITOR: CompositorCaptureBackend(settings.screencast),
        }
        self.audio = AudioCapture(self.runner)
        self.pipeline = PostProcessPipeline(self.runner, settings.screencast)
        self.launcher = launcher or PlaybackLauncher(settings.environment)

        # Current (or most recent) session
        self._session: RecordingSession | None = None

        # Session history
        self._completed_sessions: list[RecordingSession] = []
        self._max_history: int = 100

    def _new_session(self) -> RecordingSession:
        return RecordingSession(
            backends=self.backends,
            audio=self.audio,
            pipeline=self.pipeline,
            environment=self.settings.environment,
            progress=self.progress,
            confirm_overwrite=self.confirm_overwrite,
        )

    @property
    def session(self) -> RecordingSession | None:
        """Current or most recent session."""
        return self._session

    @property
    def is_recording(self) -> bool:
        """Check if a session is recording."""
        return self._session is not None and self._session.is_active

    def start_recording(self, config: RecordingConfig) -> RecordingSession | None:
        """Start a new recording.

        Args:
            config: The user's choices for this recording

        Returns:
            The recording session, or None if the user declined to overwrite
            an existing file

        Raises:
            RecorderError: If the recording could not be started
        """
        if self.is_recording:
            logger.warning(
                f"Already recording {self._session.resolved_path}. "
                f"Stopping before starting a new recording"
            )
            self.stop_recording()

        session = self._new_session()
        try:
            session.start(config)
        except ConflictDeclined as e:
            logger.info(f"Recording cancelled: {e}")
            return None
        except RecorderError:
            self._add_to_history(session)
            raise

        self._session = session
        logger.info(f"Recording started: {session.resolved_path}")
        return session

    def stop_recording(self) -> RecordingSession:
        """Stop the current recording and save it.

        Runs the full stop sequence even if nothing is recording.

        Returns:
            The stopped session
        """
        session = self._session
        if session is None:
            logger.info("No recording to stop")
            session = self._new_session()

        was_active = session.is_active
        try:
            session.stop()
        finally:
            if was_active:
                self._add_to_history(session)

        if was_active and session.state == SessionState.FINISHED:
            if self._on_recording_complete:
                self._on_recording_complete(session)

        return session

    def play_recording(self) -> bool:
        """Open the most recent recording.

        Returns:
            True if a player was launched
        """
        path = self._session.resolved_path if self._session else None
        if path is None or not path.exists():
            logger.warning("No recording to play")
            return False

        self.launcher.open(path)
        return True

    def _add_to_history(self, session: RecordingSession) -> None:
        """Add session to history, maintaining max size."""
        self._completed_sessions.append(session)
        if len(self._completed_sessions) > self._max_history:
            self._completed_sessions = self._completed_sessions[-self._max_history:]

    def get_session_history(self, limit: int = 50) -> list[RecordingSession]:
        """Get finished and failed sessions, newest first."""
        sessions = self._completed_sessions.copy()
        sessions.reverse()
        return sessions[:limit]

    def get_stats(self) -> dict[str, object]:
        """Get recording statistics."""
        finished = [s for s in self._completed_sessions if s.state == SessionState.FINISHED]
        failed = [s for s in self._completed_sessions if s.state == SessionState.FAILED]
        return {
            "recording": self.is_recording,
            "current_path": str(self._session.resolved_path)
            if self._session and self._session.resolved_path
            else None,
            "total_finished": len(finished),
            "total_failed": len(failed),
            "total_duration_seconds": sum(s.duration_seconds or 0 for s in finished),
        }
