"""Recording session state machine."""

import logging
import subprocess
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from screenrecorder.capture.audio import AudioCapture
from screenrecorder.capture.backends import (
    CaptureBackend,
    CaptureHandle,
    CompositorCaptureHandle,
    DirectCaptureHandle,
    detect_backend_kind,
)
from screenrecorder.errors import ConfigError, ConflictDeclined, IPCError, RecorderError
from screenrecorder.models.recording import BackendKind, RecordingConfig, SessionState
from screenrecorder.recording.artifacts import ArtifactPaths
from screenrecorder.recording.pipeline import MergeAction, PostProcessPipeline
from screenrecorder.recording.progress import (
    STOP_STAGE_COUNT,
    LoggingProgressReporter,
    ProgressReporter,
)

if TYPE_CHECKING:
    from screenrecorder.config.settings import EnvironmentSettings

logger = logging.getLogger(__name__)


def _decline_overwrite(path: Path) -> bool:
    logger.warning(f"{path} already exists and no one confirmed overwriting it")
    return False


class RecordingSession:
    """One screen and/or audio recording, from start to a finished file.

    States: IDLE -> RECORDING -> STOPPING -> FINISHED | FAILED.
    The resolved output path is computed once by start() and never changes.
    A session records once; RecordingManager creates a new one per recording.
    """

    def __init__(
        self,
        backends: Mapping[BackendKind, CaptureBackend],
        audio: AudioCapture,
        pipeline: PostProcessPipeline,
        environment: "EnvironmentSettings",
        progress: ProgressReporter | None = None,
        confirm_overwrite: Callable[[Path], bool] | None = None,
    ):
        self.backends = backends
        self.audio = audio
        self.pipeline = pipeline
        self.environment = environment
        self.progress = progress or LoggingProgressReporter()
        self._confirm_overwrite = confirm_overwrite or _decline_overwrite

        self.state = SessionState.IDLE
        self.backend_kind: BackendKind | None = None
        self.artifacts: ArtifactPaths | None = None
        self.video_handle: CaptureHandle | None = None
        self.audio_process: subprocess.Popen | None = None
        self.post_command: str = ""

        self.started_at: datetime | None = None
        self.ended_at: datetime | None = None
        self.merge_action: MergeAction | None = None
        self.error_message: str | None = None

    @property
    def resolved_path(self) -> Path | None:
        """Path of the finished recording, once started."""
        return self.artifacts.output if self.artifacts else None

    @property
    def audio_process_id(self) -> int | None:
        return self.audio_process.pid if self.audio_process else None

    @property
    def video_process_id(self) -> int | None:
        if isinstance(self.video_handle, DirectCaptureHandle):
            return self.video_handle.pid
        return None

    @property
    def is_active(self) -> bool:
        """Check if session is currently recording."""
        return self.state == SessionState.RECORDING

    @property
    def duration_seconds(self) -> int | None:
        """Recording duration in seconds."""
        if self.started_at is None:
            return None
        end = self.ended_at or datetime.now()
        return int((end - self.started_at).total_seconds())

    def start(self, config: RecordingConfig) -> None:
        """Resolve the output path and launch audio and video capture.

        Args:
            config: The user's choices for this recording

        Raises:
            ConflictDeclined: If the output exists and overwriting was declined.
                Nothing has been started in that case.
            ConfigError: If there is no usable output location
            ProcessSpawnError: If an encoder cannot be started
            IPCError: If the compositor cannot be reached
        """
        if self.state != SessionState.IDLE:
            raise RuntimeError(f"Session already used (state: {self.state.value})")

        try:
            artifacts = ArtifactPaths.resolve(config.output_dir, config.name, config.extension)
        except ConfigError as e:
            self._fail(str(e))
            raise

        if artifacts.output.exists() and not self._confirm_overwrite(artifacts.output):
            raise ConflictDeclined(f"Not overwriting existing file {artifacts.output}")

        self.artifacts = artifacts
        self.backend_kind = detect_backend_kind(self.environment)
        self.post_command = config.post_command
        logger.info(
            f"Starting recording to {artifacts.output} "
            f"({self.backend_kind.value} backend, video={config.record_video}, "
            f"audio={config.record_audio})"
        )

        try:
            if config.record_video:
                self.backends[self.backend_kind].validate(config)
            if config.record_audio:
                self.audio_process = self.audio.start(config.audio_source, artifacts)
            if config.record_video:
                self.video_handle = self.backends[self.backend_kind].start(config, artifacts)
        except BaseException as e:
            self._abort_start()
            self._fail(str(e) or type(e).__name__)
            raise

        self.state = SessionState.RECORDING
        self.started_at = datetime.now()

    def _abort_start(self) -> None:
        """Stop whatever a failed start already launched and drop its output."""
        if self.audio_process is not None:
            self._stop_audio_after_failure(self.audio_process)
            self.audio_process = None
            self.artifacts.audio_raw.unlink(missing_ok=True)

    def _stop_audio_after_failure(self, process: subprocess.Popen) -> None:
        try:
            self.audio.stop(process)
        except RecorderError as e:
            logger.error(f"Could not stop audio capture: {e}")

    def _fail(self, error_message: str) -> None:
        self.state = SessionState.FAILED
        self.ended_at = datetime.now()
        self.error_message = error_message
        logger.error(f"Recording failed: {error_message}")

    def _report(self, stage: int, label: str) -> None:
        self.progress.set_progress(label, stage, STOP_STAGE_COUNT)

    def stop(self) -> Path | None:
        """Stop capturing and turn the artifacts into one finished file.

        Safe to call when nothing is recording: every stage is still reported
        and nothing fails. On error the session becomes FAILED and files
        produced so far stay on disk.

        Returns:
            The finished recording, or None if nothing was saved

        Raises:
            EncoderFailure: If a transcode, merge or convert step fails
            IPCError: If the compositor capture failed or cannot be stopped
            ProcessSignalError: If a capture process cannot be signalled
        """
        was_active = self.is_active
        if was_active:
            self.state = SessionState.STOPPING

        self.progress.show()
        try:
            self._run_stop_stages()
        except (RecorderError, OSError) as e:
            self._fail(str(e))
            raise
        finally:
            self.progress.hide()

        if was_active:
            self.state = SessionState.FINISHED
            self.ended_at = datetime.now()
            logger.info(f"Recording saved: {self.resolved_path} ({self.duration_seconds}s)")

        path = self.resolved_path
        return path if path is not None and path.exists() else None

    def _run_stop_stages(self) -> None:
        video, self.video_handle = self.video_handle, None
        audio, self.audio_process = self.audio_process, None
        post_command, self.post_command = self.post_command, ""
        backend = self.backends[self.backend_kind] if self.backend_kind else None

        self._report(1, "Stop Recording Video")
        try:
            if isinstance(video, DirectCaptureHandle) and backend is not None:
                backend.stop(video)
        except RecorderError:
            if audio is not None:
                self._stop_audio_after_failure(audio)
            raise

        self._report(2, "Stop Recording Audio")
        if audio is not None:
            self.audio.stop(audio)

        self._report(3, "Stop Compositor Recording")
        if isinstance(video, CompositorCaptureHandle) and backend is not None:
            backend.stop(video)
            worker = video.worker
            if worker.error is not None:
                raise worker.error
            if worker.success is False:
                raise IPCError("Compositor refused to start the screencast")
            self.pipeline.transcode_compositor_capture(self.artifacts, worker.output_path)

        self._report(4, "Stage Video Recording")
        if isinstance(video, DirectCaptureHandle):
            self.pipeline.stage_direct_capture(self.artifacts)

        if self.artifacts is not None:
            self._report(5, self.pipeline.plan_merge(self.artifacts).label)
            self.merge_action = self.pipeline.merge_or_convert(self.artifacts)
        else:
            self._report(5, MergeAction.NONE.label)

        self._report(6, "Execute custom command after finish")
        self.pipeline.run_post_command(post_command)

        self._report(STOP_STAGE_COUNT, "Finished")

    def to_dict(self) -> dict:
        """Convert session to dictionary."""
        return {
            "state": self.state.value,
            "backend": self.backend_kind.value if self.backend_kind else None,
            "resolved_path": str(self.resolved_path) if self.resolved_path else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": self.duration_seconds,
            "merge_action": self.merge_action.name if self.merge_action else None,
            "error_message": self.error_message,
        }
