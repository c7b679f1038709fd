"""Screen capture backends.

Two mechanisms are supported: grabbing frames directly with an ffmpeg process
(X11), and asking the compositor to record through its screencast service
(Wayland). The session picks one per recording with detect_backend_kind().
"""

import logging
import subprocess
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from screenrecorder.capture.screencast import GnomeScreencastClient
from screenrecorder.capture.worker import CompositorCaptureWorker
from screenrecorder.errors import ConfigError
from screenrecorder.ffmpeg.commands import direct_capture_args
from screenrecorder.ffmpeg.runner import FFmpegRunner
from screenrecorder.models.recording import BackendKind, RecordingConfig

if TYPE_CHECKING:
    from screenrecorder.config.settings import EnvironmentSettings, ScreencastSettings
    from screenrecorder.recording.artifacts import ArtifactPaths

logger = logging.getLogger(__name__)


def is_compositor_session(environment: "EnvironmentSettings") -> bool:
    """Check if the desktop session only allows compositor-mediated capture."""
    return environment.session_type.strip().lower() == "wayland"


def detect_backend_kind(environment: "EnvironmentSettings") -> BackendKind:
    """Select the capture backend for the current session type."""
    if is_compositor_session(environment):
        return BackendKind.COMPOSITOR
    return BackendKind.DIRECT


@dataclass
class DirectCaptureHandle:
    """A running frame-grab encoder."""

    process: subprocess.Popen

    @property
    def pid(self) -> int:
        return self.process.pid


@dataclass
class CompositorCaptureHandle:
    """A compositor capture: the worker owning the call and its connection."""

    worker: CompositorCaptureWorker
    client: GnomeScreencastClient


CaptureHandle = DirectCaptureHandle | CompositorCaptureHandle


class CaptureBackend(ABC):
    """Starts and stops raw video capture."""

    kind: BackendKind

    def validate(self, config: RecordingConfig) -> None:
        """Check the config can be recorded, before any process is started."""

    @abstractmethod
    def start(self, config: RecordingConfig, artifacts: "ArtifactPaths") -> CaptureHandle:
        """Begin capturing video."""

    @abstractmethod
    def stop(self, handle: CaptureHandle) -> None:
        """End the capture started with the given handle."""


class DirectCaptureBackend(CaptureBackend):
    """Grabs frames with ffmpeg, writing straight to the resolved path."""

    kind = BackendKind.DIRECT

    def __init__(
        self,
        runner: FFmpegRunner,
        environment: "EnvironmentSettings",
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.runner = runner
        self.environment = environment
        self._sleep = sleep

    def validate(self, config: RecordingConfig) -> None:
        """Reject configs without a capture region (ConfigError)."""
        if config.region is None:
            raise ConfigError("Direct capture needs a screen region")

    def start(self, config: RecordingConfig, artifacts: "ArtifactPaths") -> DirectCaptureHandle:
        """Wait for the start delay, then spawn the grab encoder.

        Raises:
            ConfigError: If no capture region is given
            ProcessSpawnError: If the encoder cannot be started
        """
        self.validate(config)

        args = direct_capture_args(
            region=config.region,
            frame_rate=config.frame_rate,
            grab_format=self.runner.settings.grab_input_format,
            display=self.environment.display,
            draw_cursor=config.draw_cursor,
            follow_cursor=config.follow_cursor,
            crf=self.runner.settings.video_quality_crf,
            output=artifacts.output,
        )

        if config.start_delay > 0:
            logger.info(f"Waiting {config.start_delay:g}s before recording")
            # TODO: let stop() interrupt this wait; it currently blocks the control thread
            self._sleep(config.start_delay)

        process = self.runner.spawn(args, "video capture")
        return DirectCaptureHandle(process=process)

    def stop(self, handle: CaptureHandle) -> None:
        if not isinstance(handle, DirectCaptureHandle):
            raise TypeError(f"Not a direct capture handle: {handle!r}")
        self.runner.terminate(handle.process, "video capture")


class CompositorCaptureBackend(CaptureBackend):
    """Records through the GNOME Shell screencast service.

    The compositor always writes its own native container to
    <resolved path>.temp; the pipeline transcodes it afterwards.
    """

    kind = BackendKind.COMPOSITOR

    def __init__(
        self,
        settings: "ScreencastSettings",
        client_factory: Callable[["ScreencastSettings"], GnomeScreencastClient] = GnomeScreencastClient,
    ):
        self.settings = settings
        self._client_factory = client_factory
        self._active_worker: CompositorCaptureWorker | None = None

    def start(self, config: RecordingConfig, artifacts: "ArtifactPaths") -> CompositorCaptureHandle:
        """Connect to the compositor and start the capture worker.

        Raises:
            IPCError: If the session bus cannot be reached
        """
        if self._active_worker is not None and self._active_worker.is_alive:
            logger.warning("Previous compositor capture still active, stopping it")
            self._active_worker.request_stop()

        if config.follow_cursor:
            logger.debug("Cursor following is not supported by the compositor backend")

        client = self._client_factory(self.settings)
        client.connect()

        worker = CompositorCaptureWorker(
            client=client,
            file_template=artifacts.compositor_raw,
            region=config.region,
            frame_rate=config.frame_rate,
            draw_cursor=config.draw_cursor,
        )
        worker.start()
        self._active_worker = worker
        return CompositorCaptureHandle(worker=worker, client=client)

    def stop(self, handle: CaptureHandle) -> None:
        """Stop the screencast, then release the worker and its connection.

        Raises:
            IPCError: If StopScreencast fails
        """
        if not isinstance(handle, CompositorCaptureHandle):
            raise TypeError(f"Not a compositor capture handle: {handle!r}")
        try:
            if not handle.client.stop_screencast():
                logger.warning("Compositor reported no screencast to stop")
        finally:
            handle.worker.request_stop()
            handle.worker.join(self.settings.worker_join_timeout)
            handle.client.close()
            if self._active_worker is handle.worker:
                self._active_worker = None
