"""Shared pytest fixtures."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from screenrecorder.capture.backends import CompositorCaptureBackend, DirectCaptureBackend
from screenrecorder.config.settings import (
    EnvironmentSettings,
    FFmpegSettings,
    ScreencastSettings,
    Settings,
)
from screenrecorder.errors import EncoderFailure
from screenrecorder.ffmpeg.runner import FFmpegRunner
from screenrecorder.models.recording import BackendKind, CaptureRegion, RecordingConfig
from screenrecorder.recording.manager import RecordingManager


def output_of(args: Sequence[str]) -> Path:
    """Output file of an ffmpeg argument list (the argument before -y)."""
    return Path(args[list(args).index("-y") - 1])


class FakeRunner(FFmpegRunner):
    """FFmpegRunner that never starts a process.

    Spawned captures and finished encoders create the file ffmpeg would write.
    """

    def __init__(self, settings: FFmpegSettings):
        super().__init__(settings)
        self.spawned: list[tuple[list[str], str]] = []
        self.runs: list[tuple[list[str], str]] = []
        self.terminated: list[str] = []
        self.fail_on: str | None = None
        self.write_on_spawn = True
        self._pids = itertools.count(1000)

    def spawn(self, args: Sequence[str], purpose: str) -> Any:
        self.spawned.append((list(args), purpose))
        if self.write_on_spawn:
            output_of(args).write_bytes(purpose.encode())
        process = MagicMock()
        process.pid = next(self._pids)
        process.poll.return_value = None
        return process

    def run(self, args: Sequence[str], purpose: str) -> None:
        self.runs.append((list(args), purpose))
        if self.fail_on and self.fail_on in purpose:
            raise EncoderFailure(purpose, 1, "simulated failure")
        output_of(args).write_bytes(purpose.encode())

    def terminate(self, process: Any, purpose: str) -> None:
        self.terminated.append(purpose)

    @property
    def run_purposes(self) -> list[str]:
        return [purpose for _, purpose in self.runs]


class FakeScreencastClient:
    """Stands in for GnomeScreencastClient; writes the native capture file."""

    success = True
    error: Exception | None = None

    def __init__(self, settings: ScreencastSettings, write_file: bool = True):
        self.settings = settings
        self.write_file = write_file
        self.connected = False
        self.calls: list[tuple] = []
        self.recording = threading.Event()

    def connect(self) -> None:
        self.connected = True

    def build_options(self, frame_rate: float, draw_cursor: bool) -> dict:
        return {
            "framerate": ("i", int(round(frame_rate))),
            "draw-cursor": ("b", draw_cursor),
            "pipeline": ("s", self.settings.pipeline),
        }

    def screencast(self, file_template: str, options: dict) -> tuple[bool, str]:
        self.calls.append(("Screencast", file_template, options))
        return self._record(file_template)

    def screencast_area(
        self, x: int, y: int, width: int, height: int, file_template: str, options: dict
    ) -> tuple[bool, str]:
        self.calls.append(("ScreencastArea", x, y, width, height, file_template, options))
        return self._record(file_template)

    def _record(self, file_template: str) -> tuple[bool, str]:
        try:
            if self.error is not None:
                raise self.error
            if not self.success:
                return False, ""
            if self.write_file:
                Path(file_template).write_bytes(b"webm")
            return True, file_template
        finally:
            self.recording.set()

    def stop_screencast(self) -> bool:
        self.calls.append(("StopScreencast",))
        return True

    def close(self) -> None:
        self.connected = False


class RecordingProgress:
    """Collects progress events."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def show(self) -> None:
        self.events.append(("show",))

    def set_progress(self, label: str, value: int, maximum: int) -> None:
        self.events.append((label, value, maximum))

    def hide(self) -> None:
        self.events.append(("hide",))

    @property
    def stages(self) -> list[tuple[str, int, int]]:
        return [e for e in self.events if len(e) == 3]


def make_settings(tmp_path: Path, session_type: str = "x11") -> Settings:
    return Settings(
        ffmpeg=FFmpegSettings(FFMPEG_PATH="ffmpeg", settle_delay=0.0, stop_timeout=1.0),
        screencast=ScreencastSettings(worker_join_timeout=2.0),
        environment=EnvironmentSettings(
            XDG_SESSION_TYPE=session_type, DISPLAY=":1", SNAP=""
        ),
        RECORDING_OUTPUT_DIR=str(tmp_path),
        LOG_LEVEL="DEBUG",
        LOG_PATH="",
        _env_file=None,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings for an X11 session writing to tmp_path."""
    return make_settings(tmp_path)


@pytest.fixture
def wayland_settings(tmp_path: Path) -> Settings:
    """Settings for a Wayland session writing to tmp_path."""
    return make_settings(tmp_path, session_type="wayland")


@pytest.fixture
def runner(settings: Settings) -> FakeRunner:
    """Encoder runner that creates files instead of running ffmpeg."""
    return FakeRunner(settings.ffmpeg)


@pytest.fixture
def progress() -> RecordingProgress:
    """Progress event collector."""
    return RecordingProgress()


@pytest.fixture
def screencast_clients() -> list[FakeScreencastClient]:
    """Every fake screencast client created during a test."""
    return []


@pytest.fixture
def screencast_outcome(monkeypatch: pytest.MonkeyPatch):
    """Set how the fake compositor answers screencast requests."""

    def _set(success: bool = True, error: Exception | None = None) -> None:
        monkeypatch.setattr(FakeScreencastClient, "success", success)
        monkeypatch.setattr(FakeScreencastClient, "error", error)

    return _set

@pytest.fixture
def screencast_client_factory(screencast_clients: list[FakeScreencastClient]):
    """Client factory for CompositorCaptureBackend that records its clients."""

    def _factory(screencast_settings: ScreencastSettings) -> FakeScreencastClient:
        client = FakeScreencastClient(screencast_settings)
        screencast_clients.append(client)
        return client

    return _factory


def build_manager(
    settings: Settings,
    runner: FakeRunner,
    progress: RecordingProgress,
    screencast_clients: list[FakeScreencastClient],
    confirm: Any = None,
) -> RecordingManager:
    def client_factory(screencast_settings: ScreencastSettings) -> FakeScreencastClient:
        client = FakeScreencastClient(screencast_settings)
        screencast_clients.append(client)
        return client

    backends = {
        BackendKind.DIRECT: DirectCaptureBackend(
            runner, settings.environment, sleep=MagicMock()
        ),
        BackendKind.COMPOSITOR: CompositorCaptureBackend(
            settings.screencast, client_factory=client_factory
        ),
    }
    return RecordingManager(
        settings,
        progress=progress,
        confirm_overwrite=confirm,
        runner=runner,
        backends=backends,
        launcher=MagicMock(),
    )


@pytest.fixture
def manager_factory(
    settings: Settings,
    runner: FakeRunner,
    progress: RecordingProgress,
    screencast_clients: list[FakeScreencastClient],
):
    """Build an X11 manager with a custom overwrite prompt."""

    def _make(confirm: Any = None) -> RecordingManager:
        return build_manager(settings, runner, progress, screencast_clients, confirm)

    return _make


@pytest.fixture
def manager(
    settings: Settings,
    runner: FakeRunner,
    progress: RecordingProgress,
    screencast_clients: list[FakeScreencastClient],
) -> RecordingManager:
    """Manager for an X11 session with fake encoders."""
    return build_manager(settings, runner, progress, screencast_clients)


@pytest.fixture
def wayland_manager(
    wayland_settings: Settings,
    progress: RecordingProgress,
    screencast_clients: list[FakeScreencastClient],
) -> RecordingManager:
    """Manager for a Wayland session with fake encoders and compositor."""
    runner = FakeRunner(wayland_settings.ffmpeg)
    return build_manager(wayland_settings, runner, progress, screencast_clients)


@pytest.fixture
def region() -> CaptureRegion:
    return CaptureRegion(x=0, y=0, width=800, height=600)


@pytest.fixture
def make_config(tmp_path: Path, region: CaptureRegion):
    """Factory for recording configs writing to tmp_path."""

    def _make(**overrides: Any) -> RecordingConfig:
        values: dict[str, Any] = {
            "output_dir": tmp_path,
            "name": "demo",
            "extension": "mp4",
            "region": region,
        }
        values.update(overrides)
        return RecordingConfig(**values)

    return _make
