"""Tests for capture backends, the compositor worker and audio capture."""

from unittest.mock import MagicMock

import pytest

from screenrecorder.capture.audio import AudioCapture
from screenrecorder.capture.backends import (
    CompositorCaptureBackend,
    CompositorCaptureHandle,
    DirectCaptureBackend,
    DirectCaptureHandle,
    detect_backend_kind,
    is_compositor_session,
)
from screenrecorder.capture.worker import CompositorCaptureWorker
from screenrecorder.config.settings import EnvironmentSettings, ScreencastSettings
from screenrecorder.errors import ConfigError, IPCError
from screenrecorder.models.recording import BackendKind
from screenrecorder.recording.artifacts import ArtifactPaths


class TestBackendSelection:
    """Test cases for backend detection."""

    @pytest.mark.parametrize(
        "session_type,expected",
        [
            ("wayland", BackendKind.COMPOSITOR),
            ("Wayland", BackendKind.COMPOSITOR),
            ("x11", BackendKind.DIRECT),
            ("", BackendKind.DIRECT),
            ("tty", BackendKind.DIRECT),
        ],
    )
    def test_detect_backend_kind(self, session_type, expected):
        """Test only Wayland sessions use the compositor."""
        environment = EnvironmentSettings(XDG_SESSION_TYPE=session_type, DISPLAY=":0", SNAP="")

        assert detect_backend_kind(environment) == expected
        assert is_compositor_session(environment) == (expected == BackendKind.COMPOSITOR)


class TestDirectCaptureBackend:
    """Test cases for DirectCaptureBackend."""

    @pytest.fixture(autouse=True)
    def _setup(self, settings, runner, tmp_path):
        self.runner = runner
        self.sleep = MagicMock()
        self.backend = DirectCaptureBackend(runner, settings.environment, sleep=self.sleep)
        self.artifacts = ArtifactPaths.resolve(tmp_path, "demo", "mp4")

    def test_start(self, make_config):
        """Test the grab encoder writes straight to the resolved path."""
        handle = self.backend.start(make_config(), self.artifacts)

        assert isinstance(handle, DirectCaptureHandle)
        assert handle.pid == 1000
        args, purpose = self.runner.spawned[0]
        assert purpose == "video capture"
        assert args[args.index("-i") + 1] == ":1+0,0"
        assert args[-2] == str(self.artifacts.output)
        self.sleep.assert_not_called()

    def test_start_delay(self, make_config):
        """Test the start delay is waited out before spawning."""
        order = []
        self.sleep.side_effect = lambda seconds: order.append(("sleep", seconds))
        original_spawn = self.runner.spawn
        self.runner.spawn = lambda args, purpose: (
            order.append(("spawn", purpose)) or original_spawn(args, purpose)
        )

        self.backend.start(make_config(start_delay=2.5), self.artifacts)

        assert order == [("sleep", 2.5), ("spawn", "video capture")]

    def test_validate(self, make_config):
        """Test a config without a region is rejected up front."""
        self.backend.validate(make_config())

        with pytest.raises(ConfigError):
            self.backend.validate(make_config(region=None))

        assert self.runner.spawned == []

    def test_start_without_region(self, make_config):
        """Test a region is required."""
        with pytest.raises(ConfigError):
            self.backend.start(make_config(region=None), self.artifacts)

        assert self.runner.spawned == []

    def test_stop(self, make_config):
        """Test stopping terminates the encoder."""
        handle = self.backend.start(make_config(), self.artifacts)
        self.backend.stop(handle)

        assert self.runner.terminated == ["video capture"]

    def test_stop_wrong_handle(self):
        """Test a compositor handle is refused."""
        with pytest.raises(TypeError):
            self.backend.stop(CompositorCaptureHandle(worker=MagicMock(), client=MagicMock()))


class TestCompositorCaptureBackend:
    """Test cases for CompositorCaptureBackend."""

    @pytest.fixture(autouse=True)
    def _setup(self, tmp_path, screencast_clients, screencast_client_factory):
        self.settings = ScreencastSettings(worker_join_timeout=2.0)
        self.clients = screencast_clients
        self.backend = CompositorCaptureBackend(
            self.settings, client_factory=screencast_client_factory
        )
        self.artifacts = ArtifactPaths.resolve(tmp_path, "demo", "mp4")

    def test_start_and_stop(self, make_config):
        """Test a capture is requested into <resolved>.temp and stopped."""
        handle = self.backend.start(make_config(frame_rate=24), self.artifacts)
        client = self.clients[0]

        assert isinstance(handle, CompositorCaptureHandle)
        assert client.recording.wait(2)
        name, x, y, width, height, template, options = client.calls[0]
        assert name == "ScreencastArea"
        assert (x, y, width, height) == (0, 0, 800, 600)
        assert template == str(self.artifacts.compositor_raw)
        assert options["framerate"] == ("i", 24)

        self.backend.stop(handle)

        assert client.calls[-1] == ("StopScreencast",)
        assert client.connected is False
        assert handle.worker.is_alive is False
        assert handle.worker.output_path == self.artifacts.compositor_raw

    def test_stop_closes_on_error(self, make_config):
        """Test the worker and connection are released when StopScreencast fails."""
        handle = self.backend.start(make_config(), self.artifacts)
        client = self.clients[0]
        client.stop_screencast = MagicMock(side_effect=IPCError("gone"))

        with pytest.raises(IPCError):
            self.backend.stop(handle)

        assert handle.worker.join(2) is True
        assert client.connected is False

    def test_restart_signals_previous_worker(self, make_config):
        """Test a still running worker is told to exit before a new capture."""
        first = self.backend.start(make_config(), self.artifacts)
        assert self.clients[0].recording.wait(2)

        second = self.backend.start(make_config(), self.artifacts)

        assert first.worker.join(2) is True
        self.backend.stop(second)

    def test_validate_full_screen(self, make_config):
        """Test the compositor accepts a config without a region."""
        self.backend.validate(make_config(region=None))

        assert self.clients == []

    def test_stop_wrong_handle(self):
        """Test a direct handle is refused."""
        with pytest.raises(TypeError):
            self.backend.stop(DirectCaptureHandle(process=MagicMock()))


class TestCompositorCaptureWorker:
    """Test cases for CompositorCaptureWorker."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = MagicMock()
        self.client.build_options.return_value = {}

    def _worker(self, tmp_path, region=None):
        return CompositorCaptureWorker(
            client=self.client,
            file_template=tmp_path / "demo.mp4.temp",
            region=region,
            frame_rate=30,
            draw_cursor=True,
        )

    def test_waits_for_stop(self, tmp_path):
        """Test the worker keeps running until signalled."""
        self.client.screencast.return_value = (True, str(tmp_path / "demo.mp4.temp"))
        worker = self._worker(tmp_path)
        worker.start()

        assert worker.join(0.2) is False

        worker.request_stop()

        assert worker.join(2) is True
        assert worker.success is True
        assert worker.output_path == tmp_path / "demo.mp4.temp"

    def test_request_stop_twice(self, tmp_path):
        """Test extra stop requests are not an error."""
        worker = self._worker(tmp_path)

        worker.request_stop()
        worker.request_stop()

    def test_join_unstarted(self, tmp_path):
        """Test joining a worker that never started."""
        assert self._worker(tmp_path).join(0) is True

    def test_ipc_error(self, tmp_path, region):
        """Test a failing call ends the worker and keeps the error."""
        self.client.screencast_area.side_effect = IPCError("denied")
        worker = self._worker(tmp_path, region=region)
        worker.start()

        assert worker.join(2) is True
        assert worker.success is False
        assert isinstance(worker.error, IPCError)
        assert worker.output_path is None

    def test_refused(self, tmp_path):
        """Test a refused screencast still waits for the stop signal."""
        self.client.screencast.return_value = (False, "")
        worker = self._worker(tmp_path)
        worker.start()
        worker.request_stop()

        assert worker.join(2) is True
        assert worker.success is False
        assert worker.output_path is None


class TestAudioCapture:
    """Test cases for AudioCapture."""

    def test_start_and_stop(self, runner, tmp_path):
        """Test audio is recorded to <resolved>.temp.audio."""
        audio = AudioCapture(runner)
        artifacts = ArtifactPaths.resolve(tmp_path, "demo", "mp4")

        process = audio.start("alsa_input.usb", artifacts)
        audio.stop(process)

        args, purpose = runner.spawned[0]
        assert args == [
            "-f", "pulse",
            "-i", "alsa_input.usb",
            "-f", "ogg",
            str(artifacts.audio_raw),
            "-y",
        ]
        assert "alsa_input.usb" in purpose
        assert runner.terminated == ["audio capture"]
