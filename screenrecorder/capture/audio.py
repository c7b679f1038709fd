"""Audio track capture."""

import logging
import subprocess
from typing import TYPE_CHECKING

from screenrecorder.ffmpeg.commands import audio_capture_args
from screenrecorder.ffmpeg.runner import FFmpegRunner

if TYPE_CHECKING:
    from screenrecorder.recording.artifacts import ArtifactPaths

logger = logging.getLogger(__name__)


class AudioCapture:
    """Records an audio source into <resolved path>.temp.audio.

    Works the same whichever video backend is in use.
    """

    def __init__(self, runner: FFmpegRunner):
        self.runner = runner
        self.settings = runner.settings

    def start(self, source: str, artifacts: "ArtifactPaths") -> subprocess.Popen:
        """Spawn the audio encoder.

        Raises:
            ProcessSpawnError: If the encoder cannot be started
        """
        args = audio_capture_args(
            input_format=self.settings.audio_input_format,
            source=source,
            output_format=self.settings.audio_intermediate_format,
            output=artifacts.audio_raw,
        )
        return self.runner.spawn(args, f"audio capture ({source})")

    def stop(self, process: subprocess.Popen) -> None:
        """Terminate the audio encoder, tolerating an already exited process."""
        self.runner.terminate(process, "audio capture")
