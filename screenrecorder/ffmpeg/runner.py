"""Process control for ffmpeg invocations."""

import logging
import os
import signal
import subprocess
from collections.abc import Sequence
from typing import TYPE_CHECKING

from screenrecorder.errors import EncoderFailure, ProcessSignalError, ProcessSpawnError

if TYPE_CHECKING:
    from screenrecorder.config.settings import FFmpegSettings

logger = logging.getLogger(__name__)

# Keep error messages readable
STDERR_TAIL_CHARS = 500


class FFmpegRunner:
    """Starts, waits for and stops ffmpeg processes.

    Long-running captures are spawned and later terminated; transcode, merge
    and convert steps run synchronously and raise EncoderFailure on error.
    """

    def __init__(self, settings: "FFmpegSettings"):
        self.settings = settings
        self.binary = settings.binary

    def command(self, args: Sequence[str]) -> list[str]:
        """Full command line for the given arguments."""
        return [self.binary, *args]

    def spawn(self, args: Sequence[str], purpose: str) -> subprocess.Popen:
        """Start a capture process in the background.

        Args:
            args: ffmpeg arguments
            purpose: Short description used in logs and errors

        Returns:
            The running process

        Raises:
            ProcessSpawnError: If the encoder cannot be started
        """
        cmd = self.command(args)
        logger.debug(f"Spawning {purpose}: {' '.join(cmd)}")
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise ProcessSpawnError(f"Could not start {purpose} ({self.binary}): {e}") from e

        logger.info(f"Started {purpose} (pid {process.pid})")
        return process

    def run(self, args: Sequence[str], purpose: str) -> None:
        """Run an encoder to completion.

        Raises:
            EncoderFailure: If the encoder cannot be started or exits non-zero
        """
        cmd = self.command(args)
        logger.debug(f"Running {purpose}: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise EncoderFailure(purpose, None, str(e)) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()[-STDERR_TAIL_CHARS:]
            raise EncoderFailure(purpose, result.returncode, stderr)

        logger.debug(f"{purpose} finished")

    def terminate(self, process: subprocess.Popen, purpose: str) -> None:
        """Send SIGTERM to a capture process and wait for it to flush its output.

        A process that already exited is not an error.

        Raises:
            ProcessSignalError: If the signal cannot be delivered
        """
        if process.poll() is not None:
            logger.debug(f"{purpose} already exited with code {process.returncode}")
            return

        try:
            os.kill(process.pid, signal.SIGTERM)
        except ProcessLookupError:
            logger.debug(f"{purpose} (pid {process.pid}) no longer exists")
            return
        except OSError as e:
            raise ProcessSignalError(f"Could not stop {purpose} (pid {process.pid}): {e}") from e

        try:
            process.wait(timeout=self.settings.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(
                f"{purpose} did not exit within {self.settings.stop_timeout}s, killing it"
            )
            process.kill()
            process.wait()

        logger.info(f"Stopped {purpose} (pid {process.pid})")
