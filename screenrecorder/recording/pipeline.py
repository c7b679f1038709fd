"""Post-processing run by a session while it stops.

Decisions are made from the files present on disk rather than from the
recording configuration, so a stage that produced nothing upstream is simply
skipped. Inputs are only deleted after the step that consumed them succeeded;
a failing encoder leaves every artifact in place for manual recovery.
"""

import logging
import subprocess
import time
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from screenrecorder.errors import ProcessSpawnError
from screenrecorder.ffmpeg.commands import (
    audio_convert_args,
    compositor_transcode_args,
    merge_args,
)
from screenrecorder.ffmpeg.runner import FFmpegRunner
from screenrecorder.recording.artifacts import ArtifactPaths

if TYPE_CHECKING:
    from screenrecorder.config.settings import ScreencastSettings

logger = logging.getLogger(__name__)


class MergeAction(Enum):
    """What stage 5 does with the temporary tracks."""

    MERGE = "Save Audio Recording"
    CONVERT_AUDIO = "Convert Audio to chosen format"
    PROMOTE_VIDEO = "Save Video Recording"
    NONE = "Save Recording"

    @property
    def label(self) -> str:
        return self.value


class PostProcessPipeline:
    """Rename, transcode, merge and clean up a session's artifacts."""

    def __init__(
        self,
        runner: FFmpegRunner,
        screencast_settings: "ScreencastSettings",
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.runner = runner
        self.settings = runner.settings
        self.screencast_settings = screencast_settings
        self._sleep = sleep

    @staticmethod
    def _remove(path: Path) -> None:
        path.unlink(missing_ok=True)
        logger.debug(f"Removed {path}")

    def transcode_compositor_capture(
        self,
        artifacts: ArtifactPaths,
        source: Path | None = None,
    ) -> Path | None:
        """Convert the compositor's native container to the chosen format.

        Writes to the video-pending name when an audio track waits to be
        merged, otherwise straight to the resolved path.

        Args:
            artifacts: Session artifact names
            source: Path the compositor reported, if any

        Returns:
            The transcoded file, or None if the compositor produced nothing
        """
        if source is None or not source.exists():
            source = artifacts.compositor_raw
        if not source.exists():
            logger.warning(f"No compositor capture found at {source}")
            return None

        target = artifacts.video_pending if artifacts.audio_raw.exists() else artifacts.output
        self.runner.run(
            compositor_transcode_args(self.screencast_settings.native_format, source, target),
            "compositor transcode",
        )
        self._remove(source)
        return target

    def stage_direct_capture(self, artifacts: ArtifactPaths) -> Path | None:
        """Move a direct capture out of the way of the merge output.

        Without a pending audio track the capture already sits at its final
        name and is left alone.

        Returns:
            Where the video track now is, or None if there is no capture
        """
        if not artifacts.output.exists():
            logger.warning(f"No direct capture found at {artifacts.output}")
            return None

        if not artifacts.audio_raw.exists():
            return artifacts.output

        artifacts.output.replace(artifacts.video_pending)
        logger.debug(f"Moved {artifacts.output.name} -> {artifacts.video_pending.name}")
        return artifacts.video_pending

    def plan_merge(self, artifacts: ArtifactPaths) -> MergeAction:
        """Decide what stage 5 does from the temporary files on disk."""
        video = artifacts.video_pending.exists()
        audio = artifacts.audio_raw.exists()
        if video and audio:
            return MergeAction.MERGE
        if audio:
            return MergeAction.CONVERT_AUDIO
        if video:
            return MergeAction.PROMOTE_VIDEO
        return MergeAction.NONE

    def merge_or_convert(self, artifacts: ArtifactPaths) -> MergeAction:
        """Produce the single finished file at the resolved path.

        Returns:
            The action that was carried out
        """
        action = self.plan_merge(artifacts)

        if action is MergeAction.MERGE:
            self._sleep(self.settings.settle_delay)
            self.runner.run(
                merge_args(
                    artifacts.video_pending,
                    artifacts.audio_raw,
                    self.settings.merge_audio_codec,
                    artifacts.output,
                ),
                "audio/video merge",
            )
            self._remove(artifacts.audio_raw)
            self._remove(artifacts.video_pending)
        elif action is MergeAction.CONVERT_AUDIO:
            self._sleep(self.settings.settle_delay)
            self.runner.run(
                audio_convert_args(
                    self.settings.audio_intermediate_format,
                    artifacts.audio_raw,
                    artifacts.output,
                ),
                "audio conversion",
            )
            self._remove(artifacts.audio_raw)
        elif action is MergeAction.PROMOTE_VIDEO:
            # Audio track vanished upstream; the video alone is the result
            artifacts.video_pending.replace(artifacts.output)

        return action

    def run_post_command(self, command: str) -> subprocess.Popen | None:
        """Launch the user's shell command without waiting for it.

        Raises:
            ProcessSpawnError: If the shell cannot be started
        """
        command = command.strip()
        if not command:
            return None

        logger.info(f"Running post-record command: {command}")
        try:
            return subprocess.Popen(command, shell=True)
        except OSError as e:
            raise ProcessSpawnError(f"Could not run post-record command: {e}") from e
