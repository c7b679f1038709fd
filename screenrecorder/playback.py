"""Open a finished recording with the desktop's default player."""

import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from screenrecorder.errors import ProcessSpawnError

if TYPE_CHECKING:
    from screenrecorder.config.settings import EnvironmentSettings

logger = logging.getLogger(__name__)


def is_snap(environment: "EnvironmentSettings") -> bool:
    """Check if the application runs inside a snap package."""
    return bool(environment.snap)


class PlaybackLauncher:
    """Launches the platform opener for a file without waiting for it."""

    def __init__(self, environment: "EnvironmentSettings"):
        self.environment = environment

    def opener_command(self, path: Path) -> list[str]:
        """Command that opens the path, inside or outside a snap sandbox."""
        if is_snap(self.environment):
            return ["snapctl", "user-open", str(path)]
        return ["xdg-open", str(path)]

    def open(self, path: Path) -> None:
        """Open the recording.

        Raises:
            ProcessSpawnError: If the opener cannot be started
        """
        cmd = self.opener_command(path)
        logger.info(f"Opening {path} with {cmd[0]}")
        try:
            subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise ProcessSpawnError(f"Could not open {path} with {cmd[0]}: {e}") from e
