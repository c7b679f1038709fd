"""Output path resolution and the temporary artifact namespace."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from screenrecorder.errors import ConfigError

logger = logging.getLogger(__name__)


def generate_name(timestamp: datetime | None = None) -> str:
    """Sortable file name without spaces for unnamed recordings.

    Example: 20250125_143022_048211
    """
    if timestamp is None:
        timestamp = datetime.now()
    return timestamp.strftime("%Y%m%d_%H%M%S_%f")


@dataclass(frozen=True)
class ArtifactPaths:
    """Every file a session may create, derived from the resolved output path.

    All temporary names extend the resolved path, so they never collide with
    another session's files.
    """

    output: Path
    extension: str

    @classmethod
    def resolve(
        cls,
        output_dir: Path | str,
        name: str,
        extension: str,
        timestamp: datetime | None = None,
    ) -> "ArtifactPaths":
        """Resolve <output_dir>/<name or timestamp>.<extension>.

        Raises:
            ConfigError: If there is no usable output location
        """
        if not str(output_dir).strip():
            raise ConfigError("No output directory configured")
        directory = Path(output_dir).expanduser()
        if not directory.is_dir():
            raise ConfigError(f"Output directory does not exist: {directory}")

        extension = extension.strip().lstrip(".")
        if not extension:
            raise ConfigError("No output format selected")

        base = name.strip() or generate_name(timestamp)
        return cls(output=directory / f"{base}.{extension}", extension=extension)

    def _sibling(self, suffix: str) -> Path:
        return self.output.with_name(self.output.name + suffix)

    @property
    def compositor_raw(self) -> Path:
        """Native container written by the compositor."""
        return self._sibling(".temp")

    @property
    def audio_raw(self) -> Path:
        """Raw recorded audio track."""
        return self._sibling(".temp.audio")

    @property
    def video_pending(self) -> Path:
        """Video track staged for the merge step."""
        return self._sibling(f".temp.without.audio.{self.extension}")

    def temp_artifacts(self) -> tuple[Path, Path, Path]:
        """All temporary names of this session."""
        return (self.compositor_raw, self.audio_raw, self.video_pending)

    def existing_temp_artifacts(self) -> list[Path]:
        """Temporary files currently on disk."""
        return [p for p in self.temp_artifacts() if p.exists()]
