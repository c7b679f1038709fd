"""Data models for a recording session."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class BackendKind(Enum):
    """How raw video is captured."""

    DIRECT = "direct"
    COMPOSITOR = "compositor"


class SessionState(Enum):
    """State of a recording session."""

    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass(frozen=True)
class CaptureRegion:
    """Screen rectangle to capture, in pixels."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Capture region must have a positive size: {self}")

    @classmethod
    def from_string(cls, value: str) -> "CaptureRegion":
        """Parse a region like '0,0,800,600'."""
        parts = [p.strip() for p in value.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Invalid region string: {value}")
        x, y, width, height = (int(p) for p in parts)
        return cls(x=x, y=y, width=width, height=height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}+{self.x},{self.y}"


@dataclass(frozen=True)
class RecordingConfig:
    """Snapshot of the user's choices, consumed once when a session starts.

    Attributes:
        output_dir: Directory the finished recording is written to.
        name: Base file name without extension. Empty means a timestamp is used.
        extension: Container/extension id of the finished file (mp4, mkv, ogg...).
        record_video: Whether to capture the screen.
        record_audio: Whether to capture audio.
        audio_source: Input source id handed to the audio encoder.
        draw_cursor: Whether the mouse cursor is drawn into the video.
        follow_cursor: Whether the grab area follows the cursor (direct capture only).
        frame_rate: Frames per second.
        start_delay: Seconds to wait before direct capture begins.
        post_command: Shell command to run once the recording is saved.
        region: Area of the screen to capture. None means the whole screen,
            which only the compositor backend supports.
    """

    output_dir: Path
    name: str = ""
    extension: str = "mp4"
    record_video: bool = True
    record_audio: bool = False
    audio_source: str = "default"
    draw_cursor: bool = True
    follow_cursor: bool = False
    frame_rate: float = 30.0
    start_delay: float = 0.0
    post_command: str = ""
    region: CaptureRegion | None = None

    def __post_init__(self) -> None:
        if self.frame_rate <= 0:
            raise ValueError("frame_rate must be > 0")
        if self.start_delay < 0:
            raise ValueError("start_delay must be >= 0")
