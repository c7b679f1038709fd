"""Application settings using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FFmpegSettings(BaseSettings):
    """Encoder process configuration."""

    binary: str = Field(default="ffmpeg", alias="FFMPEG_PATH")
    audio_input_format: str = Field(default="pulse", description="ffmpeg input backend for audio")
    audio_intermediate_format: str = Field(
        default="ogg", description="Container of the raw *.temp.audio track"
    )
    grab_input_format: str = Field(default="x11grab", description="Raw frame grab input backend")
    video_quality_crf: int = Field(default=1, description="Quality parameter for direct capture")
    merge_audio_codec: str = Field(default="aac", description="Audio codec used when merging")
    stop_timeout: float = Field(
        default=10.0, description="Seconds to wait for a terminated capture to flush"
    )
    settle_delay: float = Field(
        default=1.0, description="Pause in seconds before merge/convert encoders"
    )


class ScreencastSettings(BaseSettings):
    """GNOME Shell screencast configuration."""

    native_format: str = Field(default="webm", description="Container the compositor writes")
    pipeline: str = Field(
        default=(
            "vp8enc min_quantizer=10 max_quantizer=50 cq_level=13 "
            "cpu-used=5 deadline=1000000 threads=%T ! queue ! webmmux"
        ),
        description="GStreamer pipeline, %T is resolved by the compositor",
    )
    worker_join_timeout: float = Field(
        default=5.0, description="Seconds to wait for the capture worker to exit"
    )


class EnvironmentSettings(BaseSettings):
    """Values read from the desktop session environment."""

    session_type: str = Field(default="", alias="XDG_SESSION_TYPE")
    display: str = Field(default=":0", alias="DISPLAY")
    snap: str = Field(default="", alias="SNAP")

    @field_validator("display")
    @classmethod
    def default_display(cls, v: str) -> str:
        """Fall back to :0 when DISPLAY is set but empty."""
        return v or ":0"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sub-configurations
    ffmpeg: FFmpegSettings = Field(default_factory=FFmpegSettings)
    screencast: ScreencastSettings = Field(default_factory=ScreencastSettings)
    environment: EnvironmentSettings = Field(default_factory=EnvironmentSettings)

    # General settings
    output_dir: str = Field(
        default=str(Path.home() / "Videos"), alias="RECORDING_OUTPUT_DIR"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_path: str = Field(default="", alias="LOG_PATH")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
