"""ffmpeg command building and process control."""

from screenrecorder.ffmpeg.runner import FFmpegRunner

__all__ = ["FFmpegRunner"]
