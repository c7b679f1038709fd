"""Argument lists for every encoder invocation.

Each builder returns the arguments that follow the ffmpeg binary. Builders are
pure so the exact command lines can be checked without running an encoder.
"""

from pathlib import Path

from screenrecorder.models.recording import CaptureRegion


def format_frame_rate(frame_rate: float) -> str:
    """Render a frame rate without a trailing '.0' (30.0 -> '30')."""
    return f"{frame_rate:g}"


def audio_capture_args(
    input_format: str,
    source: str,
    output_format: str,
    output: Path,
) -> list[str]:
    """Record the audio source into the intermediate container."""
    return [
        "-f", input_format,
        "-i", source,
        "-f", output_format,
        str(output),
        "-y",
    ]


def direct_capture_args(
    region: CaptureRegion,
    frame_rate: float,
    grab_format: str,
    display: str,
    draw_cursor: bool,
    follow_cursor: bool,
    crf: int,
    output: Path,
) -> list[str]:
    """Grab raw frames of the region straight into the final container."""
    args = [
        "-video_size", f"{region.width}x{region.height}",
        "-framerate", format_frame_rate(frame_rate),
        "-f", grab_format,
        # grab options must precede -i, they belong to the input
        "-draw_mouse", "1" if draw_cursor else "0",
    ]
    if follow_cursor:
        args += ["-follow_mouse", "centered"]
    args += [
        "-i", f"{display}+{region.x},{region.y}",
        "-crf", str(crf),
        str(output),
        "-y",
    ]
    return args


def compositor_transcode_args(native_format: str, source: Path, output: Path) -> list[str]:
    """Convert the compositor's native container to the chosen one."""
    return ["-f", native_format, "-i", str(source), str(output), "-y"]


def merge_args(video: Path, audio: Path, audio_codec: str, output: Path) -> list[str]:
    """Mux the video track (stream copy) with the transcoded audio track."""
    return [
        "-i", str(video),
        "-i", str(audio),
        "-c:v", "copy",
        "-c:a", audio_codec,
        str(output),
        "-y",
    ]


def audio_convert_args(intermediate_format: str, source: Path, output: Path) -> list[str]:
    """Convert the raw audio track to the chosen container."""
    return ["-f", intermediate_format, "-i", str(source), str(output), "-y"]
