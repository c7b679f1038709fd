"""Screen Recorder - record the screen and/or audio from the command line.

Recording runs until Enter or Ctrl+C is pressed, then the recording is saved
as a single file in the chosen format.

Usage:
    screenrecorder --region 0,0,1920,1080 --audio
    screenrecorder --name demo --format mkv --config path/to/config.env
"""

import argparse
import logging
import sys
from pathlib import Path

from screenrecorder import __version__
from screenrecorder.config.settings import Settings
from screenrecorder.errors import RecorderError
from screenrecorder.models.recording import CaptureRegion, RecordingConfig
from screenrecorder.recording.manager import RecordingManager
from screenrecorder.recording.progress import LoggingProgressReporter

logger = logging.getLogger(__name__)


def load_settings(config_path: str | None = None) -> Settings:
    """Load settings from config file or environment.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. Specified config file (--config option)
    3. Default .env in current directory
    """
    if config_path:
        from dotenv import load_dotenv
        load_dotenv(config_path, override=True)

    return Settings()


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if settings.log_path:
        log_path = Path(settings.log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_path), encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=log_format,
        handlers=handlers,
    )


def confirm_overwrite(path: Path) -> bool:
    """Ask on the console whether an existing recording may be replaced."""
    try:
        answer = input(f"{path} already exists. Would you like to overwrite this file? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def parse_region(value: str) -> CaptureRegion:
    """argparse type for X,Y,W,H regions."""
    try:
        return CaptureRegion.from_string(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Record the screen and/or audio with ffmpeg or the GNOME screencast service"
    )
    parser.add_argument("--config", "-c", type=str, help="Path to config.env file")
    parser.add_argument("--output-dir", "-o", type=str, help="Directory for the recording")
    parser.add_argument("--name", "-n", default="", help="File name (default: timestamp)")
    parser.add_argument("--format", "-f", default="mp4", help="Container/extension (default: mp4)")
    parser.add_argument("--no-video", action="store_true", help="Do not record the screen")
    parser.add_argument("--audio", action="store_true", help="Record audio")
    parser.add_argument("--audio-source", default="default", help="Audio input source id")
    parser.add_argument("--no-cursor", action="store_true", help="Do not draw the mouse cursor")
    parser.add_argument("--follow-cursor", action="store_true", help="Follow the mouse cursor")
    parser.add_argument("--fps", type=float, default=30.0, help="Frames per second")
    parser.add_argument("--delay", type=float, default=0.0, help="Seconds to wait before recording")
    parser.add_argument("--command", default="", help="Shell command to run after saving")
    parser.add_argument("--region", type=parse_region, help="Area to record as X,Y,W,H")
    parser.add_argument("--yes", "-y", action="store_true", help="Overwrite without asking")
    parser.add_argument("--play", action="store_true", help="Open the recording when done")
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"Screen Recorder {__version__}",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, settings: Settings) -> RecordingConfig:
    """Snapshot the command line choices."""
    return RecordingConfig(
        output_dir=Path(args.output_dir or settings.output_dir).expanduser(),
        name=args.name,
        extension=args.format,
        record_video=not args.no_video,
        record_audio=args.audio,
        audio_source=args.audio_source,
        draw_cursor=not args.no_cursor,
        follow_cursor=args.follow_cursor,
        frame_rate=args.fps,
        start_delay=args.delay,
        post_command=args.command,
        region=args.region,
    )


def wait_for_stop() -> None:
    """Block until Enter or Ctrl+C."""
    print("Recording... press Enter or Ctrl+C to stop.")
    try:
        input()
    except (EOFError, KeyboardInterrupt):
        pass


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    settings = load_settings(args.config)
    setup_logging(settings)

    try:
        config = build_config(args, settings)
    except ValueError as e:
        logger.error(f"Invalid options: {e}")
        return 1

    manager = RecordingManager(
        settings,
        progress=LoggingProgressReporter(),
        confirm_overwrite=(lambda path: True) if args.yes else confirm_overwrite,
    )

    try:
        session = manager.start_recording(config)
    except KeyboardInterrupt:
        logger.info("Interrupted by user before recording started")
        return 130
    except RecorderError as e:
        logger.error(f"Could not start recording: {e}")
        return 1

    if session is None:
        return 0

    wait_for_stop()

    try:
        manager.stop_recording()
    except RecorderError as e:
        logger.error(f"Could not save recording: {e}")
        return 1

    if args.play:
        try:
            manager.play_recording()
        except RecorderError as e:
            logger.error(str(e))
            return 1

    return 0


def cli() -> None:
    """Command-line interface."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
