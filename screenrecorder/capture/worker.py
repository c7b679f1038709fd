"""Background worker that owns a compositor screencast call."""

import logging
import queue
import threading
from pathlib import Path

from screenrecorder.capture.screencast import GnomeScreencastClient
from screenrecorder.errors import IPCError
from screenrecorder.models.recording import CaptureRegion

logger = logging.getLogger(__name__)


class CompositorCaptureWorker:
    """Runs the screencast call on its own thread.

    The screencast call may not return until the capture ends, so it cannot run
    on the control thread. Once it returns the worker waits on its stop channel
    until the session signals it; the capture itself is ended by the session's
    StopScreencast call.
    """

    def __init__(
        self,
        client: GnomeScreencastClient,
        file_template: Path,
        region: CaptureRegion | None,
        frame_rate: float,
        draw_cursor: bool,
    ):
        self.client = client
        self.file_template = file_template
        self.region = region
        self.frame_rate = frame_rate
        self.draw_cursor = draw_cursor

        # Single slot: one stop request is all the worker ever needs
        self._stop_channel: queue.Queue[bool] = queue.Queue(maxsize=1)
        self._thread = threading.Thread(
            target=self._run, name="compositor-capture", daemon=True
        )

        self.success: bool | None = None
        self.output_path: Path | None = None
        self.error: IPCError | None = None

    @property
    def is_alive(self) -> bool:
        """Check if the worker thread is still running."""
        return self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread."""
        self._thread.start()

    def _run(self) -> None:
        options = self.client.build_options(self.frame_rate, self.draw_cursor)
        try:
            if self.region is None:
                success, output_path = self.client.screencast(str(self.file_template), options)
            else:
                success, output_path = self.client.screencast_area(
                    self.region.x,
                    self.region.y,
                    self.region.width,
                    self.region.height,
                    str(self.file_template),
                    options,
                )
        except IPCError as e:
            logger.error(f"Compositor capture failed: {e}")
            self.success = False
            self.error = e
            return

        self.success = success
        if output_path:
            self.output_path = Path(output_path)
        if not success:
            logger.error("Compositor refused to start the screencast")

        while not self._stop_channel.get():
            continue

        logger.debug("Compositor capture worker finished")

    def request_stop(self) -> None:
        """Signal the worker to exit. Sending with nobody listening is not an error."""
        try:
            self._stop_channel.put_nowait(True)
        except queue.Full:
            logger.debug("Compositor worker already has a pending signal")

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker to exit.

        Returns:
            True if the worker exited within the timeout
        """
        if self._thread.ident is None:
            return True
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Compositor capture worker did not exit in time")
            return False
        return True
