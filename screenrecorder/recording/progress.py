"""Stage reporting for the stop sequence."""

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

STOP_STAGE_COUNT = 6


@runtime_checkable
class ProgressReporter(Protocol):
    """Receives (label, value, maximum) stage reports."""

    def show(self) -> None:
        """Make progress visible."""
        ...

    def set_progress(self, label: str, value: int, maximum: int) -> None:
        """Report a stage."""
        ...

    def hide(self) -> None:
        """Hide progress once the sequence is over."""
        ...


class LoggingProgressReporter:
    """Writes stage reports to the log."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def show(self) -> None:
        self._log.debug("Progress shown")

    def set_progress(self, label: str, value: int, maximum: int) -> None:
        self._log.info(f"[{value}/{maximum}] {label}")

    def hide(self) -> None:
        self._log.debug("Progress hidden")
