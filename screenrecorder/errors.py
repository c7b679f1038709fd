"""Exceptions raised while recording."""


class RecorderError(Exception):
    """Base exception for recording operations."""

    pass


class ConfigError(RecorderError):
    """Raised when the configuration gives no usable output location."""

    pass


class ConflictDeclined(RecorderError):
    """Raised when the user declines to overwrite an existing recording.

    This is a cancellation, not a failure.
    """

    pass


class ProcessSpawnError(RecorderError):
    """Raised when an external process cannot be started."""

    pass


class ProcessSignalError(RecorderError):
    """Raised when a running process cannot be signalled."""

    pass


class EncoderFailure(RecorderError):
    """Raised when a transcode, merge or convert step exits with an error."""

    def __init__(self, purpose: str, returncode: int | None, stderr: str = "") -> None:
        self.purpose = purpose
        self.returncode = returncode
        self.stderr = stderr
        message = f"{purpose} failed"
        if returncode is not None:
            message += f" with exit code {returncode}"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)


class IPCError(RecorderError):
    """Raised when the compositor screencast service cannot be reached or fails."""

    pass
