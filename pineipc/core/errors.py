from enum import Enum


class ErrorKind(Enum):
    INVALID_WIDTH = "invalid_width"
    CONNECTION_FAILED = "connection_failed"
    IO_FAILED = "io_failed"
    REMOTE_REJECTED = "remote_rejected"
    BATCH_TOO_LARGE = "batch_too_large"
    UNKNOWN = "unknown"


class PineError(Exception):
    """
    Base class of every failure raised by the IPC client.

    Each subclass pins a single ErrorKind so callers can either catch
    the precise exception type or branch on ``error.kind``.
    """
    kind: ErrorKind = ErrorKind.UNKNOWN


class InvalidWidth(PineError):
    kind = ErrorKind.INVALID_WIDTH

    def __init__(self, width: int) -> None:
        super().__init__(f"Unsupported value width: {width} (expected 1, 2, 4 or 8)")
        self.width = width


class ConnectionFailed(PineError):
    kind = ErrorKind.CONNECTION_FAILED


class IOFailed(PineError):
    kind = ErrorKind.IO_FAILED


class RemoteRejected(PineError):
    kind = ErrorKind.REMOTE_REJECTED


class BatchTooLarge(PineError):
    kind = ErrorKind.BATCH_TOO_LARGE

    def __init__(self, limit: int) -> None:
        super().__init__(f"Batch is full: at most {limit} commands per batch")
        self.limit = limit


class UnknownOutcome(PineError):
    """The request was sent but the reply never fully arrived."""
    kind = ErrorKind.UNKNOWN
