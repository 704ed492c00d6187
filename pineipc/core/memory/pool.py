"""
Buffer pool: preallocate the scratch regions used by every command.

A PineClient owns exactly one BufferPool. It holds the request and
reply scratch buffers shared by single commands and batches, plus the
array recording where each batched command's reply lands. Nothing is
allocated per call in the hot path; the regions are never resized.
"""
from array import array

from pineipc.core.models.wire import (
    ADDRESS_SIZE,
    BATCH_HEADER_SIZE,
    STATUS_SIZE,
    VALUE_WIDTHS,
)

MAX_VALUE_WIDTH: int = max(VALUE_WIDTHS)

# Worst case request: every command is a 64-bit write.
MAX_COMMAND_SIZE: int = 1 + ADDRESS_SIZE + MAX_VALUE_WIDTH

# Worst case reply slot: every command is a 64-bit read.
MAX_REPLY_SLOT: int = MAX_VALUE_WIDTH

# The MultiCommand count field is 16 bits wide.
MAX_BATCH_LIMIT: int = 0xFFFF

DEFAULT_MAX_COMMANDS: int = 50_000


class BufferPool:
    """Fixed-capacity scratch regions sized for ``max_commands`` commands."""

    def __init__(self, max_commands: int = DEFAULT_MAX_COMMANDS) -> None:
        if not 0 < max_commands <= MAX_BATCH_LIMIT:
            raise ValueError(
                f"max_commands must be between 1 and {MAX_BATCH_LIMIT}, got {max_commands}"
            )

        self.max_commands = max_commands
        self.request_capacity = BATCH_HEADER_SIZE + max_commands * MAX_COMMAND_SIZE
        self.reply_capacity = STATUS_SIZE + max_commands * MAX_REPLY_SLOT

        self._request: bytearray | None = bytearray(self.request_capacity)
        self._reply: bytearray | None = bytearray(self.reply_capacity)
        self._offsets: array | None = array("I", [0]) * max_commands

    @property
    def closed(self) -> bool:
        return self._request is None

    @property
    def request(self) -> bytearray:
        return self._checked(self._request)

    @property
    def reply(self) -> bytearray:
        return self._checked(self._reply)

    @property
    def offsets(self) -> array:
        return self._checked(self._offsets)

    def close(self) -> None:
        """Drop every region. Safe to call multiple times."""
        self._request = None
        self._reply = None
        self._offsets = None

    def _checked(self, region):
        if region is None:
            raise RuntimeError("Buffer pool has been released")
        return region
