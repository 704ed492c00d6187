import logging
import threading

from pineipc.core.codec import CommandCodec
from pineipc.core.errors import BatchTooLarge
from pineipc.core.helpers.guard import ScratchLease
from pineipc.core.models.wire import (
    BATCH_HEADER_SIZE,
    STATUS_SIZE,
    FinalizedBatch,
    Opcode,
    WireBuffer,
    check_width,
)


class BatchSession:
    """
    Accumulates commands into a single MultiCommand message.

    The session encodes directly into the shared request scratch buffer
    it was leased, so it only exists while the client's batch and
    scratch locks are held. Its layout is:

        request = 0xFF || count(2, LE) || command_0 || command_1 || ...
        reply   = status(1) || slot_0 || slot_1 || ...

    Each appended command reserves a reply slot whose offset is recorded
    in the offsets array: a read reserves ``width`` bytes for its value,
    a write reserves one byte. Offsets are absolute positions in the
    reply buffer, so the first slot always starts at 1.

    Only the thread that opened the session may append to or finalize it.

    ``finalize()`` copies the request into a caller-owned buffer and
    allocates an empty reply of the expected size; after that the
    session is closed and refuses further appends.
    """
    WRITE_REPLY_SLOT: int = STATUS_SIZE

    def __init__(self, lease: ScratchLease, max_commands: int) -> None:
        self._lease = lease
        self._max_commands = max_commands
        self._owner = threading.get_ident()
        self._logger = logging.getLogger("core.batch")

        self._request_len = BATCH_HEADER_SIZE
        self._reply_len = STATUS_SIZE
        self._count = 0
        self._closed = False
        self.finalized: FinalizedBatch | None = None

        lease.request[0] = Opcode.MULTI_COMMAND
        CommandCodec.encode_count(lease.request, 1, 0)

    @property
    def count(self) -> int:
        return self._count

    @property
    def request_length(self) -> int:
        return self._request_len

    @property
    def reply_length(self) -> int:
        return self._reply_len

    @property
    def closed(self) -> bool:
        return self._closed

    def append_read(self, address: int, width: int) -> int:
        """Append a read command and return its index in the batch."""
        check_width(width)
        self._ensure_room()

        size = CommandCodec.encode_read(self._lease.request, self._request_len, address, width)
        return self._advance(size, width)

    def append_write(self, address: int, value: int, width: int) -> int:
        """Append a write command and return its index in the batch."""
        check_width(width)
        self._ensure_room()

        size = CommandCodec.encode_write(
            self._lease.request, self._request_len, address, value, width
        )
        return self._advance(size, self.WRITE_REPLY_SLOT)

    def finalize(self) -> FinalizedBatch:
        self._ensure_open()
        lease = self._lease

        CommandCodec.encode_count(lease.request, 1, self._count)

        request = WireBuffer(lease.request[:self._request_len], owned=True)
        reply = WireBuffer.allocate(self._reply_len)
        offsets = tuple(lease.offsets[:self._count])

        self._closed = True
        self._logger.debug(
            f"Batch finalized: {self._count} commands, "
            f"{self._request_len} request bytes, {self._reply_len} reply bytes"
        )
        return FinalizedBatch(request=request, reply=reply, reply_offsets=offsets)

    def discard(self) -> None:
        self._closed = True

    def _advance(self, request_size: int, reply_slot: int) -> int:
        index = self._count
        self._lease.offsets[index] = self._reply_len
        self._request_len += request_size
        self._reply_len += reply_slot
        self._count += 1
        return index

    def _ensure_room(self) -> None:
        self._ensure_open()
        if self._count >= self._max_commands:
            raise BatchTooLarge(self._max_commands)

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Batch session is closed")
        if self._owner != threading.get_ident():
            raise RuntimeError("The open batch belongs to another thread")
