from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from pineipc.core.errors import InvalidWidth, RemoteRejected

VALUE_WIDTHS: tuple[int, ...] = (1, 2, 4, 8)
"""Value widths, in bytes, understood by the memory commands."""

ADDRESS_SIZE: int = 4
STATUS_SIZE: int = 1
BATCH_HEADER_SIZE: int = 3
"""MultiCommand header: opcode(1) + command count(2)."""


class Opcode(IntEnum):
    """First byte of every request, identifying the operation it encodes."""
    READ8 = 0
    READ16 = 1
    READ32 = 2
    READ64 = 3
    WRITE8 = 4
    WRITE16 = 5
    WRITE32 = 6
    WRITE64 = 7
    MULTI_COMMAND = 0xFF


class Status(IntEnum):
    """First byte of every reply."""
    OK = 0x00
    FAIL = 0xFF


def check_width(width: int) -> int:
    # bool and float compare equal to valid widths
    if type(width) is not int or width not in VALUE_WIDTHS:
        raise InvalidWidth(width)
    return width


@dataclass
class WireBuffer:
    """
    A byte region exchanged with the relay endpoint.

    A *scratch* buffer is a memoryview borrowed from the client's
    BufferPool: it is only valid while the guard lease that produced it
    is held and must never be kept past that point.

    An *owned* buffer is an independent bytearray handed to the caller,
    who controls its lifetime and releases it with ``release()``.
    """
    data: bytearray | memoryview
    owned: bool = False

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def allocate(cls, size: int) -> WireBuffer:
        return cls(bytearray(size), owned=True)

    @classmethod
    def copy_of(cls, region: bytes | bytearray | memoryview) -> WireBuffer:
        return cls(bytearray(region), owned=True)

    def release(self) -> None:
        if not self.owned:
            raise RuntimeError("Scratch buffers belong to the pool and cannot be released")
        self.data = bytearray()

    def __bytes__(self) -> bytes:
        return bytes(self.data)


@dataclass
class FinalizedBatch:
    """
    A complete MultiCommand message detached from the shared scratch
    buffers.

    The caller owns every field: it sends ``request``, receives into
    ``reply`` (already sized to the expected reply length), decodes the
    read results with ``value()`` and finally calls ``release()``.
    """
    request: WireBuffer
    """Encoded MultiCommand request, exactly as long as the batch."""

    reply: WireBuffer
    """Reply buffer sized to the expected batch reply, not yet filled."""

    reply_offsets: tuple[int, ...] = field(default_factory=tuple)
    """Offset in ``reply`` of each appended command's reply slot."""

    def __len__(self) -> int:
        return len(self.reply_offsets)

    @property
    def status(self) -> Status:
        return Status(self.reply.data[0])

    def value(self, index: int, width: int) -> int:
        """Decode the unsigned value read by the ``index``-th command."""
        check_width(width)
        offset = self.reply_offsets[index]
        end = offset + width
        if end > self.reply.size:
            raise IndexError(
                f"Command {index} reply [{offset}:{end}] lies outside a "
                f"{self.reply.size}-byte reply"
            )
        return int.from_bytes(self.reply.data[offset:end], "little")

    def release(self) -> None:
        self.request.release()
        self.reply.release()
        self.reply_offsets = ()

    def __enter__(self) -> FinalizedBatch:
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


def check_status(reply: WireBuffer) -> None:
    """Raise RemoteRejected when the reply's status byte reports a failure."""
    if reply.size and reply.data[0] == Status.FAIL:
        raise RemoteRejected("Relay endpoint rejected the command")
