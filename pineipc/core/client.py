from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Generator

from pineipc.core.batch import BatchSession
from pineipc.core.codec import CommandCodec
from pineipc.core.helpers.guard import ScratchGuard
from pineipc.core.memory.pool import BufferPool
from pineipc.core.models.config import ClientConfig
from pineipc.core.models.wire import (
    STATUS_SIZE,
    FinalizedBatch,
    WireBuffer,
    check_status,
    check_width,
)
from pineipc.core.ports.transport import Transport
from pineipc.core.transport.connection import SocketTransport


class PineClient:
    """
    Reads and writes the memory of an emulated process through the
    PINE relay endpoint.

    Single commands are encoded into the pool's scratch buffers, sent,
    and decoded while the scratch lease is held:

        value = client.read32(0x00347D34)
        client.write8(0x00347D34, 0x7F)

    Batches chain many commands into one round trip. ``batch=True``
    appends to the open batch instead of sending, and returns the
    command's index in the batch:

        client.initialize_batch()
        client.write8(0x1000, 0x7F, batch=True)
        i = client.read32(0x2000, batch=True)
        batch = client.finalize_batch()
        client.send_batch(batch)
        value = batch.value(i, 4)
        batch.release()

    Only one batch can be open at a time. While it is open, single
    commands issued from other threads block until it is finalized.
    """
    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._pool = BufferPool(self._config.max_batch_commands)
        self._guard = ScratchGuard(self._pool)
        self._transport = transport or SocketTransport(self._config)
        self._session: BatchSession | None = None
        self._logger = logging.getLogger("core.client")

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._pool.closed

    def __enter__(self) -> PineClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """
        Release the buffer pool.

        An open batch owned by the calling thread is aborted first. Any
        later command fails. Safe to call multiple times.
        """
        if self._guard.batch_owner == threading.get_ident():
            self.abort_batch()

        with self._guard.lease():
            self._pool.close()

    def read(self, address: int, width: int, batch: bool = False) -> int:
        """
        Read an unsigned ``width``-byte value at ``address``.

        Returns the value, or in batch mode the command's index in the
        open batch.
        """
        check_width(width)
        if batch:
            return self._open_session().append_read(address, width)

        with self._guard.lease() as lease:
            CommandCodec.encode_read(lease.request, 0, address, width)
            size = CommandCodec.read_size(width)
            reply_size = CommandCodec.read_reply_size(width)
            self._exchange(
                WireBuffer(memoryview(lease.request)[:size]),
                WireBuffer(memoryview(lease.reply)[:reply_size]),
            )
            return CommandCodec.decode_value(lease.reply, STATUS_SIZE, width)

    def write(self, address: int, value: int, width: int, batch: bool = False) -> int | None:
        """
        Write an unsigned ``width``-byte value at ``address``.

        Returns nothing, or in batch mode the command's index in the
        open batch.
        """
        check_width(width)
        if batch:
            return self._open_session().append_write(address, value, width)

        with self._guard.lease() as lease:
            CommandCodec.encode_write(lease.request, 0, address, value, width)
            size = CommandCodec.write_size(width)
            reply_size = CommandCodec.write_reply_size(width)
            self._exchange(
                WireBuffer(memoryview(lease.request)[:size]),
                WireBuffer(memoryview(lease.reply)[:reply_size]),
            )
        return None

    def read8(self, address: int, batch: bool = False) -> int:
        return self.read(address, 1, batch)

    def read16(self, address: int, batch: bool = False) -> int:
        return self.read(address, 2, batch)

    def read32(self, address: int, batch: bool = False) -> int:
        return self.read(address, 4, batch)

    def read64(self, address: int, batch: bool = False) -> int:
        return self.read(address, 8, batch)

    def write8(self, address: int, value: int, batch: bool = False) -> int | None:
        return self.write(address, value, 1, batch)

    def write16(self, address: int, value: int, batch: bool = False) -> int | None:
        return self.write(address, value, 2, batch)

    def write32(self, address: int, value: int, batch: bool = False) -> int | None:
        return self.write(address, value, 4, batch)

    def write64(self, address: int, value: int, batch: bool = False) -> int | None:
        return self.write(address, value, 8, batch)

    def initialize_batch(self, timeout: float | None = None) -> BatchSession:
        """
        Open a batch, blocking until any previous batch is finalized and
        any in-flight single command has released the scratch buffers.

        Raises TimeoutError when ``timeout`` seconds elapse first.
        """
        lease = self._guard.open_batch(timeout)
        try:
            self._session = BatchSession(lease, self._pool.max_commands)
        except BaseException:
            self._guard.close_batch()
            raise

        self._logger.debug("Batch opened")
        return self._session

    def finalize_batch(self) -> FinalizedBatch:
        """
        Close the open batch and hand its encoded request, an empty reply
        buffer of the right size, and the reply offsets to the caller.
        """
        session = self._open_session()
        try:
            session.finalized = session.finalize()
        finally:
            self._end_session()
        return session.finalized

    def abort_batch(self) -> None:
        """Drop the open batch without producing a message."""
        session = self._open_session()
        session.discard()
        self._end_session()
        self._logger.debug(f"Batch aborted after {session.count} commands")

    @contextmanager
    def batch(self, timeout: float | None = None) -> Generator[BatchSession, None, None]:
        """
        Open a batch for the duration of a ``with`` block.

        The finalized batch is available as ``session.finalized`` once the
        block exits normally; if the block raises, the batch is aborted.
        A batch already finalized or aborted inside the block is left as is.
        """
        session = self.initialize_batch(timeout)
        try:
            yield session
        except BaseException:
            if not session.closed:
                self.abort_batch()
            raise
        if not session.closed:
            self.finalize_batch()

    def send(self, request: WireBuffer, reply: WireBuffer) -> None:
        """Send an encoded request and fill ``reply`` with the answer."""
        self._exchange(request, reply)

    def send_batch(self, batch: FinalizedBatch) -> FinalizedBatch:
        """Send a finalized batch; its reply buffer receives the answer."""
        self._exchange(batch.request, batch.reply)
        return batch

    def _exchange(self, request: WireBuffer, reply: WireBuffer) -> None:
        self._transport.send(request, reply)
        check_status(reply)

    def _open_session(self) -> BatchSession:
        if self._session is None:
            raise RuntimeError("No batch is open: call initialize_batch() first")
        if self._guard.batch_owner != threading.get_ident():
            raise RuntimeError("The open batch belongs to another thread")
        return self._session

    def _end_session(self) -> None:
        self._session = None
        self._guard.close_batch()
