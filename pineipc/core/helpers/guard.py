import threading
from array import array
from contextlib import contextmanager
from typing import Generator

from pineipc.core.memory.pool import BufferPool


class ScratchLease:
    """
    Proof of exclusive possession of the pool's scratch regions.

    A lease is handed out by ScratchGuard and revoked when the guard
    releases it. Every accessor checks the lease is still live, so a
    reference kept past its scope fails loudly instead of reading or
    corrupting another caller's bytes.
    """
    def __init__(self, pool: BufferPool) -> None:
        self._pool = pool
        self._live = True

    @property
    def live(self) -> bool:
        return self._live

    @property
    def request(self) -> bytearray:
        return self._check().request

    @property
    def reply(self) -> bytearray:
        return self._check().reply

    @property
    def offsets(self) -> array:
        return self._check().offsets

    def revoke(self) -> None:
        self._live = False

    def _check(self) -> BufferPool:
        if not self._live:
            raise RuntimeError("Scratch lease used after release")
        return self._pool


class ScratchGuard:
    """
    Serializes access to a BufferPool with two locks.

    - the *scratch* lock is held by whoever currently encodes into the
      shared buffers: one single command for the duration of
      encode + send + decode, or one batch from open to close.
    - the *batch* lock makes batch construction exclusive: it is always
      taken before the scratch lock and released after it.

    Neither lock is reentrant. A thread that already holds the open
    batch and asks for another lease would wait on itself forever, so
    that case is reported as an error.
    """
    def __init__(self, pool: BufferPool) -> None:
        self._pool = pool
        self._batch_lock = threading.Lock()
        self._scratch_lock = threading.Lock()
        self._batch_owner: int | None = None
        self._batch_lease: ScratchLease | None = None

    @property
    def batch_owner(self) -> int | None:
        """Thread identifier of the thread holding the open batch."""
        return self._batch_owner

    @property
    def batch_lease(self) -> ScratchLease | None:
        return self._batch_lease

    @contextmanager
    def lease(self, timeout: float | None = None) -> Generator[ScratchLease, None, None]:
        self._ensure_not_batch_owner()
        if not self._scratch_lock.acquire(timeout=_lock_timeout(timeout)):
            raise TimeoutError("Timed out waiting for the scratch buffers")

        lease = ScratchLease(self._pool)
        try:
            yield lease
        finally:
            lease.revoke()
            self._scratch_lock.release()

    def open_batch(self, timeout: float | None = None) -> ScratchLease:
        self._ensure_not_batch_owner()
        if not self._batch_lock.acquire(timeout=_lock_timeout(timeout)):
            raise TimeoutError("Timed out waiting for the previous batch to finish")

        # the whole timeout budget applies to each lock in turn
        if not self._scratch_lock.acquire(timeout=_lock_timeout(timeout)):
            self._batch_lock.release()
            raise TimeoutError("Timed out waiting for the scratch buffers")

        self._batch_owner = threading.get_ident()
        self._batch_lease = ScratchLease(self._pool)
        return self._batch_lease

    def close_batch(self) -> None:
        if self._batch_lease is None:
            raise RuntimeError("No batch is open")
        if self._batch_owner != threading.get_ident():
            raise RuntimeError("The open batch belongs to another thread")

        self._batch_lease.revoke()
        self._batch_lease = None
        self._batch_owner = None
        self._scratch_lock.release()
        self._batch_lock.release()

    def _ensure_not_batch_owner(self) -> None:
        if self._batch_owner is not None and self._batch_owner == threading.get_ident():
            raise RuntimeError(
                "This thread holds the open batch: finalize or abort it first"
            )


def _lock_timeout(timeout: float | None) -> float:
    return -1 if timeout is None else timeout
