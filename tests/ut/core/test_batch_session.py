import pytest

from pineipc.core.batch import BatchSession
from pineipc.core.errors import BatchTooLarge, ErrorKind, InvalidWidth
from pineipc.core.helpers.guard import ScratchGuard
from pineipc.core.memory.pool import BufferPool


@pytest.fixture
def guard() -> ScratchGuard:
    return ScratchGuard(BufferPool(3))


@pytest.fixture
def session(guard):
    lease = guard.open_batch()
    try:
        yield BatchSession(lease, max_commands=3)
    finally:
        guard.close_batch()


@pytest.mark.ut
def test_new_session_writes_header(guard, session):
    assert session.count == 0
    assert session.request_length == 3
    assert session.reply_length == 1
    assert guard.batch_lease.request[:3] == bytearray(b"\xff\x00\x00")


@pytest.mark.ut
def test_write_then_read_layout(session):
    assert session.append_write(0x1000, 0x7F, 1) == 0
    assert session.append_read(0x2000, 4) == 1

    batch = session.finalize()

    assert bytes(batch.request) == bytes.fromhex(
        "ff 0200 04 00100000 7f 02 00200000"
    )
    assert batch.reply_offsets == (1, 2)
    assert batch.reply.size == 6
    assert len(batch) == 2


@pytest.mark.ut
def test_offsets_accumulate_reply_slots(session):
    session.append_read(0x10, 8)
    session.append_read(0x20, 2)
    session.append_write(0x30, 0xFFFF, 2)

    batch = session.finalize()

    assert batch.reply_offsets == (1, 9, 11)
    assert batch.reply.size == 12
    assert batch.request.size == 3 + 5 + 5 + 7


@pytest.mark.ut
def test_finalized_buffers_are_independent_copies(guard, session):
    session.append_read(0x2000, 4)
    batch = session.finalize()

    guard.batch_lease.request[:8] = b"\x00" * 8

    assert batch.request.owned
    assert batch.reply.owned
    assert bytes(batch.request) == bytes.fromhex("ff 0100 02 00200000")
    assert bytes(batch.reply) == b"\x00" * 5


@pytest.mark.ut
def test_empty_batch(session):
    batch = session.finalize()

    assert bytes(batch.request) == b"\xff\x00\x00"
    assert batch.reply.size == 1
    assert batch.reply_offsets == ()


@pytest.mark.ut
def test_batch_too_large_keeps_session_intact(session):
    for i in range(3):
        session.append_write(0x100 + i, i, 1)

    with pytest.raises(BatchTooLarge) as exc:
        session.append_read(0x200, 8)

    assert exc.value.kind is ErrorKind.BATCH_TOO_LARGE
    assert exc.value.limit == 3
    assert session.count == 3

    batch = session.finalize()
    assert len(batch.reply_offsets) == 3
    assert batch.request.data[1:3] == bytearray(b"\x03\x00")


@pytest.mark.ut
def test_invalid_width_appends_nothing(session):
    with pytest.raises(InvalidWidth):
        session.append_read(0x200, 3)
    with pytest.raises(InvalidWidth):
        session.append_write(0x200, 1, 16)

    assert session.count == 0
    assert session.request_length == 3


@pytest.mark.ut
def test_closed_session_refuses_appends(session):
    session.finalize()

    assert session.closed
    with pytest.raises(RuntimeError):
        session.append_read(0x10, 1)
    with pytest.raises(RuntimeError):
        session.finalize()


@pytest.mark.ut
def test_finalized_batch_decodes_values(session):
    session.append_write(0x1000, 0x7F, 1)
    read_index = session.append_read(0x2000, 4)
    batch = session.finalize()

    batch.reply.data[:] = b"\x00\x00\x78\x56\x34\x12"

    assert batch.value(read_index, 4) == 0x12345678
    with pytest.raises(IndexError):
        batch.value(read_index, 8)


@pytest.mark.ut
def test_finalized_batch_release(session):
    session.append_read(0x2000, 4)

    with session.finalize() as batch:
        assert batch.request.size == 8

    assert batch.request.size == 0
    assert batch.reply.size == 0
    assert batch.reply_offsets == ()
