import os
import socket
import tempfile
import threading

import pytest

from pineipc.core.client import PineClient
from pineipc.core.errors import ConnectionFailed, RemoteRejected, UnknownOutcome
from pineipc.core.models.config import ClientConfig, TransportKind
from pineipc.core.models.wire import Status
from tests.fake.fake_relay import FakeRelay
from tests.helpers import RelayRequestHandler, TCPRelayServer, serve_in_thread


@pytest.fixture
def tcp_server():
    server = TCPRelayServer(("127.0.0.1", 0), RelayRequestHandler)
    server.relay = FakeRelay()
    serve_in_thread(server)
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def tcp_client(tcp_server):
    host, port = tcp_server.server_address
    config = ClientConfig(transport=TransportKind.TCP, host=host, port=port, timeout=5)
    with PineClient(config) as client:
        yield client


@pytest.mark.it
def test_single_commands_over_tcp(tcp_server, tcp_client):
    tcp_client.write32(0x00347D34, 0xCAFEBABE)

    assert tcp_client.read32(0x00347D34) == 0xCAFEBABE
    assert tcp_client.read16(0x00347D36) == 0xCAFE
    assert tcp_server.relay.dump(0x00347D34, 4) == b"\xbe\xba\xfe\xca"


@pytest.mark.it
def test_large_batch_over_tcp(tcp_server, tcp_client):
    tcp_server.relay.load(0x8000, bytes(range(256)) * 4)

    with tcp_client.batch() as session:
        for i in range(16):
            session.append_write(0x100 + i * 8, i, 8)
        for i in range(16):
            session.append_read(0x8000 + i * 4, 4)

    with tcp_client.send_batch(session.finalized) as batch:
        values = [batch.value(16 + i, 4) for i in range(16)]

    assert values[0] == 0x03020100
    assert values[15] == 0x3F3E3D3C
    assert tcp_server.relay.dump(0x100 + 15 * 8, 8) == (15).to_bytes(8, "little")


@pytest.mark.it
def test_rejection_over_tcp(tcp_server, tcp_client):
    tcp_server.relay.fail = True

    with pytest.raises(RemoteRejected):
        tcp_client.read64(0x10)

    tcp_client.initialize_batch()
    tcp_client.read32(0x10, batch=True)
    batch = tcp_client.finalize_batch()
    with pytest.raises(RemoteRejected):
        tcp_client.send_batch(batch)


@pytest.mark.it
def test_truncated_reply_is_unknown(tcp_server, tcp_client):
    tcp_server.truncate_reply = 2

    with pytest.raises(UnknownOutcome):
        tcp_client.read32(0x10)


@pytest.mark.it
def test_concurrent_single_commands(tcp_server, tcp_client):
    errors = []

    def worker(base: int):
        try:
            for i in range(20):
                tcp_client.write16(base + i * 2, i)
                assert tcp_client.read16(base + i * 2) == i
        except Exception as ex:  # noqa
            errors.append(ex)

    threads = [threading.Thread(target=worker, args=(0x1000 * n,)) for n in range(1, 5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert errors == []


@pytest.mark.it
def test_nobody_listening():
    with socket.socket() as probe:
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]

    config = ClientConfig(transport=TransportKind.TCP, port=port, timeout=1)
    with PineClient(config) as client:
        with pytest.raises(ConnectionFailed):
            client.read8(0x10)


@pytest.mark.it
@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="requires AF_UNIX")
def test_single_and_batch_over_unix_socket():
    from tests.helpers import UnixRelayServer

    # sun_path is limited to about 100 bytes
    directory = tempfile.mkdtemp(prefix="pine", dir="/tmp")
    path = os.path.join(directory, "relay.sock")
    server = UnixRelayServer(path, RelayRequestHandler)
    server.relay = FakeRelay()
    serve_in_thread(server)

    try:
        config = ClientConfig(transport=TransportKind.UNIX, socket_path=path, timeout=5)
        with PineClient(config) as client:
            client.write8(0x20, 0x7F)
            assert client.read8(0x20) == 0x7F

            client.initialize_batch()
            client.write8(0x1000, 0x7F, batch=True)
            client.read32(0x2000, batch=True)
            batch = client.finalize_batch()
            client.send_batch(batch)

            assert batch.status is Status.OK
            assert batch.reply_offsets == (1, 2)
            assert batch.value(1, 4) == 0
    finally:
        server.shutdown()
        server.server_close()
        os.unlink(path)
        os.rmdir(directory)
