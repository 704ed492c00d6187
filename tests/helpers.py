import socket
import socketserver
import threading

from tests.fake.fake_relay import FakeRelay


class RelayRequestHandler(socketserver.BaseRequestHandler):
    """Serves one request per connection, like the emulator's IPC server."""

    def handle(self) -> None:
        server: RelayServerMixin = self.server  # type: ignore[assignment]
        buffer = b""
        while not FakeRelay.is_complete(buffer):
            chunk = self.request.recv(65536)
            if not chunk:
                return
            buffer += chunk

        reply = server.relay.handle(buffer)
        if server.truncate_reply is not None:
            reply = reply[:server.truncate_reply]
        self.request.sendall(reply)


class RelayServerMixin:
    relay: FakeRelay
    truncate_reply: int | None = None


class TCPRelayServer(RelayServerMixin, socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True


if hasattr(socket, "AF_UNIX"):
    class UnixRelayServer(RelayServerMixin, socketserver.ThreadingUnixStreamServer):
        daemon_threads = True


def serve_in_thread(server: socketserver.BaseServer) -> threading.Thread:
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread
