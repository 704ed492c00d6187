import logging
import socket

from pineipc.core.errors import ConnectionFailed, IOFailed, RemoteRejected, UnknownOutcome
from pineipc.core.models.config import ClientConfig, TransportKind
from pineipc.core.models.wire import Status, WireBuffer, check_status
from pineipc.core.ports.transport import Transport


class SocketTransport(Transport):
    """
    Blocking socket transport to the relay endpoint.

    Each call to ``send`` opens a fresh connection, writes the whole
    request, reads exactly ``reply.size`` bytes into the reply buffer
    and closes the connection before inspecting the status byte. There
    is no pooling, no keep-alive and no retry.

    Short reads are looped until the reply is complete. A peer closing
    the connection after the request went out but before the reply was
    fully read leaves the outcome ambiguous and raises UnknownOutcome.
    """
    def __init__(self, config: ClientConfig) -> None:
        self._kind = config.transport.resolve()
        self._address = config.address
        self._timeout = config.timeout
        self._logger = logging.getLogger("core.transport.socket")

    @property
    def address(self) -> str | tuple[str, int]:
        return self._address

    def send(self, request: WireBuffer, reply: WireBuffer) -> None:
        sock = self._connect()
        try:
            self._write_all(sock, request)
            self._read_exact(sock, reply)
        finally:
            sock.close()

        try:
            check_status(reply)
        except RemoteRejected:
            self._logger.warning(f"{self._who()} - Command rejected by the relay endpoint")
            raise

    def _connect(self) -> socket.socket:
        try:
            if self._kind is TransportKind.UNIX:
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                try:
                    sock.settimeout(self._timeout)
                    sock.connect(self._address)
                except OSError:
                    sock.close()
                    raise
            else:
                sock = socket.create_connection(self._address, timeout=self._timeout)
                sock.settimeout(self._timeout)
        except OSError as ex:
            self._logger.warning(f"Connect failed to {self._who()}: {ex}")
            raise ConnectionFailed(f"Unable to connect to {self._who()}: {ex}") from ex

        self._logger.debug(f"{self._who()} - Connection made")
        return sock

    def _write_all(self, sock: socket.socket, request: WireBuffer) -> None:
        try:
            sock.sendall(request.data)
        except OSError as ex:
            self._logger.warning(f"Write to {self._who()} failed: {ex}")
            raise IOFailed(f"Unable to write {request.size} bytes to {self._who()}: {ex}") from ex

    def _read_exact(self, sock: socket.socket, reply: WireBuffer) -> None:
        """Blocking read of exactly ``reply.size`` bytes."""
        view = memoryview(reply.data)
        received = 0
        while received < reply.size:
            try:
                n = sock.recv_into(view[received:], reply.size - received)
            except OSError as ex:
                self._logger.warning(f"Read from {self._who()} failed: {ex}")
                raise IOFailed(
                    f"Unable to read {reply.size} bytes from {self._who()}: {ex}"
                ) from ex

            if n == 0:
                if received and view[0] == Status.FAIL:
                    # the endpoint may answer a failure with the status byte alone
                    return
                self._logger.warning(
                    f"{self._who()} - Connection closed after {received}/{reply.size} bytes"
                )
                raise UnknownOutcome(
                    f"{self._who()} closed the connection before the reply was complete "
                    f"({received}/{reply.size} bytes)"
                )
            received += n

    def _who(self) -> str:
        if isinstance(self._address, tuple):
            return "%s:%d" % self._address
        return self._address
