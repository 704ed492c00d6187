from __future__ import annotations

import socket
from dataclasses import dataclass
from enum import Enum

from pineipc.core.memory.pool import DEFAULT_MAX_COMMANDS

DEFAULT_HOST: str = "127.0.0.1"
"""Loopback address of the relay endpoint on platforms without AF_UNIX."""

DEFAULT_PORT: int = 28011
"""TCP port of the relay endpoint on platforms without AF_UNIX."""

DEFAULT_SOCKET_PATH: str = "/tmp/pcsx2.sock"
"""Unix domain socket of the relay endpoint everywhere else."""


class TransportKind(str, Enum):
    AUTO = "auto"
    UNIX = "unix"
    TCP = "tcp"

    def resolve(self) -> TransportKind:
        if self is not TransportKind.AUTO:
            return self
        return TransportKind.UNIX if hasattr(socket, "AF_UNIX") else TransportKind.TCP


@dataclass
class ClientConfig:
    """
    Static configuration of a PineClient.

    Defaults reproduce the emulator's fixed endpoints, so a bare
    ``ClientConfig()`` talks to a locally running relay.
    """
    transport: TransportKind = TransportKind.AUTO
    """
    Which socket family to use. ``auto`` picks a Unix domain socket when
    the platform supports one and loopback TCP otherwise.
    """

    socket_path: str = DEFAULT_SOCKET_PATH
    """
    Filesystem path of the relay's Unix domain socket.
    """

    host: str = DEFAULT_HOST
    """
    Host of the relay's TCP endpoint.
    """

    port: int = DEFAULT_PORT
    """
    Port of the relay's TCP endpoint.
    """

    timeout: float | None = None
    """
    Socket timeout in seconds for connect, write and read.
    ``None`` blocks indefinitely.
    """

    max_batch_commands: int = DEFAULT_MAX_COMMANDS
    """
    Capacity of a batch. The scratch buffers are sized for this many
    worst-case commands; appending more raises BatchTooLarge.
    """

    @property
    def address(self) -> str | tuple[str, int]:
        if self.transport.resolve() is TransportKind.UNIX:
            return self.socket_path
        return self.host, self.port
