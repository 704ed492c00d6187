import argparse
from dataclasses import replace

from pineipc.core.models.config import ClientConfig, TransportKind


def resolve_config(config: ClientConfig, args: argparse.Namespace) -> ClientConfig:
    """
    Apply the command-line overrides on top of the loaded settings.

    ``--socket`` forces the Unix domain socket transport, ``--host`` or
    ``--port`` force TCP. Giving both families at once is an error.
    """
    socket_path = getattr(args, "socket", None)
    host = getattr(args, "host", None)
    port = getattr(args, "port", None)
    timeout = getattr(args, "timeout", None)

    if socket_path and (host or port):
        raise ValueError("--socket cannot be combined with --host/--port")

    if socket_path:
        config = replace(config, transport=TransportKind.UNIX, socket_path=socket_path)
    elif host or port:
        config = replace(
            config,
            transport=TransportKind.TCP,
            host=host or config.host,
            port=port or config.port,
        )

    if timeout is not None:
        config = replace(config, timeout=timeout)

    return config
