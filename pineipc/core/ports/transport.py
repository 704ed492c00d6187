from typing import Protocol

from pineipc.core.models.wire import WireBuffer


class Transport(Protocol):
    """
    Delivers one encoded request to the relay endpoint and fills the
    reply buffer with its answer.

    Implementations must:
    - write the whole request and read exactly ``reply.size`` bytes
    - raise RemoteRejected when the reply status byte is a failure
    - never retry on their own
    """

    def send(self, request: WireBuffer, reply: WireBuffer) -> None:
        """Exchange ``request`` for a reply written into ``reply``."""
