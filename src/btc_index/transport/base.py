"""Interfaces between the sync core and a peer connection."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from btc_index.chain import BlockHeader
from btc_index.wire import Inv, Message, MsgBlock


class PeerTransport(Protocol):
    """
    A connected, handshaken peer.

    The sync core only sends messages; everything the peer sends back reaches
    it through the `PeerListeners` given when the connection was opened.
    """

    async def send(self, message: Message) -> None:
        """Send one message to the peer."""
        ...

    async def close(self) -> None:
        """Disconnect. Safe to call more than once."""
        ...


@dataclass(slots=True)
class PeerListeners:
    """
    Notification callbacks invoked from the transport's receive task.

    Callbacks must not block. They hand the notification over and return.
    """

    on_headers: Callable[[list[BlockHeader]], None] | None = None
    """Called with the headers of every headers message, possibly empty."""

    on_block: Callable[[MsgBlock], None] | None = None
    """Called with every block message."""

    on_inv: Callable[[Inv], None] | None = None
    """Called with every inventory announcement."""

    on_verack: Callable[[], None] | None = None
    """Called when the peer acknowledges our version message."""
