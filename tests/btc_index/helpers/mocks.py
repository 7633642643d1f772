"""
Mock peers for testing the sync core without a network.

A `FakePeer` stands in for a handshaken connection. It records everything
sent to it and answers from a script, delivering answers through the
registered listeners on the next loop iteration, the way a receive task
would.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Iterable, Sequence

from btc_index.chain import BlockHeader
from btc_index.errors import ConnectionFailedError
from btc_index.sync import SyncConfig
from btc_index.transport import PeerListeners
from btc_index.types import Hash256, Uint32
from btc_index.wire import GetData, GetHeaders, Inv, InvType, InvVect, InvVectors, Message, MsgBlock


class FakePeer:
    """
    Scripted peer.

    Each getheaders is answered with the next scripted batch. Once the
    batches run out, getheaders goes unanswered. Each getdata is answered
    with the known blocks it names; unknown blocks go unanswered.
    """

    def __init__(
        self,
        listeners: PeerListeners | None = None,
        batches: Iterable[Sequence[BlockHeader]] = (),
        blocks: Iterable[MsgBlock] = (),
    ) -> None:
        """Initialize with the answers to give."""
        self.listeners = listeners or PeerListeners()
        self.batches = deque(list(batch) for batch in batches)
        self.blocks = {block.header.hash: block for block in blocks}
        self.sent: list[Message] = []
        self.closed = False

    @property
    def getheaders(self) -> list[GetHeaders]:
        """Every getheaders sent, in order."""
        return [message for message in self.sent if isinstance(message, GetHeaders)]

    @property
    def getdata(self) -> list[GetData]:
        """Every getdata sent, in order."""
        return [message for message in self.sent if isinstance(message, GetData)]

    async def send(self, message: Message) -> None:
        """Record the message and schedule the scripted answer."""
        if self.closed:
            raise ConnectionFailedError("Connection to fake peer is closed")
        self.sent.append(message)

        loop = asyncio.get_running_loop()
        if isinstance(message, GetHeaders) and self.batches:
            assert self.listeners.on_headers is not None
            loop.call_soon(self.listeners.on_headers, self.batches.popleft())
        elif isinstance(message, GetData):
            for entry in message.inventory:
                block = self.blocks.get(entry.hash)
                if block is not None:
                    assert self.listeners.on_block is not None
                    loop.call_soon(self.listeners.on_block, block)

    async def close(self) -> None:
        """Mark the peer as disconnected."""
        self.closed = True

    def announce(self, *hashes: Hash256, inv_type: InvType = InvType.MSG_BLOCK) -> None:
        """Deliver an inventory announcement naming `hashes`."""
        assert self.listeners.on_inv is not None
        self.listeners.on_inv(
            Inv(
                inventory=InvVectors(
                    data=[InvVect(inv_type=Uint32(inv_type), hash=h) for h in hashes]
                )
            )
        )


class FakePeerFactory:
    """Transport factory handing out one scripted `FakePeer` per connection."""

    def __init__(
        self,
        batches: Iterable[Sequence[BlockHeader]] = (),
        blocks: Iterable[MsgBlock] = (),
    ) -> None:
        """Initialize with the script for the peer."""
        self.batches = list(batches)
        self.blocks = list(blocks)
        self.peer: FakePeer | None = None
        self.calls: list[tuple[str, float, SyncConfig]] = []

    async def __call__(
        self, address: str, timeout: float, listeners: PeerListeners, config: SyncConfig
    ) -> FakePeer:
        """Open a fake connection."""
        self.calls.append((address, timeout, config))
        self.peer = FakePeer(listeners, self.batches, self.blocks)
        return self.peer
