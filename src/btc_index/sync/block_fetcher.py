"""
Full block retrieval.

Blocks are fetched one at a time with ``getdata``. The peer answers with a
``block`` message, which the transport delivers as a notification. Since the
message carries no request id, the answer is matched by its header hash.

New blocks are also announced unsolicited through ``inv`` messages. Callers
that want to follow the chain wait for those announcements, and every block
announced is fetched before the wait returns.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial

from btc_index import metrics
from btc_index.chain import Block
from btc_index.errors import SyncInterruptedError
from btc_index.transport import PeerTransport
from btc_index.types import Bytes4, Hash256, Uint32
from btc_index.wire import BLOCK_INV_TYPES, GetData, Inv, InvType, InvVect, InvVectors, MsgBlock

from .config import INVENTORY_QUEUE_SIZE
from .rendezvous import Rendezvous

logger = logging.getLogger(__name__)


def block_from_wire(message: MsgBlock, magic: Bytes4) -> Block:
    """Convert a block message into a `Block` tagged with its network magic."""
    return Block(magic=magic, header=message.header, txs=message.txs)


@dataclass(slots=True)
class BlockFetcher:
    """
    Fetches full blocks and relays block announcements.

    The caller routes the session's block and inv notifications into
    `on_block` and `on_inv`.
    """

    transport: PeerTransport
    """Connection used to send getdata."""

    magic: Bytes4
    """Network magic recorded on every returned block."""

    timeout: float
    """Seconds to wait for each block."""

    inventory_queue_size: int = INVENTORY_QUEUE_SIZE
    """Announcements buffered between calls to `wait_for_blocks`."""

    pending: Rendezvous[MsgBlock] = field(default_factory=lambda: Rendezvous("block"))
    """Slot block notifications are delivered to, keyed by block hash."""

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    """Allows one fetch at a time."""

    _inventory: asyncio.Queue[Inv] | None = field(default=None, init=False)
    """Buffered announcements. Created by the first `wait_for_blocks` call."""

    def on_block(self, message: MsgBlock) -> None:
        """Deliver a block notification from the transport."""
        self.pending.deliver(message, key=message.header.hash)

    def on_inv(self, message: Inv) -> None:
        """Buffer an inventory announcement if anyone follows announcements."""
        if self._inventory is None:
            logger.debug("Ignoring inventory of %d entries, not following", len(message.inventory))
            return
        try:
            self._inventory.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Inventory queue full, dropping announcement of %d entries",
                len(message.inventory),
            )

    async def fetch_block(self, block_hash: Hash256) -> Block:
        """
        Request one block and wait for it.

        Raises:
            SyncTimeoutError: If the block does not arrive within the timeout.
        """
        request = GetData(
            inventory=InvVectors(
                data=[InvVect(inv_type=Uint32(InvType.MSG_WITNESS_BLOCK), hash=block_hash)]
            )
        )
        async with self._lock:
            message = await self.pending.exchange(
                partial(self.transport.send, request), self.timeout, key=block_hash
            )
        metrics.blocks_fetched.inc()
        logger.debug("Fetched block %s with %d transactions", block_hash, len(message.txs))
        return block_from_wire(message, self.magic)

    async def wait_for_blocks(self, cancel: asyncio.Event | None = None) -> list[Block]:
        """
        Wait for the next announcement of new blocks and fetch them.

        Announcements naming no block are skipped. The first call starts
        buffering announcements; earlier ones are not seen.

        Args:
            cancel: Setting this event ends the wait. It is left set.

        Raises:
            SyncInterruptedError: If `cancel` is set before blocks are announced.
            SyncTimeoutError: If an announced block cannot be fetched in time.
        """
        if self._inventory is None:
            self._inventory = asyncio.Queue(maxsize=self.inventory_queue_size)

        while True:
            announcement = await self._next_announcement(self._inventory, cancel)

            block_hashes = []
            for entry in announcement.inventory:
                if entry.inv_type in BLOCK_INV_TYPES:
                    block_hashes.append(entry.hash)
                else:
                    logger.warning(
                        "Ignoring inventory of unknown type %d for %s", entry.inv_type, entry.hash
                    )

            if block_hashes:
                logger.info("Peer announced %d new blocks", len(block_hashes))
                return [await self.fetch_block(block_hash) for block_hash in block_hashes]

    @staticmethod
    async def _next_announcement(
        queue: asyncio.Queue[Inv], cancel: asyncio.Event | None
    ) -> Inv:
        if cancel is None:
            return await queue.get()
        if cancel.is_set():
            raise SyncInterruptedError("Wait for blocks cancelled")

        get = asyncio.ensure_future(queue.get())
        cancelled = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({get, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (get, cancelled):
                if not task.done():
                    task.cancel()

        if cancelled.done() and not cancelled.cancelled():
            # An announcement taken in the same instant stays for the next caller.
            if get.done() and not get.cancelled():
                queue.put_nowait(get.result())
            raise SyncInterruptedError("Wait for blocks cancelled")
        return get.result()
