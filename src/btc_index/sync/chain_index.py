"""
Chain index: a cursor over the reconciled headers.

The index holds one header per height, from just above the anchors up to the
peer's tip. A cursor starts at the first height above the highest anchor the
headers connect to and moves upward one height at a time.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass
from types import TracebackType

from typing_extensions import Self

from btc_index.chain import Block, BlockHeader
from btc_index.errors import CursorError
from btc_index.transport import PeerTransport

from .block_fetcher import BlockFetcher
from .header_sync import SyncResult
from .heights import HeightIndex


@dataclass(slots=True)
class ChainIndex:
    """Reconciled headers of one session and a cursor over them."""

    height_index: HeightIndex
    """Headers by height."""

    total: int
    """Number of headers in the index."""

    height: int
    """Cursor height."""

    fetcher: BlockFetcher
    """Retrieves full blocks over the session's connection."""

    transport: PeerTransport
    """The session's connection, released by `close`."""

    position: int = 0
    """Cursor position within the bucket at `height`."""

    @classmethod
    def from_sync(
        cls, result: SyncResult, fetcher: BlockFetcher, transport: PeerTransport
    ) -> Self:
        """Create an index positioned just above the base height."""
        return cls(
            height_index=result.height_index,
            total=result.count,
            height=result.base_height + 1,
            fetcher=fetcher,
            transport=transport,
        )

    def count(self) -> int:
        """Number of headers in the index."""
        return self.total

    def current_height(self) -> int:
        """Height of the cursor."""
        return self.height

    def advance(self) -> bool:
        """
        Move the cursor to the next header.

        Returns:
            False if the index is empty or the cursor is at the last header.
        """
        if not self.height_index:
            return False

        bucket = self.height_index.get(self.height, [])
        if self.position + 1 < len(bucket):
            self.position += 1
            return True

        if self.height_index.get(self.height + 1):
            self.height += 1
            self.position = 0
            return True

        return False

    def header(self) -> BlockHeader | None:
        """Header at the cursor, or None if there is none at its height."""
        bucket = self.height_index.get(self.height, [])
        if self.position < len(bucket):
            return bucket[self.position]
        return None

    async def read_block(self) -> Block:
        """
        Fetch the full block of the header at the cursor.

        Raises:
            CursorError: If the cursor is not on a header.
            SyncTimeoutError: If the block does not arrive in time.
        """
        header = self.header()
        if header is None:
            raise CursorError(f"No header at height {self.height}")
        return await self.fetcher.fetch_block(header.hash)

    async def wait_for_blocks(self, cancel: asyncio.Event | None = None) -> list[Block]:
        """Wait for newly announced blocks. See `BlockFetcher.wait_for_blocks`."""
        return await self.fetcher.wait_for_blocks(cancel)

    def heights(self) -> tuple[int, int] | None:
        """Lowest and highest indexed height, or None if the index is empty."""
        if not self.height_index:
            return None
        return min(self.height_index), max(self.height_index)

    def __iter__(self) -> Iterator[tuple[int, BlockHeader]]:
        """Yield (height, header) pairs upward. The cursor does not move."""
        for height in sorted(self.height_index):
            for header in self.height_index[height]:
                yield height, header

    async def close(self) -> None:
        """Disconnect from the peer."""
        await self.transport.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
