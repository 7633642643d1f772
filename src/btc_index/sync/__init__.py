"""
Header-chain synchronization against a single Bitcoin peer.

What It Does
------------
Given a few block hashes whose heights are known (anchors), download every
header the peer has above them and reduce them to one height-ordered chain.
Full blocks can then be fetched on demand, and new blocks followed as the
peer announces them.

How It Works
------------
1. **Header sync**: getheaders/headers from the anchors to the peer's tip
2. **Heights**: walk forward from the anchors through previous hashes
3. **Orphans**: collapse competing headers at one height into one chain
4. **Cursor**: iterate the chain and fetch blocks with getdata/block
"""

from __future__ import annotations

__all__ = [
    # Entry point
    "open_index",
    "ChainIndex",
    "PeerSession",
    "TransportFactory",
    "connect_tcp",
    # Components
    "HeaderSynchronizer",
    "SyncResult",
    "build_locator",
    "BlockFetcher",
    "block_from_wire",
    "Rendezvous",
    # Reconciliation
    "HeightedHeader",
    "ParentHashIndex",
    "HeightIndex",
    "Anchors",
    "link_header",
    "resolve_heights",
    "build_height_index",
    "eliminate_orphans",
    # Configuration
    "SyncConfig",
    "REQUEST_TIMEOUT",
    "INVENTORY_QUEUE_SIZE",
    # Errors
    "SyncError",
    "SyncTimeoutError",
    "SyncInterruptedError",
    "AmbiguousChainError",
    "CursorError",
    "ConnectionFailedError",
    "HandshakeTimeoutError",
]

from btc_index.errors import (
    AmbiguousChainError,
    ConnectionFailedError,
    CursorError,
    HandshakeTimeoutError,
    SyncError,
    SyncInterruptedError,
    SyncTimeoutError,
)

from .block_fetcher import BlockFetcher, block_from_wire
from .chain_index import ChainIndex
from .config import INVENTORY_QUEUE_SIZE, REQUEST_TIMEOUT, SyncConfig
from .header_sync import HeaderSynchronizer, SyncResult, build_locator
from .heights import (
    Anchors,
    HeightedHeader,
    HeightIndex,
    ParentHashIndex,
    build_height_index,
    link_header,
    resolve_heights,
)
from .orphans import eliminate_orphans
from .rendezvous import Rendezvous
from .service import PeerSession, TransportFactory, connect_tcp, open_index
