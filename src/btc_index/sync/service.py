"""
Session entry point.

`open_index` connects to one peer, synchronizes headers from the anchors,
and hands back a `ChainIndex` that keeps the connection for block requests.

Notification Routing
--------------------
The transport delivers notifications through callbacks fixed at connect
time, but the synchronizer and the block fetcher need the connected
transport to exist first. A `PeerSession` sits in between: its callbacks are
registered with the transport, and it forwards each notification to whichever
component is attached when the notification arrives::

    transport --on_headers--> PeerSession --> HeaderSynchronizer.pending
              --on_block----> PeerSession --> BlockFetcher.pending
              --on_inv------> PeerSession --> BlockFetcher inventory queue

Notifications arriving before their component is attached are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from btc_index.chain import BlockHeader
from btc_index.transport import PeerListeners, PeerTransport, TcpPeer
from btc_index.wire import NETWORK_MAGIC, Inv, MsgBlock

from .block_fetcher import BlockFetcher
from .chain_index import ChainIndex
from .config import SyncConfig
from .header_sync import HeaderSynchronizer
from .heights import Anchors

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str, float, PeerListeners, SyncConfig], Awaitable[PeerTransport]]
"""Opens a handshaken connection: (address, timeout, listeners, config) -> transport."""


async def connect_tcp(
    address: str, timeout: float, listeners: PeerListeners, config: SyncConfig
) -> PeerTransport:
    """Default transport factory: a TCP connection to a Bitcoin node."""
    return await TcpPeer.connect(
        address,
        timeout,
        listeners,
        network=config.network,
        user_agent=config.user_agent,
        start_height=config.start_height,
        relay=config.relay_transactions,
    )


@dataclass(slots=True)
class PeerSession:
    """Routes one connection's notifications to the attached components."""

    synchronizer: HeaderSynchronizer | None = None
    """Receives headers notifications."""

    fetcher: BlockFetcher | None = None
    """Receives block and inv notifications."""

    def listeners(self) -> PeerListeners:
        """Callbacks to register with the transport."""
        return PeerListeners(
            on_headers=self.on_headers,
            on_block=self.on_block,
            on_inv=self.on_inv,
        )

    def on_headers(self, headers: list[BlockHeader]) -> None:
        if self.synchronizer is None:
            logger.debug("Dropping %d headers, no synchronizer attached", len(headers))
            return
        self.synchronizer.on_headers(headers)

    def on_block(self, message: MsgBlock) -> None:
        if self.fetcher is None:
            logger.debug("Dropping block %s, no fetcher attached", message.header.hash)
            return
        self.fetcher.on_block(message)

    def on_inv(self, message: Inv) -> None:
        if self.fetcher is None:
            logger.debug("Dropping inventory, no fetcher attached")
            return
        self.fetcher.on_inv(message)


async def open_index(
    address: str,
    timeout: float,
    anchors: Anchors,
    *,
    config: SyncConfig | None = None,
    transport_factory: TransportFactory | None = None,
) -> ChainIndex:
    """
    Connect to a peer and build the chain index above the anchors.

    Args:
        address: Peer address, ``host[:port]``.
        timeout: Seconds allowed for the handshake and for each request.
            Overrides the timeout of `config`.
        anchors: Known block hashes by height.
        config: Session settings. Defaults to `SyncConfig()`.
        transport_factory: Opens the connection. Defaults to TCP.

    Returns:
        The chain index. Close it to disconnect.

    Raises:
        ValueError: If there are no anchors.
        ConnectionFailedError: If the peer cannot be reached.
        SyncTimeoutError: If the handshake or a request times out.
        AmbiguousChainError: If the headers do not reduce to one chain.
    """
    if not anchors:
        raise ValueError("At least one anchor is required")

    config = (config or SyncConfig()).model_copy(update={"timeout": float(timeout)})
    factory = transport_factory or connect_tcp

    session = PeerSession()
    transport = await factory(address, config.timeout, session.listeners(), config)

    try:
        session.synchronizer = HeaderSynchronizer(transport=transport, timeout=config.timeout)
        session.fetcher = BlockFetcher(
            transport=transport,
            magic=NETWORK_MAGIC[config.network],
            timeout=config.timeout,
            inventory_queue_size=config.inventory_queue_size,
        )
        result = await session.synchronizer.synchronize(anchors)
    except BaseException:
        await transport.close()
        raise

    logger.info("Index for %s holds %d headers", address, result.count)
    return ChainIndex.from_sync(result, session.fetcher, transport)
