"""
Header synchronization.

Downloads every header the peer has above the anchors, then reduces them to
one height-ordered chain.

The Protocol
------------
We send ``getheaders`` with a block locator: a list of hashes we already
know. The peer finds the first one it recognizes and answers with up to 2000
headers that follow it. We then ask again starting from the last header
received. An empty answer means the peer has nothing newer::

    getheaders(locator=[anchors...])  ->  headers[h1 .. h2000]
    getheaders(locator=[h2000])       ->  headers[h2001 .. h2750]
    getheaders(locator=[h2750])       ->  headers[]

Requests are strictly sequential. Each wait for an answer is bounded by the
session timeout.

Reconciliation
--------------
Once the stream ends the collected headers go through three steps:

1. Height assignment from the anchors (see `heights`)
2. Grouping by height, dropping headers no anchor reaches
3. Orphan elimination (see `orphans`)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import partial

from btc_index import metrics
from btc_index.chain import BlockHeader
from btc_index.transport import PeerTransport
from btc_index.types import Hash256, Uint32
from btc_index.wire import PROTOCOL_VERSION, GetHeaders, LocatorHashes
from btc_index.wire.config import MAX_LOCATOR_HASHES

from .heights import (
    Anchors,
    HeightIndex,
    ParentHashIndex,
    build_height_index,
    link_header,
    resolve_heights,
)
from .orphans import eliminate_orphans
from .rendezvous import Rendezvous

logger = logging.getLogger(__name__)


def build_locator(anchors: Mapping[int, Sequence[Hash256]]) -> list[Hash256]:
    """
    Build the initial block locator from the anchors.

    With lowest anchor height m and k anchor heights, lists the hashes of
    heights m + k - 1 down to m. Heights missing from that range contribute
    nothing. The peer resumes after the first hash it recognizes.

    Raises:
        ValueError: If there are no anchors.
    """
    if not anchors:
        raise ValueError("At least one anchor is required")

    lowest = min(anchors)
    locator = [
        anchor_hash
        for height in range(lowest + len(anchors) - 1, lowest - 1, -1)
        for anchor_hash in anchors.get(height, ())
    ]
    if len(locator) > MAX_LOCATOR_HASHES:
        logger.warning(
            "Locator has %d hashes, sending the first %d", len(locator), MAX_LOCATOR_HASHES
        )
        locator = locator[:MAX_LOCATOR_HASHES]
    return locator


@dataclass(slots=True)
class SyncResult:
    """Outcome of a header synchronization."""

    height_index: HeightIndex
    """Reconciled headers, one per height."""

    count: int
    """Number of headers in the index."""

    base_height: int
    """Highest anchor height the received headers connect to."""


@dataclass(slots=True)
class HeaderSynchronizer:
    """
    Walks the peer's headers from the anchors to its tip.

    The caller routes every headers notification of the session into
    `pending`. One synchronizer serves one session.
    """

    transport: PeerTransport
    """Connection used to send getheaders."""

    timeout: float
    """Seconds to wait for each headers answer."""

    pending: Rendezvous[list[BlockHeader]] = field(
        default_factory=lambda: Rendezvous("headers")
    )
    """Slot the session's headers notifications are delivered to."""

    def on_headers(self, headers: list[BlockHeader]) -> None:
        """Deliver a headers notification from the transport."""
        self.pending.deliver(headers)

    async def request_headers(self, locator: Sequence[Hash256]) -> list[BlockHeader]:
        """
        Send one getheaders and wait for the answer.

        Raises:
            SyncTimeoutError: If no headers message arrives within the timeout.
        """
        request = GetHeaders(
            version=Uint32(PROTOCOL_VERSION),
            locator=LocatorHashes(data=locator),
            stop_hash=Hash256.zero(),
        )
        return await self.pending.exchange(partial(self.transport.send, request), self.timeout)

    async def synchronize(self, anchors: Anchors) -> SyncResult:
        """
        Download headers above the anchors and reconcile them.

        Raises:
            ValueError: If there are no anchors.
            SyncTimeoutError: If the peer stops answering.
            AmbiguousChainError: If the headers do not reduce to one chain.
        """
        locator = build_locator(anchors)

        with metrics.sync_duration.time():
            by_prev_hash: ParentHashIndex = {}
            seen: set[Hash256] = set()
            received = 0

            while True:
                headers = await self.request_headers(locator)
                metrics.header_batches.inc()

                if not headers:
                    logger.info("End of headers (for now).")
                    break

                logger.info("Received %d headers", len(headers))
                metrics.headers_received.inc(len(headers))

                new = 0
                for header in headers:
                    header_hash = header.hash
                    if header_hash in seen:
                        logger.debug("Ignoring duplicate header %s", header_hash)
                        continue
                    seen.add(header_hash)
                    link_header(by_prev_hash, header)
                    new += 1

                if new == 0:
                    # Asking again from the same hash would return the same batch.
                    logger.warning("Peer repeated %d known headers, stopping", len(headers))
                    break
                received += new

                locator = [headers[-1].hash]

        top_anchor = max(anchors)
        if received == 0:
            return SyncResult(height_index={}, count=0, base_height=top_anchor)

        base_height = resolve_heights(by_prev_hash, anchors)
        if base_height is None:
            logger.warning("None of the %d received headers connects to an anchor", received)
            return SyncResult(height_index={}, count=0, base_height=top_anchor)

        height_index = build_height_index(by_prev_hash)
        count = eliminate_orphans(height_index)

        metrics.indexed_height.set(max(height_index))
        logger.info(
            "Indexed %d headers from height %d to %d",
            count,
            min(height_index),
            max(height_index),
        )
        return SyncResult(height_index=height_index, count=count, base_height=base_height)
