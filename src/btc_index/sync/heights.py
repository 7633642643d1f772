"""
Height assignment from anchors.

Headers do not carry their height. A header's height is one more than its
parent's, so heights can only be learned by walking forward from blocks whose
height is already known: the anchors.

How It Works
------------
Received headers are indexed by their previous hash. Starting from each
anchor hash, every header whose previous hash is that anchor sits one height
above it. Each such child then acts as an anchor for its own children::

    anchor(100) <- A(101) <- C(102)
                <- B(101)

Propagation uses an explicit FIFO worklist. Recursion would put the depth
of the walk, which is controlled by the peer, on the Python call stack.

Headers never reached from an anchor keep no height and are dropped when the
height index is built.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from btc_index.chain import BlockHeader
from btc_index.types import Hash256

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HeightedHeader:
    """A received header and the height assigned to it, if any."""

    header: BlockHeader
    """The header as received."""

    height: int | None = None
    """Assigned height. None until reached from an anchor."""

    hash: Hash256 = field(init=False)
    """Hash of the header, computed once on construction."""

    def __post_init__(self) -> None:
        self.hash = self.header.hash


ParentHashIndex = dict[Hash256, list[HeightedHeader]]
"""Received headers keyed by previous hash, in delivery order."""

HeightIndex = dict[int, list[BlockHeader]]
"""Headers keyed by height. After reconciliation each height holds one header."""

Anchors = Mapping[int, Sequence[Hash256]]
"""Known block hashes by height."""


def link_header(by_prev_hash: ParentHashIndex, header: BlockHeader) -> HeightedHeader:
    """Add a header to the parent-hash index and return its entry."""
    entry = HeightedHeader(header)
    by_prev_hash.setdefault(header.prev_hash, []).append(entry)
    return entry


def resolve_heights(by_prev_hash: ParentHashIndex, anchors: Anchors) -> int | None:
    """
    Assign heights to every header reachable from an anchor.

    A header reachable from anchor (H, hash) through k previous-hash hops gets
    height H + k.

    Args:
        by_prev_hash: Received headers keyed by previous hash. Heights are
            written into its entries.
        anchors: Known hashes by height.

    Returns:
        The highest anchor height with at least one child among the received
        headers, or None if no anchor has a child.
    """
    worklist: deque[tuple[int, Hash256, bool]] = deque(
        (height, anchor_hash, True) for height, hashes in anchors.items() for anchor_hash in hashes
    )

    base_height: int | None = None
    while worklist:
        height, parent_hash, is_anchor = worklist.popleft()

        children = by_prev_hash.get(parent_hash)
        if not children:
            continue

        if is_anchor and (base_height is None or height > base_height):
            base_height = height

        for child in children:
            # Already reached at this height through another path.
            if child.height == height + 1:
                continue
            child.height = height + 1
            worklist.append((height + 1, child.hash, False))

    if base_height is None:
        logger.debug("No received header connects to an anchor")
    return base_height


def build_height_index(by_prev_hash: ParentHashIndex) -> HeightIndex:
    """Group every header that received a height by that height."""
    by_height: HeightIndex = {}
    for entries in by_prev_hash.values():
        for entry in entries:
            if entry.height is not None:
                by_height.setdefault(entry.height, []).append(entry.header)
    return by_height
