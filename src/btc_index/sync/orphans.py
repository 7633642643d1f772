"""
Orphan elimination.

Peers may send competing headers for the same height: a short-lived fork
that lost the race, or a fork still being contested at the tip. After
heights are assigned, some heights can therefore hold several headers.

Elimination reduces the index to one chain:

1. Forks at the tip cannot be decided yet. Heights at the top holding more
   than one header are dropped until a height with a single header remains.
2. That header is the chain tip. Walking down, its previous hash names the
   only acceptable header at the height below. Siblings are orphans.

Tip forks are discarded rather than re-requested. They are fetched again on
the next synchronization once the network has settled on one branch.
"""

from __future__ import annotations

import logging

from btc_index import metrics
from btc_index.errors import AmbiguousChainError

from .heights import HeightIndex

logger = logging.getLogger(__name__)


def eliminate_orphans(height_index: HeightIndex) -> int:
    """
    Collapse the height index to a single chain, in place.

    Running it again on its own output changes nothing.

    Returns:
        The number of headers left in the index.

    Raises:
        AmbiguousChainError: If no height holds a single header, or a height
            below the tip holds no header matching the chain's previous hash.
    """
    if not height_index:
        return 0

    min_height = min(height_index)
    max_height = max(height_index)
    count = sum(len(bucket) for bucket in height_index.values())
    discarded = 0

    # Drop contested heights at the tip.
    while max_height >= min_height and len(height_index.get(max_height, ())) != 1:
        bucket = height_index.pop(max_height, [])
        if bucket:
            logger.info("Chain is split at highest height, ignoring height %d", max_height)
            discarded += len(bucket)
        max_height -= 1

    if max_height < min_height:
        metrics.orphans_discarded.inc(discarded)
        raise AmbiguousChainError(
            f"Chain is split at every height from {min_height}, no single tip found"
        )

    expected_parent = height_index[max_height][0].prev_hash

    for height in range(max_height - 1, min_height - 1, -1):
        bucket = height_index.get(height)
        if not bucket:
            continue

        if len(bucket) > 1:
            survivors = [header for header in bucket if header.hash == expected_parent]
            for header in bucket:
                if header.hash != expected_parent:
                    logger.info("Discarding orphan %s at height %d", header.hash, height)
            if len(survivors) != 1:
                metrics.orphans_discarded.inc(discarded)
                raise AmbiguousChainError(
                    f"no valid parent found at height {height}: "
                    f"{len(survivors)} headers match {expected_parent}"
                )
            discarded += len(bucket) - 1
            height_index[height] = survivors

        expected_parent = height_index[height][0].prev_hash

    metrics.orphans_discarded.inc(discarded)
    return count - discarded
