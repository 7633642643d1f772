"""
Sync configuration.

Operational parameters for a session: timeouts, queue bounds and the values
we announce in our version message.
"""

from __future__ import annotations

from typing import Final

from btc_index.config import BTC_INDEX_NETWORK
from btc_index.types import StrictBaseModel
from btc_index.wire.config import USER_AGENT, Network

REQUEST_TIMEOUT: Final[float] = 30.0
"""Default timeout in seconds for the handshake and for each request."""

INVENTORY_QUEUE_SIZE: Final[int] = 64
"""Maximum inventory announcements buffered while no caller is consuming them."""

START_HEIGHT: Final[int] = 0
"""Best height announced in our version message. We hold no blocks."""


class SyncConfig(StrictBaseModel):
    """Runtime configuration for a sync session."""

    network: Network = BTC_INDEX_NETWORK  # type: ignore[assignment]
    """Network to connect to. Selects the message magic and default port."""

    timeout: float = REQUEST_TIMEOUT
    """Seconds to wait for the handshake, each header batch and each block."""

    user_agent: str = USER_AGENT
    """User agent announced to the peer."""

    start_height: int = START_HEIGHT
    """Best height announced to the peer."""

    relay_transactions: bool = False
    """Whether the peer should announce loose transactions to us."""

    inventory_queue_size: int = INVENTORY_QUEUE_SIZE
    """Bound of the inventory announcement queue."""
