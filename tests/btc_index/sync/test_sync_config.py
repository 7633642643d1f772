"""Tests for session configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from btc_index.config import BTC_INDEX_NETWORK
from btc_index.sync import INVENTORY_QUEUE_SIZE, REQUEST_TIMEOUT, SyncConfig
from btc_index.wire.config import USER_AGENT


class TestSyncConfig:
    """Tests for SyncConfig defaults and validation."""

    def test_defaults(self) -> None:
        """Defaults come from the module constants and the environment."""
        config = SyncConfig()

        assert config.network == BTC_INDEX_NETWORK
        assert config.timeout == REQUEST_TIMEOUT
        assert config.user_agent == USER_AGENT
        assert config.start_height == 0
        assert config.relay_transactions is False
        assert config.inventory_queue_size == INVENTORY_QUEUE_SIZE

    def test_unknown_network(self) -> None:
        """Only the supported networks are accepted."""
        with pytest.raises(ValidationError):
            SyncConfig(network="litecoin")  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        """Configuration cannot change once built."""
        config = SyncConfig()
        with pytest.raises(ValidationError):
            config.timeout = 1.0  # type: ignore[misc]

    def test_extra_fields_rejected(self) -> None:
        """Misspelled settings are errors."""
        with pytest.raises(ValidationError):
            SyncConfig(timout=1.0)  # type: ignore[call-arg]

    def test_strict_types(self) -> None:
        """Strings are not coerced to numbers."""
        with pytest.raises(ValidationError):
            SyncConfig(timeout="5")  # type: ignore[arg-type]
