"""Shared fixtures for btc-index tests."""

from __future__ import annotations

import pytest

from btc_index.chain import BlockHeader
from btc_index.types import Bytes4, Hash256
from btc_index.wire import NETWORK_MAGIC
from tests.btc_index.helpers import GENESIS_HEADER_HEX, make_hash


@pytest.fixture
def regtest_magic() -> Bytes4:
    """Message start bytes of regtest."""
    return NETWORK_MAGIC["regtest"]


@pytest.fixture
def anchor_hash() -> Hash256:
    """Hash of the block anchored at height 100."""
    return make_hash(100)


@pytest.fixture
def genesis_header() -> BlockHeader:
    """The mainnet genesis header."""
    return BlockHeader.decode_bytes(bytes.fromhex(GENESIS_HEADER_HEX))
