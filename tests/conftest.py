"""Pytest configuration and shared fixtures."""

import os

import pytest
from hypothesis import settings

if "BTC_INDEX_NETWORK" not in os.environ:
    os.environ["BTC_INDEX_NETWORK"] = "regtest"

# Create a profile named "no_deadline" with deadline disabled.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only; the sync core uses asyncio primitives."""
    return "asyncio"
