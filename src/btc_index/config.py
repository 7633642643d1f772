"""
Global configuration for btc-index.

This module contains environment-specific settings that apply across all packages.
"""

import os

_SUPPORTED_NETWORKS: list[str] = ["mainnet", "testnet", "regtest", "signet"]

BTC_INDEX_NETWORK = os.environ.get("BTC_INDEX_NETWORK", "mainnet").lower()
"""The default network ('mainnet', 'testnet', 'regtest' or 'signet'). Defaults to 'mainnet'."""

if BTC_INDEX_NETWORK not in _SUPPORTED_NETWORKS:
    raise ValueError(
        f"Invalid BTC_INDEX_NETWORK environment variable: '{BTC_INDEX_NETWORK}'. "
        f"Supported values: {_SUPPORTED_NETWORKS}"
    )
