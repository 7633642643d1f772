"""
Metrics module for observability.

Provides counters, gauges, and histograms for tracking header synchronization
and block retrieval. Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    blocks_fetched,
    generate_metrics,
    header_batches,
    headers_received,
    indexed_height,
    orphans_discarded,
    request_timeouts,
    sync_duration,
)

__all__ = [
    "REGISTRY",
    "blocks_fetched",
    "generate_metrics",
    "header_batches",
    "headers_received",
    "indexed_height",
    "orphans_discarded",
    "request_timeouts",
    "sync_duration",
]
