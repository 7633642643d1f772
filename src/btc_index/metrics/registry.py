"""
Metric registry using prometheus_client.

Provides pre-defined metrics for a header indexing session.
Exposes metrics in Prometheus text format.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Create a dedicated registry for btc-index metrics.
#
# Using a dedicated registry avoids pollution from default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Header Synchronization
# -----------------------------------------------------------------------------

headers_received = Counter(
    "btc_index_headers_received_total",
    "Headers received from the peer",
    registry=REGISTRY,
)

header_batches = Counter(
    "btc_index_header_batches_total",
    "Headers messages received in response to getheaders",
    registry=REGISTRY,
)

sync_duration = Histogram(
    "btc_index_sync_seconds",
    "Duration of a full header synchronization",
    buckets=(0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0, 900.0),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Reconciliation
# -----------------------------------------------------------------------------

orphans_discarded = Counter(
    "btc_index_orphans_discarded_total",
    "Headers discarded during orphan elimination",
    registry=REGISTRY,
)

indexed_height = Gauge(
    "btc_index_indexed_height",
    "Highest height in the reconciled index",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Block Retrieval
# -----------------------------------------------------------------------------

blocks_fetched = Counter(
    "btc_index_blocks_fetched_total",
    "Full blocks received in response to getdata",
    registry=REGISTRY,
)

request_timeouts = Counter(
    "btc_index_request_timeouts_total",
    "Requests that timed out waiting for the peer",
    ["request"],
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
