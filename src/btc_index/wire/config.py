"""
Bitcoin P2P Protocol Configuration

Network parameters and protocol limits for the Bitcoin peer-to-peer protocol.

References:
    - https://developer.bitcoin.org/reference/p2p_networking.html
    - https://en.bitcoin.it/wiki/Protocol_documentation
"""

from typing import Final, Literal

from btc_index.types import Bytes4

Network = Literal["mainnet", "testnet", "regtest", "signet"]
"""Networks a session can connect to."""

NETWORK_MAGIC: Final[dict[str, Bytes4]] = {
    "mainnet": Bytes4(bytes.fromhex("f9beb4d9")),
    "testnet": Bytes4(bytes.fromhex("0b110907")),
    "regtest": Bytes4(bytes.fromhex("fabfb5da")),
    "signet": Bytes4(bytes.fromhex("0a03cf40")),
}
"""Start bytes of every message on each network."""

DEFAULT_PORT: Final[dict[str, int]] = {
    "mainnet": 8333,
    "testnet": 18333,
    "regtest": 18444,
    "signet": 38333,
}
"""Default TCP port of each network."""

PROTOCOL_VERSION: Final = 70016
"""Protocol version we announce. 70016 adds wtxid relay; we support everything below it."""

USER_AGENT: Final = "/btc-index:0.1.0/"
"""BIP-14 user agent sent in our version message."""

NODE_NONE: Final = 0
"""Services we advertise. A header indexer serves nothing."""

MESSAGE_HEADER_SIZE: Final = 24
"""Bytes of framing before each payload: magic, command, length, checksum."""

COMMAND_SIZE: Final = 12
"""Width of the NUL-padded command field."""

MAX_PAYLOAD_SIZE: Final = 32 * 1024 * 1024
"""Largest payload accepted from a peer (32 MiB)."""

MAX_LOCATOR_HASHES: Final = 101
"""Maximum hashes in a getheaders locator."""

MAX_HEADERS_RESULTS: Final = 2000
"""Maximum headers a peer returns per headers message."""

MAX_INV_ENTRIES: Final = 50_000
"""Maximum entries in an inv or getdata message."""

MAX_USER_AGENT_LENGTH: Final = 256
"""Longest user agent accepted in a version message."""
