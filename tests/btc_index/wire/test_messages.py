"""Message Payload Tests."""

from __future__ import annotations

import pytest

from btc_index.types import (
    Boolean,
    Hash256,
    Int32,
    Int64,
    Uint32,
    Uint64,
    WireDecodeError,
    WireLengthError,
)
from btc_index.wire import (
    MESSAGE_TYPES,
    PROTOCOL_VERSION,
    GetData,
    GetHeaders,
    Headers,
    Inv,
    InvType,
    InvVect,
    InvVectors,
    LocatorHashes,
    NetAddr,
    UserAgent,
    Version,
)
from tests.btc_index.helpers import make_chain, make_hash


def make_version(relay: bool) -> Version:
    """Create a version message as a full node would send it."""
    return Version(
        version=Int32(PROTOCOL_VERSION),
        services=Uint64(1),
        timestamp=Int64(1_700_000_000),
        addr_recv=NetAddr.unspecified(),
        addr_from=NetAddr.unspecified(),
        nonce=Uint64(0x0123456789ABCDEF),
        user_agent=UserAgent(b"/Satoshi:27.0.0/"),
        start_height=Int32(840_000),
        relay=Boolean(relay),
    )


class TestVersion:
    """Tests for the handshake message."""

    @pytest.mark.parametrize("relay", [True, False])
    def test_relay_flag_is_last_byte(self, relay: bool) -> None:
        """The relay flag is the final byte and survives decoding."""
        encoded = make_version(relay).encode_bytes()
        assert encoded[-1] == int(relay)
        assert Version.decode_bytes(encoded).relay == relay

    def test_missing_relay_byte(self) -> None:
        """Peers omitting the relay byte are treated as relaying."""
        encoded = make_version(False).encode_bytes()[:-1]
        decoded = Version.decode_bytes(encoded)
        assert decoded.relay
        assert decoded.start_height == 840_000

    def test_network_address_layout(self) -> None:
        """An address is services, 16-byte IP and a big-endian port: 26 bytes."""
        assert len(NetAddr.unspecified().encode_bytes()) == 26

    def test_user_agent_limit(self) -> None:
        """Overlong user agents are refused."""
        with pytest.raises(WireLengthError):
            UserAgent(b"x" * 257)


class TestGetHeaders:
    """Tests for the header request."""

    def test_layout(self) -> None:
        """Version, locator count, locator hashes, stop hash."""
        locator = [make_hash(1), make_hash(2)]
        encoded = GetHeaders(
            version=Uint32(PROTOCOL_VERSION),
            locator=LocatorHashes(data=locator),
            stop_hash=Hash256.zero(),
        ).encode_bytes()

        assert encoded[:4] == PROTOCOL_VERSION.to_bytes(4, "little")
        assert encoded[4] == 2
        assert encoded[5:37] == locator[0]
        assert encoded[37:69] == locator[1]
        assert encoded[69:] == b"\x00" * 32

    def test_locator_limit(self) -> None:
        """A locator holds at most 101 hashes."""
        with pytest.raises(WireLengthError):
            LocatorHashes(data=[Hash256.zero()] * 102)


class TestHeaders:
    """Tests for the header response."""

    def test_entries_carry_zero_tx_count(self) -> None:
        """Each header is followed by a zero transaction count."""
        headers = make_chain(make_hash(1), 2)
        encoded = Headers.of(headers).encode_bytes()

        assert len(encoded) == 1 + 2 * 81
        assert encoded[81] == 0
        assert encoded[162] == 0

    def test_decode(self) -> None:
        """Decoding gives the headers back in order."""
        headers = make_chain(make_hash(1), 3)
        decoded = Headers.decode_bytes(Headers.of(headers).encode_bytes())
        assert [h.hash for h in decoded.headers] == [h.hash for h in headers]

    def test_empty(self) -> None:
        """An empty headers message is a single zero byte."""
        assert Headers.of([]).encode_bytes() == b"\x00"
        assert Headers.decode_bytes(b"\x00").headers == []

    def test_nonzero_tx_count(self) -> None:
        """A header followed by transactions is malformed."""
        header = make_chain(make_hash(1), 1)[0]
        with pytest.raises(WireDecodeError, match="transaction count"):
            Headers.decode_bytes(b"\x01" + header.encode_bytes() + b"\x01")


class TestInventory:
    """Tests for inv and getdata."""

    def test_entry_layout(self) -> None:
        """An entry is a 4-byte type and a 32-byte hash."""
        entry = InvVect(inv_type=Uint32(InvType.MSG_WITNESS_BLOCK), hash=make_hash(1))
        encoded = entry.encode_bytes()
        assert encoded[:4] == bytes.fromhex("02000040")
        assert encoded[4:] == make_hash(1)

    def test_inv_and_getdata_share_layout(self) -> None:
        """Both messages are a list of entries."""
        entry = InvVect(inv_type=Uint32(InvType.MSG_BLOCK), hash=make_hash(1))
        inventory = InvVectors(data=[entry])
        encoded = Inv(inventory=inventory).encode_bytes()
        assert encoded == GetData(inventory=inventory).encode_bytes()

    def test_decode(self) -> None:
        """Entry types decode as plain integers comparable to InvType."""
        tx_entry = (1).to_bytes(4, "little") + make_hash(1)
        block_entry = (2).to_bytes(4, "little") + make_hash(2)
        inv = Inv.decode_bytes(b"\x02" + tx_entry + block_entry)
        assert [entry.inv_type for entry in inv.inventory] == [InvType.MSG_TX, InvType.MSG_BLOCK]


def test_message_registry() -> None:
    """Every modelled command maps to its message type."""
    assert MESSAGE_TYPES["headers"] is Headers
    assert MESSAGE_TYPES["getheaders"] is GetHeaders
    assert MESSAGE_TYPES["version"] is Version
    assert "sendheaders" not in MESSAGE_TYPES
