"""
Bitcoin P2P message payloads.

Each message type is a container whose `COMMAND` names it in the frame
header. Only the messages a header indexer sends or consumes are modelled;
the transport ignores every other command.

References:
    - https://developer.bitcoin.org/reference/p2p_networking.html
"""

from __future__ import annotations

from enum import IntEnum
from typing import IO, ClassVar, Final, Type

from typing_extensions import Self

from btc_index.chain import BlockHeader, Transactions, Tx
from btc_index.types import (
    Boolean,
    Bytes16,
    CompactSize,
    Container,
    Hash256,
    Int32,
    Int64,
    Port,
    Uint32,
    Uint64,
    VarBytes,
    WireDecodeError,
    WireList,
)

from .config import MAX_HEADERS_RESULTS, MAX_INV_ENTRIES, MAX_LOCATOR_HASHES, MAX_USER_AGENT_LENGTH


class Message(Container):
    """Base class of every message payload."""

    COMMAND: ClassVar[str]
    """Command name carried in the frame header."""


# -- Handshake and keep-alive ----------------------------------------------


class NetAddr(Container):
    """A network address as embedded in the version message (no timestamp)."""

    services: Uint64
    ip: Bytes16
    """IPv6 address, or IPv4-mapped IPv6 (::ffff:a.b.c.d)."""

    port: Port

    @classmethod
    def unspecified(cls) -> Self:
        """The all-zero address, sent when we do not know or share an address."""
        return cls(services=Uint64(0), ip=Bytes16.zero(), port=Port(0))


class UserAgent(VarBytes):
    """BIP-14 user agent string."""

    LIMIT = MAX_USER_AGENT_LENGTH


class Version(Message):
    """
    First message each side sends on a new connection.

    The trailing relay flag (BIP-37) is optional on the wire. Peers that omit
    it are treated as relaying.
    """

    COMMAND = "version"

    version: Int32
    services: Uint64
    timestamp: Int64
    addr_recv: NetAddr
    addr_from: NetAddr
    nonce: Uint64
    user_agent: UserAgent
    start_height: Int32
    relay: Boolean

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read a version message, tolerating a missing relay byte."""
        fields = {}
        for name, field_type in cls._field_types():
            if name == "relay":
                break
            fields[name] = field_type.deserialize(stream)
        remaining = stream.read(1)
        relay = Boolean(remaining[0] != 0) if remaining else Boolean(True)
        return cls(**fields, relay=relay)


class VerAck(Message):
    """Acknowledges the peer's version message."""

    COMMAND = "verack"


class Ping(Message):
    """Keep-alive probe."""

    COMMAND = "ping"

    nonce: Uint64


class Pong(Message):
    """Reply to a ping, echoing its nonce."""

    COMMAND = "pong"

    nonce: Uint64


# -- Headers ----------------------------------------------------------------


class LocatorHashes(WireList[Hash256]):
    """Block locator of a getheaders request."""

    ELEMENT_TYPE = Hash256
    LIMIT = MAX_LOCATOR_HASHES


class GetHeaders(Message):
    """
    Request headers following the first locator hash the peer recognizes.

    The peer answers with up to 2000 headers, stopping early at `stop_hash`
    (all zeros means "as many as possible").
    """

    COMMAND = "getheaders"

    version: Uint32
    locator: LocatorHashes
    stop_hash: Hash256


class HeaderEntry(Container):
    """One header of a headers message, followed by a transaction count of zero."""

    header: BlockHeader
    tx_count: CompactSize

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """
        Read a header and its transaction count.

        Raises:
            WireDecodeError: If the transaction count is not zero.
        """
        entry = super().deserialize(stream)
        if entry.tx_count != 0:
            raise WireDecodeError(cls.__name__, f"transaction count {entry.tx_count} is not zero")
        return entry

    @classmethod
    def of(cls, header: BlockHeader) -> Self:
        """Wrap a header for sending."""
        return cls(header=header, tx_count=CompactSize(0))


class HeaderEntries(WireList[HeaderEntry]):
    """Entries of a headers message."""

    ELEMENT_TYPE = HeaderEntry
    LIMIT = MAX_HEADERS_RESULTS


class Headers(Message):
    """Response to getheaders. An empty list means the peer has nothing newer."""

    COMMAND = "headers"

    entries: HeaderEntries

    @property
    def headers(self) -> list[BlockHeader]:
        """The headers in delivery order."""
        return [entry.header for entry in self.entries]

    @classmethod
    def of(cls, headers: list[BlockHeader]) -> Self:
        """Build a headers message from bare headers."""
        return cls(entries=HeaderEntries(data=[HeaderEntry.of(h) for h in headers]))


# -- Inventory ---------------------------------------------------------------


class InvType(IntEnum):
    """Inventory object types."""

    ERROR = 0
    MSG_TX = 1
    MSG_BLOCK = 2
    MSG_FILTERED_BLOCK = 3
    MSG_CMPCT_BLOCK = 4
    MSG_WTX = 5
    MSG_WITNESS_TX = 0x40000001
    MSG_WITNESS_BLOCK = 0x40000002


BLOCK_INV_TYPES: Final = frozenset({InvType.MSG_BLOCK, InvType.MSG_WITNESS_BLOCK})
"""Inventory types that announce a block."""


class InvVect(Container):
    """One inventory entry: an object type and its hash."""

    inv_type: Uint32
    hash: Hash256


class InvVectors(WireList[InvVect]):
    """Entries of an inv or getdata message."""

    ELEMENT_TYPE = InvVect
    LIMIT = MAX_INV_ENTRIES


class Inv(Message):
    """Unsolicited announcement of objects the peer has."""

    COMMAND = "inv"

    inventory: InvVectors


class GetData(Message):
    """Request the full objects named by the inventory."""

    COMMAND = "getdata"

    inventory: InvVectors


# -- Blocks and transactions ---------------------------------------------------


class MsgBlock(Message):
    """A full block."""

    COMMAND = "block"

    header: BlockHeader
    txs: Transactions


class MsgTx(Message):
    """A single transaction."""

    COMMAND = "tx"

    tx: Tx


MESSAGE_TYPES: Final[dict[str, Type[Message]]] = {
    message_type.COMMAND: message_type
    for message_type in (
        Version,
        VerAck,
        Ping,
        Pong,
        GetHeaders,
        Headers,
        Inv,
        GetData,
        MsgBlock,
        MsgTx,
    )
}
"""Known messages by command name."""
