"""Tests for the TCP peer connection."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from types import TracebackType

import pytest

from btc_index.chain import BlockHeader
from btc_index.errors import ConnectionFailedError, HandshakeTimeoutError
from btc_index.transport import PeerListeners, TcpPeer, parse_address
from btc_index.types import Boolean, Int32, Int64, Uint64
from btc_index.wire import (
    NETWORK_MAGIC,
    PROTOCOL_VERSION,
    Headers,
    Message,
    NetAddr,
    Ping,
    Pong,
    UserAgent,
    VerAck,
    Version,
    encode_message,
    read_message,
)
from tests.btc_index.helpers import make_chain, make_hash

MAGIC = NETWORK_MAGIC["regtest"]

Script = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


def node_version() -> Version:
    """The version message our fake node announces."""
    return Version(
        version=Int32(PROTOCOL_VERSION),
        services=Uint64(1),
        timestamp=Int64(0),
        addr_recv=NetAddr.unspecified(),
        addr_from=NetAddr.unspecified(),
        nonce=Uint64(1),
        user_agent=UserAgent(b"/Satoshi:27.0.0/"),
        start_height=Int32(840_000),
        relay=Boolean(True),
    )


async def send(writer: asyncio.StreamWriter, message: Message) -> None:
    """Write one framed message."""
    writer.write(encode_message(MAGIC, message))
    await writer.drain()


async def handshake(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> Message | None:
    """Answer the client's version and acknowledge it. Returns the client's version."""
    _, version = await read_message(reader, MAGIC)
    await send(writer, node_version())
    await send(writer, VerAck())
    return version


class FakeNode:
    """A local server running one script per accepted connection."""

    def __init__(self, script: Script) -> None:
        """Initialize with the script to run."""
        self.script = script
        self.server: asyncio.Server | None = None
        self.port = 0

    @property
    def address(self) -> str:
        """Address to connect to."""
        return f"127.0.0.1:{self.port}"

    async def __aenter__(self) -> FakeNode:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        assert self.server is not None
        self.server.close()
        await self.server.wait_closed()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            await self.script(reader, writer)
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


class TestParseAddress:
    """Tests for splitting peer addresses."""

    @pytest.mark.parametrize(
        "address, expected",
        [
            ("127.0.0.1", ("127.0.0.1", 8333)),
            ("127.0.0.1:18444", ("127.0.0.1", 18444)),
            ("node.example", ("node.example", 8333)),
            ("[::1]:38333", ("::1", 38333)),
            ("[::1]", ("::1", 8333)),
            ("::1", ("::1", 8333)),
        ],
    )
    def test_valid(self, address: str, expected: tuple[str, int]) -> None:
        """Hosts with and without a port are split."""
        assert parse_address(address, 8333) == expected

    @pytest.mark.parametrize("address", ["host:0", "host:65536", "host:port"])
    def test_invalid_port(self, address: str) -> None:
        """Ports must be numbers in range."""
        with pytest.raises(ValueError):
            parse_address(address, 8333)


class TestHandshake:
    """Tests for connection setup."""

    @pytest.mark.anyio
    async def test_version_exchange(self) -> None:
        """The client announces itself, acknowledges the node and waits for its verack."""
        received: asyncio.Queue[tuple[str, Message | None]] = asyncio.Queue()
        verack_seen = asyncio.Event()

        async def script(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            version = await handshake(reader, writer)
            await received.put(("version", version))
            await received.put(await read_message(reader, MAGIC))
            await reader.read()

        async with FakeNode(script) as node:
            peer = await TcpPeer.connect(
                node.address,
                1.0,
                PeerListeners(on_verack=verack_seen.set),
                network="regtest",
                user_agent="/test:1.0/",
                start_height=7,
            )
            try:
                _, version = await asyncio.wait_for(received.get(), 1.0)
                command, _ = await asyncio.wait_for(received.get(), 1.0)
            finally:
                await peer.close()

        assert verack_seen.is_set()
        assert isinstance(version, Version)
        assert version.version == PROTOCOL_VERSION
        assert bytes(version.user_agent) == b"/test:1.0/"
        assert version.start_height == 7
        assert not version.relay
        assert command == "verack"

    @pytest.mark.anyio
    async def test_handshake_timeout(self) -> None:
        """A node that never acknowledges fails the connect and is disconnected."""

        async def script(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await reader.read()

        async with FakeNode(script) as node:
            with pytest.raises(HandshakeTimeoutError):
                await TcpPeer.connect(node.address, 0.1, PeerListeners(), network="regtest")

    def test_handshake_timeout_is_timeout(self) -> None:
        """The handshake timeout is a builtin TimeoutError."""
        assert issubclass(HandshakeTimeoutError, TimeoutError)

    @pytest.mark.anyio
    async def test_connection_refused(self) -> None:
        """An unreachable peer raises ConnectionFailedError."""
        server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        server.close()
        await server.wait_closed()

        with pytest.raises(ConnectionFailedError):
            await TcpPeer.connect(f"127.0.0.1:{port}", 1.0, PeerListeners(), network="regtest")


class TestMessages:
    """Tests for traffic after the handshake."""

    @pytest.mark.anyio
    async def test_answers_ping(self) -> None:
        """Pings are answered with a pong echoing the nonce."""
        replies: asyncio.Queue[tuple[str, Message | None]] = asyncio.Queue()

        async def script(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await handshake(reader, writer)
            await read_message(reader, MAGIC)
            await send(writer, Ping(nonce=Uint64(42)))
            await replies.put(await read_message(reader, MAGIC))
            await reader.read()

        async with FakeNode(script) as node:
            peer = await TcpPeer.connect(node.address, 1.0, PeerListeners(), network="regtest")
            try:
                command, message = await asyncio.wait_for(replies.get(), 1.0)
            finally:
                await peer.close()

        assert command == "pong"
        assert message == Pong(nonce=Uint64(42))

    @pytest.mark.anyio
    async def test_dispatches_headers(self) -> None:
        """Headers messages reach the headers listener."""
        chain = make_chain(make_hash(1), 2)
        delivered: asyncio.Queue[list[BlockHeader]] = asyncio.Queue()

        async def script(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await handshake(reader, writer)
            await send(writer, Headers.of(chain))
            await reader.read()

        async with FakeNode(script) as node:
            peer = await TcpPeer.connect(
                node.address,
                1.0,
                PeerListeners(on_headers=delivered.put_nowait),
                network="regtest",
            )
            try:
                headers = await asyncio.wait_for(delivered.get(), 1.0)
            finally:
                await peer.close()

        assert [h.hash for h in headers] == [h.hash for h in chain]

    @pytest.mark.anyio
    async def test_send_after_close(self) -> None:
        """A closed connection refuses to send."""

        async def script(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await handshake(reader, writer)
            await reader.read()

        async with FakeNode(script) as node:
            peer = await TcpPeer.connect(node.address, 1.0, PeerListeners(), network="regtest")
            await peer.close()
            await peer.close()

            with pytest.raises(ConnectionFailedError):
                await peer.send(VerAck())

    @pytest.mark.anyio
    async def test_node_disconnect_closes_peer(self) -> None:
        """The connection is released when the node hangs up."""

        async def script(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await handshake(reader, writer)
            await read_message(reader, MAGIC)

        async with FakeNode(script) as node:
            peer = await TcpPeer.connect(node.address, 1.0, PeerListeners(), network="regtest")
            for _ in range(100):
                if peer._closed:
                    break
                await asyncio.sleep(0.01)

            with pytest.raises(ConnectionFailedError):
                await peer.send(VerAck())
