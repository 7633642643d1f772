"""
TCP peer connection.

Opens a connection to a single Bitcoin node, performs the version handshake,
keeps the connection alive, and turns incoming messages into listener
notifications.

Handshake
---------
::

    us                     peer
     |  ---- version --->   |
     |  <--- version ----   |
     |  ---- verack  --->   |   (answering the peer's version)
     |  <--- verack  ----   |   (the connection is ready)

The connection is usable once the peer's verack arrives. If it does not
arrive within the timeout the connection is closed.

After the handshake the receive task answers pings, dispatches headers,
blocks and inventory to the listeners, and ignores everything else.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field

from btc_index.errors import ConnectionFailedError, HandshakeTimeoutError
from btc_index.types import Boolean, Bytes4, Int32, Int64, Uint64
from btc_index.wire import (
    DEFAULT_PORT,
    NETWORK_MAGIC,
    PROTOCOL_VERSION,
    CodecError,
    Headers,
    Inv,
    Message,
    MsgBlock,
    NetAddr,
    Network,
    Ping,
    Pong,
    UserAgent,
    VerAck,
    Version,
    encode_message,
    read_message,
)
from btc_index.wire.config import NODE_NONE, USER_AGENT

from .base import PeerListeners

logger = logging.getLogger(__name__)


def parse_address(address: str, default_port: int) -> tuple[str, int]:
    """
    Split `host[:port]` into host and port.

    IPv6 hosts with a port must be bracketed: ``[::1]:18444``.

    Raises:
        ValueError: If the port is not a number in range.
    """
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port_text = rest.removeprefix(":")
    elif address.count(":") == 1:
        host, _, port_text = address.partition(":")
    else:
        host, port_text = address, ""

    if not port_text:
        return host, default_port
    port = int(port_text)
    if not 0 < port < 65536:
        raise ValueError(f"Port {port} out of range in {address!r}")
    return host, port


@dataclass(slots=True)
class TcpPeer:
    """A handshaken connection to one peer."""

    address: str
    """Address as given by the caller, for logs."""

    magic: Bytes4
    """Message start bytes of the peer's network."""

    listeners: PeerListeners
    """Where notifications go."""

    _reader: asyncio.StreamReader
    _writer: asyncio.StreamWriter

    _send_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    """Serializes writers so frames never interleave."""

    _verack: asyncio.Event = field(default_factory=asyncio.Event)
    """Set when the peer acknowledges our version."""

    _receive_task: asyncio.Task[None] | None = None
    _closed: bool = False

    @classmethod
    async def connect(
        cls,
        address: str,
        timeout: float,
        listeners: PeerListeners,
        *,
        network: Network = "mainnet",
        user_agent: str = USER_AGENT,
        start_height: int = 0,
        relay: bool = False,
    ) -> TcpPeer:
        """
        Connect to `address` and complete the version handshake.

        Args:
            address: ``host[:port]``. The network's default port is used when
                none is given.
            timeout: Seconds allowed for the TCP connect and, separately, for
                the handshake.
            listeners: Notification callbacks.
            network: Selects the message magic and default port.
            user_agent: Announced in our version message.
            start_height: Best height announced in our version message.
            relay: Whether the peer should announce loose transactions.

        Raises:
            ConnectionFailedError: If the TCP connection cannot be opened.
            HandshakeTimeoutError: If the peer does not acknowledge in time.
        """
        host, port = parse_address(address, DEFAULT_PORT[network])
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise ConnectionFailedError(f"Timed out connecting to {address}") from None
        except OSError as e:
            raise ConnectionFailedError(f"Could not connect to {address}: {e}") from e

        peer = cls(
            address=address,
            magic=NETWORK_MAGIC[network],
            listeners=listeners,
            _reader=reader,
            _writer=writer,
        )
        logger.info("Connected to %s", address)

        version = Version(
            version=Int32(PROTOCOL_VERSION),
            services=Uint64(NODE_NONE),
            timestamp=Int64(int(time.time())),
            addr_recv=NetAddr.unspecified(),
            addr_from=NetAddr.unspecified(),
            nonce=Uint64(random.getrandbits(64)),
            user_agent=UserAgent(user_agent.encode("utf-8")),
            start_height=Int32(start_height),
            relay=Boolean(relay),
        )

        try:
            peer._receive_task = asyncio.create_task(peer._receive_loop())
            await peer.send(version)
            await asyncio.wait_for(peer._verack.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            await peer.close()
            raise HandshakeTimeoutError(f"{address} did not acknowledge version") from None
        except BaseException:
            await peer.close()
            raise

        logger.info("Handshake with %s complete", address)
        return peer

    async def send(self, message: Message) -> None:
        """
        Send one message.

        Raises:
            ConnectionFailedError: If the connection is closed or broken.
        """
        if self._closed:
            raise ConnectionFailedError(f"Connection to {self.address} is closed")
        data = encode_message(self.magic, message)
        async with self._send_lock:
            try:
                self._writer.write(data)
                await self._writer.drain()
            except ConnectionError as e:
                raise ConnectionFailedError(f"Lost connection to {self.address}: {e}") from e
        logger.debug("Sent %s to %s", message.COMMAND, self.address)

    async def close(self) -> None:
        """Stop the receive task and close the socket."""
        if self._closed:
            return
        self._closed = True

        task = self._receive_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug("Error closing connection to %s: %s", self.address, e)
        logger.info("Disconnected from %s", self.address)

    async def _receive_loop(self) -> None:
        """Read frames until the connection ends."""
        try:
            while True:
                command, message = await read_message(self._reader, self.magic)
                await self._dispatch(command, message)
        except asyncio.IncompleteReadError:
            logger.info("%s closed the connection", self.address)
        except (ConnectionError, ConnectionFailedError) as e:
            logger.info("Connection to %s lost: %s", self.address, e)
        except CodecError as e:
            logger.warning("Malformed message from %s: %s", self.address, e)
        finally:
            if not self._closed:
                # The loop ended on its own; release the socket.
                await self.close()

    async def _dispatch(self, command: str, message: Message | None) -> None:
        """Route one incoming message."""
        logger.debug("Received %s from %s", command, self.address)
        listeners = self.listeners

        if isinstance(message, Version):
            logger.info(
                "%s runs %s at height %d",
                self.address,
                bytes(message.user_agent).decode("utf-8", "replace"),
                int(message.start_height),
            )
            await self.send(VerAck())
        elif isinstance(message, VerAck):
            self._verack.set()
            if listeners.on_verack is not None:
                listeners.on_verack()
        elif isinstance(message, Ping):
            await self.send(Pong(nonce=message.nonce))
        elif isinstance(message, Headers):
            if listeners.on_headers is not None:
                listeners.on_headers(message.headers)
        elif isinstance(message, MsgBlock):
            if listeners.on_block is not None:
                listeners.on_block(message)
        elif isinstance(message, Inv):
            if listeners.on_inv is not None:
                listeners.on_inv(message)
