"""Peer connections: the transport interface and its TCP implementation."""

from .base import PeerListeners, PeerTransport
from .peer import TcpPeer, parse_address

__all__ = [
    "PeerListeners",
    "PeerTransport",
    "TcpPeer",
    "parse_address",
]
