"""Bitcoin P2P wire protocol: message payloads and framing."""

from .codec import (
    CodecError,
    FrameHeader,
    checksum,
    decode_frame_header,
    decode_message,
    decode_payload,
    encode_message,
    read_message,
)
from .config import DEFAULT_PORT, NETWORK_MAGIC, PROTOCOL_VERSION, Network
from .messages import (
    BLOCK_INV_TYPES,
    MESSAGE_TYPES,
    GetData,
    GetHeaders,
    HeaderEntries,
    HeaderEntry,
    Headers,
    Inv,
    InvType,
    InvVect,
    InvVectors,
    LocatorHashes,
    Message,
    MsgBlock,
    MsgTx,
    NetAddr,
    Ping,
    Pong,
    UserAgent,
    VerAck,
    Version,
)

__all__ = [
    # Framing
    "CodecError",
    "FrameHeader",
    "checksum",
    "decode_frame_header",
    "decode_message",
    "decode_payload",
    "encode_message",
    "read_message",
    # Network parameters
    "DEFAULT_PORT",
    "NETWORK_MAGIC",
    "PROTOCOL_VERSION",
    "Network",
    # Messages
    "BLOCK_INV_TYPES",
    "MESSAGE_TYPES",
    "GetData",
    "GetHeaders",
    "HeaderEntries",
    "HeaderEntry",
    "Headers",
    "Inv",
    "InvType",
    "InvVect",
    "InvVectors",
    "LocatorHashes",
    "Message",
    "MsgBlock",
    "MsgTx",
    "NetAddr",
    "Ping",
    "Pong",
    "UserAgent",
    "VerAck",
    "Version",
]
