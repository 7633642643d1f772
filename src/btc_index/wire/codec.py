"""
Message framing.

Every message on the wire is a 24-byte header followed by its payload::

    magic(4) | command(12, NUL padded) | length(uint32 LE) | checksum(4) | payload

The checksum is the first four bytes of the double SHA-256 of the payload.
A frame whose magic belongs to another network, whose checksum does not
match, or whose length exceeds the payload limit is rejected.
"""

from __future__ import annotations

import asyncio
from typing import NamedTuple

from btc_index.types import Bytes4, WireError, double_sha256

from .config import COMMAND_SIZE, MAX_PAYLOAD_SIZE, MESSAGE_HEADER_SIZE
from .messages import MESSAGE_TYPES, Message


class CodecError(Exception):
    """Raised when a frame or its payload cannot be encoded or decoded."""


class FrameHeader(NamedTuple):
    """Parsed 24-byte frame header."""

    magic: bytes
    command: str
    length: int
    checksum: bytes


def checksum(payload: bytes) -> bytes:
    """First four bytes of the double SHA-256 of `payload`."""
    return double_sha256(payload)[:4]


def encode_message(magic: Bytes4, message: Message) -> bytes:
    """
    Frame a message for the network identified by `magic`.

    Raises:
        CodecError: If the payload exceeds the size limit.
    """
    payload = message.encode_bytes()
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise CodecError(f"{message.COMMAND} payload of {len(payload)} bytes exceeds limit")
    command = message.COMMAND.encode("ascii").ljust(COMMAND_SIZE, b"\x00")
    return (
        bytes(magic) + command + len(payload).to_bytes(4, "little") + checksum(payload) + payload
    )


def decode_frame_header(data: bytes) -> FrameHeader:
    """
    Parse a frame header.

    Raises:
        CodecError: If the header is truncated, the command is malformed, or
            the announced length exceeds the limit.
    """
    if len(data) != MESSAGE_HEADER_SIZE:
        raise CodecError(f"Frame header must be {MESSAGE_HEADER_SIZE} bytes, got {len(data)}")

    raw_command = data[4:16]
    name, _, padding = raw_command.partition(b"\x00")
    if padding.strip(b"\x00"):
        raise CodecError(f"Command {raw_command!r} has data after its NUL padding")
    try:
        command = name.decode("ascii")
    except UnicodeDecodeError as e:
        raise CodecError(f"Command {raw_command!r} is not ASCII") from e

    length = int.from_bytes(data[16:20], "little")
    if length > MAX_PAYLOAD_SIZE:
        raise CodecError(f"{command} payload of {length} bytes exceeds limit")

    return FrameHeader(magic=data[:4], command=command, length=length, checksum=data[20:24])


def decode_payload(command: str, payload: bytes) -> Message | None:
    """
    Decode the payload of a known command.

    Returns None for commands we do not model.

    Raises:
        CodecError: If the payload is malformed.
    """
    message_type = MESSAGE_TYPES.get(command)
    if message_type is None:
        return None
    try:
        return message_type.decode_bytes(payload)
    except (WireError, ValueError, TypeError) as e:
        raise CodecError(f"Malformed {command} payload: {e}") from e


def decode_message(magic: Bytes4, data: bytes) -> Message | None:
    """
    Decode one complete frame held in memory.

    Raises:
        CodecError: On a bad magic, checksum, length or payload.
    """
    header = decode_frame_header(data[:MESSAGE_HEADER_SIZE])
    payload = data[MESSAGE_HEADER_SIZE:]
    _check_frame(magic, header, payload)
    return decode_payload(header.command, payload)


async def read_message(reader: asyncio.StreamReader, magic: Bytes4) -> tuple[str, Message | None]:
    """
    Read the next frame from a stream.

    Returns:
        The command name and its decoded payload, or None as payload for
        commands we do not model.

    Raises:
        asyncio.IncompleteReadError: If the stream closes mid-frame.
        CodecError: On a bad magic, checksum, length or payload.
    """
    header = decode_frame_header(await reader.readexactly(MESSAGE_HEADER_SIZE))
    if header.magic != bytes(magic):
        raise CodecError(f"Wrong network magic {header.magic.hex()}, expected {magic.hex()}")
    payload = await reader.readexactly(header.length)
    _check_frame(magic, header, payload)
    return header.command, decode_payload(header.command, payload)


def _check_frame(magic: Bytes4, header: FrameHeader, payload: bytes) -> None:
    if header.magic != bytes(magic):
        raise CodecError(f"Wrong network magic {header.magic.hex()}, expected {magic.hex()}")
    if len(payload) != header.length:
        raise CodecError(
            f"{header.command} payload is {len(payload)} bytes, expected {header.length}"
        )
    if checksum(payload) != header.checksum:
        raise CodecError(f"{header.command} payload checksum mismatch")
