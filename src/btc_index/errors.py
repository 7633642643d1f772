"""Errors raised by the peer transport, header synchronization and block retrieval."""

from __future__ import annotations


class SyncError(Exception):
    """
    Base exception for synchronization failures.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class SyncTimeoutError(SyncError, TimeoutError):
    """The peer did not answer within the configured timeout."""


class SyncInterruptedError(SyncError, InterruptedError):
    """A wait was cancelled by the caller."""


class AmbiguousChainError(SyncError):
    """The received headers do not reduce to a single chain."""


class CursorError(SyncError):
    """The chain index cursor is not positioned on a header."""


class ConnectionFailedError(SyncError):
    """The TCP connection to the peer could not be established or was lost."""


class HandshakeTimeoutError(SyncTimeoutError):
    """The peer did not acknowledge our version message in time."""
