"""
Single-slot rendezvous between a request and its asynchronous answer.

The peer protocol has no request ids. A getheaders is answered by the next
headers message; a getdata by a block message carrying the requested hash.
Answers arrive from the transport's receive task as notifications, while the
requester sits in a timeout-bounded wait.

A rendezvous holds at most one outstanding expectation:

1. The requester arms it (optionally with a key such as a block hash)
2. The requester sends the request
3. The receive task delivers every matching notification; only the first
   one that fits the armed key completes the wait
4. The slot is disarmed when the wait ends, whatever the outcome

Anything delivered while the slot is disarmed, with a different key, or
after the wait already completed, is discarded. A late block for a request
that timed out therefore never satisfies a later request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from btc_index import metrics
from btc_index.errors import SyncTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class Rendezvous(Generic[T]):
    """A single-flight slot correlating one request with one answer."""

    name: str
    """What the slot waits for, used in logs, errors and metric labels."""

    _key: Hashable | None = field(default=None, init=False)
    """Key the armed expectation accepts. None accepts any delivery."""

    _future: asyncio.Future[T] | None = field(default=None, init=False)
    """Future of the armed expectation. None while disarmed."""

    @property
    def armed(self) -> bool:
        """Whether an expectation is outstanding."""
        return self._future is not None

    def expect(self, key: Hashable | None = None) -> None:
        """
        Arm the slot.

        Raises:
            RuntimeError: If the slot is already armed.
        """
        if self._future is not None:
            raise RuntimeError(f"{self.name} request already in flight")
        self._key = key
        self._future = asyncio.get_running_loop().create_future()

    def deliver(self, value: T, key: Hashable | None = None) -> bool:
        """
        Offer a notification to the slot.

        Returns:
            True if the notification completed the armed expectation.
        """
        future = self._future
        if future is None or future.done():
            logger.debug("Discarding unsolicited %s", self.name)
            return False
        if self._key is not None and key != self._key:
            logger.debug("Discarding %s for %s, waiting for %s", self.name, key, self._key)
            return False
        future.set_result(value)
        return True

    async def wait(self, timeout: float) -> T:
        """
        Wait for the armed expectation to complete.

        The slot is disarmed on return, on timeout and on cancellation.

        Raises:
            RuntimeError: If the slot is not armed.
            SyncTimeoutError: If nothing matching arrives within `timeout` seconds.
        """
        future = self._future
        if future is None:
            raise RuntimeError(f"No {self.name} request in flight")
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            metrics.request_timeouts.labels(request=self.name).inc()
            raise SyncTimeoutError(f"Timed out after {timeout}s waiting for {self.name}") from None
        finally:
            self._disarm()

    async def exchange(
        self,
        send: Callable[[], Awaitable[None]],
        timeout: float,
        key: Hashable | None = None,
    ) -> T:
        """
        Arm the slot, send a request and wait for its answer.

        Arming happens before sending so an answer racing the send is not lost.
        """
        self.expect(key)
        try:
            await send()
        except BaseException:
            self._disarm()
            raise
        return await self.wait(timeout)

    def _disarm(self) -> None:
        future = self._future
        if future is not None and not future.done():
            future.cancel()
        self._future = None
        self._key = None
