"""
agentrelay - Cooperative cancellation.

A ``CancellationToken`` is owned by the caller and handed to an execution.
Once cancelled it stays cancelled.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class Cancelled(Exception):
    """Raised by ``CancellationToken.race`` when the token fires first."""


class CancellationToken:
    """An edge-triggered cancellation flag backed by ``asyncio.Event``."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def race(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the token fires first.

        If the token fires first the pending operation is cancelled and
        ``Cancelled`` is raised. Exceptions from the operation propagate.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise Cancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        await asyncio.wait({task})
        if not task.cancelled():
            task.exception()
        raise Cancelled()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


def is_cancelled(token: Optional[CancellationToken]) -> bool:
    return token is not None and token.cancelled
