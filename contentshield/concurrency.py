"""
Settle-all fan-out / join.

Every submitted coroutine runs as its own task and is awaited until it
either returns or raises; one failure never cancels its siblings.
Outcomes come back in submission order, exceptions in place of values.

Cancellation comes from two directions:
  - the awaiting task is cancelled: children are cancelled, then
    CancelledError propagates;
  - ``cancel_event`` is set: children are cancelled and ``Cancelled``
    is raised. No partial outcome list is returned.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable, Optional

from contentshield.errors import Cancelled


async def settle_all(
    aws: Iterable[Awaitable[Any]],
    cancel_event: Optional[asyncio.Event] = None,
) -> list[Any]:
    """Run awaitables concurrently and collect every outcome."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []

    joined = asyncio.gather(*tasks, return_exceptions=True)
    waiter: Optional[asyncio.Future] = None
    try:
        if cancel_event is None:
            return await joined

        if cancel_event.is_set():
            raise Cancelled("Request cancelled before work started")

        waiter = asyncio.ensure_future(cancel_event.wait())
        await asyncio.wait({joined, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if joined.done():
            return joined.result()
        raise Cancelled("Request cancelled while waiting on in-flight work")
    except BaseException:
        await _cancel_all(tasks)
        raise
    finally:
        if waiter is not None and not waiter.done():
            waiter.cancel()


async def _cancel_all(tasks: list[asyncio.Future]) -> None:
    pending = [t for t in tasks if not t.done()]
    for task in pending:
        task.cancel()
    if pending:
        # shield so a second cancellation does not abandon the cleanup
        await asyncio.shield(asyncio.gather(*pending, return_exceptions=True))
