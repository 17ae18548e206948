"""Race source I/O against a caller-supplied cancellation signal."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from posterdb.sources.errors import FetchCancelledError

T = TypeVar("T")


async def run_cancellable(func: Callable[[], Awaitable[T]], cancel: asyncio.Event | None) -> T:
    """Await ``func()`` unless ``cancel`` fires first.

    On cancellation the operation is cancelled and awaited, so its cleanup
    (closing pages and the like) has finished before FetchCancelledError is raised.
    """
    if cancel is None:
        return await func()
    if cancel.is_set():
        raise FetchCancelledError()

    operation = asyncio.ensure_future(func())
    signal = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({operation, signal}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        operation.cancel()
        signal.cancel()
        await asyncio.gather(operation, signal, return_exceptions=True)
        raise
    if operation in done:
        signal.cancel()
        await asyncio.gather(signal, return_exceptions=True)
        return operation.result()

    operation.cancel()
    await asyncio.gather(operation, return_exceptions=True)
    raise FetchCancelledError()
