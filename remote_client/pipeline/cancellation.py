"""Race awaitables against a caller's cancel token."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from remote_client.errors import RequestError
from remote_client.models.cancel import CancelToken
from remote_client.models.request import RequestDescriptor


T = TypeVar("T")


async def run_cancellable(
    awaitable: Awaitable[T],
    token: CancelToken | None,
    request: RequestDescriptor | None = None,
) -> T:
    """Await `awaitable` unless `token` is cancelled first.

    Args:
        awaitable: Work to run.
        token: Cancellation handle; None means not cancellable.
        request: Request attached to the cancellation error.

    Returns:
        Result of the awaitable.

    Raises:
        RequestError: CANCELLED if the token fires first; the work is cancelled.
    """
    if token is None:
        return await awaitable

    if token.is_cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise RequestError.cancelled(request, token.reason)

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not work.done():
            work.cancel()

    if work.done() and not work.cancelled():
        return work.result()
    raise RequestError.cancelled(request, token.reason)
