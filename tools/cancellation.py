"""Cooperative cancellation for in-flight generation calls."""

import asyncio
import inspect
from typing import Awaitable, Optional, TypeVar

from config.exceptions import GenerationCancelledError

T = TypeVar("T")


class CancelToken:
    """One-shot cancellation signal shared by the calls of a single run.

    A token cannot be reset; arm a new one for every run.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise GenerationCancelledError()


async def run_cancellable(awaitable: Awaitable[T], token: Optional[CancelToken]) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    On cancellation the underlying task is cancelled and allowed to unwind,
    then GenerationCancelledError is raised. The awaitable's own result or
    exception wins if it finished first.
    """
    if token is None:
        return await awaitable
    if token.cancelled:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise GenerationCancelledError()

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise GenerationCancelledError()
