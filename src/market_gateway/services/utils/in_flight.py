"""Sharing of concurrent identical lookups."""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlightRequests:
    """Map of pending fetches keyed by (category, key).

    A caller that finds a pending fetch for its key awaits that fetch instead
    of starting a second outbound call; every waiter gets the same result or
    the same exception. The entry is dropped as soon as the fetch finishes.
    """

    def __init__(self) -> None:
        self._pending: dict[tuple[str, str], asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    async def run(self, category: str, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        token = (str(category), key)
        task = self._pending.get(token)
        if task is None:
            task = asyncio.ensure_future(fetch())
            self._pending[token] = task
            task.add_done_callback(lambda _: self._pending.pop(token, None))
        else:
            logger.debug("Joining in-flight request for %s: %s", *token)
        return await asyncio.shield(task)
