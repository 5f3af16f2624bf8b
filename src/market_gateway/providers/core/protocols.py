"""Protocols shared by the gateway core."""
from collections.abc import Awaitable
from datetime import datetime
from typing import Any, Protocol


class Clock(Protocol):
    """Callable returning the current local time (``datetime.now`` in production)."""

    def __call__(self) -> datetime: ...


class Sleeper(Protocol):
    """Awaitable sleep (``asyncio.sleep`` in production; faked in tests)."""

    def __call__(self, delay: float) -> Awaitable[Any]: ...
