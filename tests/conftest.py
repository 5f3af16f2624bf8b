import asyncio
from datetime import datetime, timedelta
from typing import Any

import httpx
import pytest

from market_gateway.providers import (CoinGeckoProvider, FmpProvider,
                                      QuotaTracker, ResponseCache,
                                      RetryingTransport)
from market_gateway.schemas import InstrumentKind
from market_gateway.services import CryptoLookupService, SecurityLookupService

FMP_URL = "https://fmp.test"
COINGECKO_URL = "https://coingecko.test"


class FakeClock:
    """Deterministic clock; advance it explicitly."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 12, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingSleep:
    """Async sleep that returns immediately and records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


CONNECT_ERROR = "connect_error"


class FakeUpstream:
    """Scripted upstream for httpx.MockTransport.

    Each path maps to a queue of (status, payload) pairs or CONNECT_ERROR.
    Entries are consumed in order; the last one repeats. Unknown paths 404.
    The handler awaits ``latency`` seconds before answering, so concurrent
    callers interleave as they would against a real server.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, list[Any]] = {}

    def route(self, path: str, *outcomes: Any) -> None:
        self._routes.setdefault(path, []).extend(outcomes)

    def calls(self, path: str | None = None) -> int:
        if path is None:
            return len(self.requests)
        return sum(1 for r in self.requests if r.url.path == path)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        await asyncio.sleep(self.latency)
        queue = self._routes.get(request.url.path)
        if not queue:
            return httpx.Response(404, json={"error": "not found"})
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if outcome == CONNECT_ERROR:
            raise httpx.ConnectError("connection refused", request=request)
        status, payload = outcome
        return httpx.Response(status, json=payload)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class MemoryWatchlistStore:
    """In-memory stand-in for the external document store."""

    def __init__(self) -> None:
        self.documents: dict[tuple[str, InstrumentKind], list[dict[str, Any]]] = {}
        self.saves = 0

    async def load(self, user_id: str, kind: InstrumentKind) -> list[dict[str, Any]]:
        return [dict(d) for d in self.documents.get((user_id, kind), [])]

    async def save(self, user_id: str, kind: InstrumentKind, items: list[dict[str, Any]]) -> None:
        self.saves += 1
        self.documents[(user_id, kind)] = [dict(d) for d in items]


def fmp_quote_row(symbol: str = "AAPL", price: float = 190.5, **extra: Any) -> dict[str, Any]:
    row = {
        "symbol": symbol,
        "name": f"{symbol} Inc.",
        "price": price,
        "changesPercentage": 1.234,
        "volume": 50_000_000,
        "marketCap": 2.9e12,
        "pe": 29.5,
        "eps": 6.4,
        "exchange": "NASDAQ",
    }
    row.update(extra)
    return row


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(clock=clock)


@pytest.fixture
def fmp_quota(clock: FakeClock) -> QuotaTracker:
    return QuotaTracker("FMP", soft_limit=495, clock=clock)


@pytest.fixture
def coingecko_quota(clock: FakeClock) -> QuotaTracker:
    return QuotaTracker("CoinGecko", soft_limit=300, clock=clock)


@pytest.fixture
async def fmp_transport(upstream, fmp_quota, sleep):
    transport = RetryingTransport(
        "FMP",
        FMP_URL,
        fmp_quota,
        params={"apikey": "test-key"},
        sleep=sleep,
        http_transport=upstream.transport(),
    )
    yield transport
    await transport.aclose()


@pytest.fixture
async def coingecko_transport(upstream, coingecko_quota, sleep):
    transport = RetryingTransport(
        "CoinGecko",
        COINGECKO_URL,
        coingecko_quota,
        sleep=sleep,
        http_transport=upstream.transport(),
    )
    yield transport
    await transport.aclose()


@pytest.fixture
def securities(fmp_transport, cache) -> SecurityLookupService:
    return SecurityLookupService(FmpProvider(fmp_transport), cache)


@pytest.fixture
def crypto(coingecko_transport, cache) -> CryptoLookupService:
    return CryptoLookupService(CoinGeckoProvider(coingecko_transport), cache)


@pytest.fixture
def watchlist_store() -> MemoryWatchlistStore:
    return MemoryWatchlistStore()
