"""User watchlists: ordered tracked instruments persisted through an external document store.

The core never stores watchlists itself. WatchlistService loads the user's
array from a WatchlistStore, edits it in memory and hands it back.
"""
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator
from typing import Any, Protocol

from market_gateway.providers.core import GatewayError
from market_gateway.providers.core.utils import normalize_stock_symbol
from market_gateway.schemas import (InstrumentKind, RefreshFailure,
                                    RefreshSummary, TrackedInstrument)
from market_gateway.services.crypto import CryptoLookupService
from market_gateway.services.securities import SecurityLookupService

logger = logging.getLogger(__name__)


class WatchlistStore(Protocol):
    """Per-user document store holding one array of instruments per kind."""

    async def load(self, user_id: str, kind: InstrumentKind) -> list[dict[str, Any]]:
        """Return the stored array; an unknown user yields []."""
        ...

    async def save(
        self, user_id: str, kind: InstrumentKind, items: list[dict[str, Any]]
    ) -> None:
        """Replace the stored array."""
        ...


class Watchlist:
    """Ordered list of TrackedInstruments with unique ids."""

    def __init__(self, items: Iterable[TrackedInstrument] = ()) -> None:
        self._items: list[TrackedInstrument] = []
        for item in items:
            self.add(item)

    @classmethod
    def from_documents(
        cls, documents: Iterable[dict[str, Any]], kind: InstrumentKind
    ) -> "Watchlist":
        """Build from stored documents.

        A stock stored as just ``{symbol, name}`` takes its symbol as id; a
        missing symbol or name falls back to the id.
        """
        items = []
        for doc in documents:
            data = {"kind": kind, **doc}
            if data.get("id") is None:
                data["id"] = data.get("symbol")
            data.setdefault("symbol", data["id"])
            data.setdefault("name", data["symbol"])
            items.append(TrackedInstrument.model_validate(data))
        return cls(items)

    def to_documents(self) -> list[dict[str, Any]]:
        return [item.model_dump(mode="json") for item in self._items]

    def __iter__(self) -> Iterator[TrackedInstrument]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, instrument_id: object) -> bool:
        return any(item.id == instrument_id for item in self._items)

    def ids(self) -> list[str]:
        return [item.id for item in self._items]

    def get(self, instrument_id: str) -> TrackedInstrument | None:
        return next((item for item in self._items if item.id == instrument_id), None)

    def add(self, item: TrackedInstrument) -> None:
        """Append item. Raises ValueError if its id is already tracked."""
        if item.id in self:
            raise ValueError(f"'{item.id}' is already in the watchlist")
        self._items.append(item)

    def update(self, item: TrackedInstrument) -> None:
        """Replace the instrument with the same id, keeping its position."""
        for index, existing in enumerate(self._items):
            if existing.id == item.id:
                self._items[index] = item
                return
        raise KeyError(item.id)

    def remove(self, instrument_id: str) -> bool:
        """Remove by id; False if it was not tracked."""
        before = len(self._items)
        self._items = [item for item in self._items if item.id != instrument_id]
        return len(self._items) != before


async def refresh_instruments(
    watchlist: Watchlist,
    refresh_one: Callable[[TrackedInstrument], Awaitable[TrackedInstrument]],
) -> RefreshSummary:
    """Refresh every instrument in order, one await at a time.

    A GatewayError for one item is recorded in the summary and the batch
    moves on; other exceptions propagate.
    """
    summary = RefreshSummary()
    for item in watchlist:
        try:
            refreshed = await refresh_one(item)
        except GatewayError as e:
            summary.failures.append(RefreshFailure(id=item.id, kind=e.kind, message=str(e)))
            continue
        watchlist.update(refreshed)
        summary.updated.append(item.id)
    if summary.failures:
        logger.warning(
            "Refreshed %d of %d instruments; failed: %s",
            len(summary.updated),
            len(watchlist),
            ", ".join(f"{f.id} ({f.kind})" for f in summary.failures),
        )
    return summary


class WatchlistService:
    """Add, remove and refresh a user's stocks and cryptos."""

    def __init__(
        self,
        store: WatchlistStore,
        securities: SecurityLookupService,
        crypto: CryptoLookupService,
    ) -> None:
        self._store = store
        self._securities = securities
        self._crypto = crypto

    async def load(self, user_id: str, kind: InstrumentKind) -> Watchlist:
        return Watchlist.from_documents(await self._store.load(user_id, kind), kind)

    async def _save(self, user_id: str, kind: InstrumentKind, watchlist: Watchlist) -> None:
        await self._store.save(user_id, kind, watchlist.to_documents())

    async def add_stock(self, user_id: str, symbol: str) -> TrackedInstrument:
        """Track a stock, seeded with its current quote.

        Raises:
            ValueError: the symbol is already tracked (checked before any lookup).
            GatewayError: the quote lookup failed; nothing is saved.
        """
        sym = normalize_stock_symbol(symbol)
        watchlist = await self.load(user_id, InstrumentKind.STOCK)
        if sym in watchlist:
            raise ValueError(f"'{sym}' is already in the watchlist")
        instrument = await self._stock_instrument(
            TrackedInstrument(id=sym, symbol=sym, name=sym, kind=InstrumentKind.STOCK)
        )
        watchlist.add(instrument)
        await self._save(user_id, InstrumentKind.STOCK, watchlist)
        return instrument

    async def add_crypto(self, user_id: str, symbol: str, name: str | None = None) -> TrackedInstrument:
        """Track a coin under its canonical id, seeded with its current price."""
        coin = self._crypto.resolve_id(symbol)
        watchlist = await self.load(user_id, InstrumentKind.CRYPTO)
        if coin in watchlist:
            raise ValueError(f"'{coin}' is already in the watchlist")
        instrument = await self._crypto_instrument(
            TrackedInstrument(
                id=coin,
                symbol=symbol.strip().upper(),
                name=name or coin.replace("-", " ").title(),
                kind=InstrumentKind.CRYPTO,
            )
        )
        watchlist.add(instrument)
        await self._save(user_id, InstrumentKind.CRYPTO, watchlist)
        return instrument

    async def remove(self, user_id: str, kind: InstrumentKind, instrument_id: str) -> bool:
        watchlist = await self.load(user_id, kind)
        removed = watchlist.remove(instrument_id)
        if removed:
            await self._save(user_id, kind, watchlist)
        return removed

    async def refresh(self, user_id: str, kind: InstrumentKind) -> RefreshSummary:
        """Refresh every tracked instrument of ``kind`` and save the updated quotes."""
        watchlist = await self.load(user_id, kind)
        refresh_one = (
            self._stock_instrument if kind is InstrumentKind.STOCK else self._crypto_instrument
        )
        summary = await refresh_instruments(watchlist, refresh_one)
        if summary.updated:
            await self._save(user_id, kind, watchlist)
        return summary

    async def _stock_instrument(self, item: TrackedInstrument) -> TrackedInstrument:
        quote = await self._securities.quote(item.symbol)
        return item.model_copy(
            update={
                "name": quote.name or item.name,
                "price": quote.price,
                "change": quote.change,
                "volume": quote.volume,
                "market_cap": quote.market_cap,
                "pe": quote.pe,
            }
        )

    async def _crypto_instrument(self, item: TrackedInstrument) -> TrackedInstrument:
        price = await self._crypto.price(item.id)
        return item.model_copy(
            update={
                "price": price.price,
                "change": price.change,
                "volume": price.volume,
                "market_cap": price.market_cap,
            }
        )
