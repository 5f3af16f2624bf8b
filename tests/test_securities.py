import asyncio
from datetime import datetime

import pytest

from market_gateway.providers import FmpProvider
from market_gateway.providers.core import (NotFound, QuotaExceeded,
                                           RequestRejected,
                                           UnsupportedExchange)
from market_gateway.services import SecurityLookupService
from market_gateway.services.securities import (rank_search_results,
                                                unsupported_exchange)
from market_gateway.services.utils import InFlightRequests
from market_gateway.schemas import SearchResult
from tests.conftest import fmp_quote_row

PROFILE = {
    "symbol": "AAPL",
    "companyName": "Apple Inc.",
    "exchangeShortName": "NASDAQ",
    "industry": "Consumer Electronics",
    "sector": "Technology",
    "description": "Makes phones.",
    "website": "https://apple.com",
}


async def test_quote_is_shaped(securities, upstream):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))

    quote = await securities.quote("aapl")

    assert quote.symbol == "AAPL"
    assert quote.price == 190.5
    assert quote.change == 1.23
    assert quote.market_cap == 2.9e12
    assert quote.pe == 29.5


async def test_second_quote_within_five_minutes_is_served_from_cache(securities, upstream, clock):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]), (500, {}))

    first = await securities.quote("AAPL")
    clock.advance(minutes=4)
    second = await securities.quote("AAPL")

    assert second == first
    assert upstream.calls() == 1


async def test_quote_refetched_after_ttl(securities, upstream, clock):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row(price=1)]), (200, [fmp_quote_row(price=2)]))

    await securities.quote("AAPL")
    clock.advance(minutes=5, seconds=1)
    quote = await securities.quote("AAPL")

    assert quote.price == 2
    assert upstream.calls() == 2


async def test_empty_quote_payload_is_not_found_and_not_cached(securities, upstream, cache):
    upstream.route("/quote/ZZZZ", (200, []))

    with pytest.raises(NotFound):
        await securities.quote("ZZZZ")

    assert cache.size("quote") == 0


async def test_malformed_quote_payload_is_not_found(securities, upstream):
    upstream.route("/quote/AAPL", (200, [{"symbol": "AAPL"}]))

    with pytest.raises(NotFound):
        await securities.quote("AAPL")


async def test_history_is_ascending_and_keyed_by_timeframe(securities, upstream):
    upstream.route(
        "/historical-price-full/AAPL",
        (
            200,
            {
                "symbol": "AAPL",
                "historical": [
                    {"date": "2024-02-29", "close": 181.0, "volume": 10},
                    {"date": "2024-02-27", "close": 180.0, "volume": 12},
                    {"date": "2024-02-28", "close": 182.0, "volume": 11},
                ],
            },
        ),
    )

    bars = await securities.history("AAPL", 3)

    assert [b.date for b in bars] == [
        datetime(2024, 2, 27),
        datetime(2024, 2, 28),
        datetime(2024, 2, 29),
    ]
    assert bars[0].close == 180.0
    assert upstream.requests[0].url.params["timeseries"] == "3"

    await securities.history("AAPL", 3)
    assert upstream.calls() == 1


async def test_history_without_bars_is_not_found(securities, upstream):
    upstream.route("/historical-price-full/AAPL", (200, {}))

    with pytest.raises(NotFound):
        await securities.history("AAPL", 30)


async def test_short_search_terms_make_no_call(securities, upstream):
    assert await securities.search_by_name("ab") == []
    assert await securities.search_by_name("  ab  ") == []
    assert upstream.calls() == 0


async def test_three_char_search_calls_transport(securities, upstream):
    upstream.route("/search", (200, [{"symbol": "ABC", "name": "Abc", "exchangeShortName": "NYSE"}]))

    results = await securities.search_by_name("abc")

    assert [r.symbol for r in results] == ["ABC"]
    assert upstream.calls("/search") == 1
    assert upstream.requests[0].url.params["query"] == "abc"
    assert upstream.requests[0].url.params["limit"] == "20"


async def test_search_filters_exchanges_and_ranks(securities, upstream):
    upstream.route(
        "/search",
        (
            200,
            [
                {"symbol": "XAPP", "name": "X App", "exchangeShortName": "NASDAQ"},
                {"symbol": "APP.L", "name": "App London", "exchangeShortName": "LSE"},
                {"symbol": "APPF", "name": "AppFolio", "exchangeShortName": "NASDAQ"},
                {"symbol": "APP", "name": "AppLovin", "stockExchange": "NASDAQ Global Select"},
                {"symbol": "AAPP", "name": "Aapp", "exchangeShortName": "AMEX"},
            ],
        ),
    )

    results = await securities.search_by_name("app")

    assert [r.symbol for r in results] == ["APP", "APPF", "AAPP", "XAPP"]
    assert results[0].exchange == "NASDAQ Global Select"


async def test_search_is_cached_case_insensitively(securities, upstream):
    upstream.route("/search", (200, [{"symbol": "APP", "exchangeShortName": "NASDAQ"}]))

    await securities.search_by_name("App")
    await securities.search_by_name("aPP")

    assert upstream.calls() == 1


async def test_empty_search_payload_is_not_found(securities, upstream):
    upstream.route("/search", (200, []))

    with pytest.raises(NotFound):
        await securities.search_by_name("qwerty")


def test_rank_search_results_order():
    results = [SearchResult(symbol=s) for s in ("MSFTX", "AMSFT", "MSFT", "BMS")]

    ranked = rank_search_results(results, "msft")

    assert [r.symbol for r in ranked] == ["MSFT", "MSFTX", "AMSFT", "BMS"]


@pytest.mark.parametrize("symbol", ["7203.T", "VOD.L", "005930.KS", "600519.SS", "SAP.DE", "BMW.F"])
async def test_unsupported_exchange_rejected_without_call(securities, upstream, symbol):
    with pytest.raises(UnsupportedExchange):
        await securities.search_by_symbol(symbol)

    assert upstream.calls() == 0


def test_unsupported_exchange_names():
    assert unsupported_exchange("7203.t") == "Tokyo Stock Exchange"
    assert unsupported_exchange("AAPL") is None
    assert unsupported_exchange("F") is None


async def test_search_by_symbol_combines_quote_and_profile(securities, upstream, fmp_quota):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))
    upstream.route("/profile/AAPL", (200, [PROFILE]))

    detail = await securities.search_by_symbol("aapl")

    assert detail.symbol == "AAPL"
    assert detail.price == 190.5
    assert detail.exchange == "NASDAQ"
    assert detail.industry == "Consumer Electronics"
    assert detail.sector == "Technology"
    assert detail.website == "https://apple.com"
    assert fmp_quota.get_snapshot().counts == {"symbol": 1}

    await securities.search_by_symbol("AAPL")
    assert upstream.calls() == 2


async def test_search_by_symbol_defaults_missing_profile_fields(securities, upstream):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))
    upstream.route("/profile/AAPL", (200, [{"symbol": "AAPL"}]))

    detail = await securities.search_by_symbol("AAPL")

    assert detail.industry == "Unknown"
    assert detail.sector == "Unknown"
    assert detail.exchange == "Unknown"
    assert detail.description is None


async def test_search_by_symbol_without_profile_is_not_found(securities, upstream, cache):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))
    upstream.route("/profile/AAPL", (200, []))

    with pytest.raises(NotFound):
        await securities.search_by_symbol("AAPL")

    assert cache.size("symbol") == 0


async def test_rejected_request_propagates(securities, upstream):
    upstream.route("/quote/AAPL", (401, {"Error Message": "Invalid API KEY"}))

    with pytest.raises(RequestRejected):
        await securities.quote("AAPL")


async def test_cache_hit_still_served_while_quota_exhausted(securities, upstream, fmp_quota):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))
    await securities.quote("AAPL")
    fmp_quota.report_upstream_rate_limited()

    assert (await securities.quote("AAPL")).symbol == "AAPL"
    with pytest.raises(QuotaExceeded):
        await securities.quote("MSFT")


async def test_concurrent_identical_lookups_share_one_call(fmp_transport, cache, upstream):
    upstream.latency = 0.01
    service = SecurityLookupService(
        FmpProvider(fmp_transport), cache, in_flight=InFlightRequests()
    )
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))

    first, second = await asyncio.gather(service.quote("AAPL"), service.quote("AAPL"))

    assert first == second
    assert upstream.calls() == 1


async def test_concurrent_identical_lookups_without_dedup_call_twice(securities, upstream):
    upstream.latency = 0.01
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))

    await asyncio.gather(securities.quote("AAPL"), securities.quote("AAPL"))

    assert upstream.calls() == 2


async def test_usage_snapshot_reports_provider_and_cache(securities, upstream):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))
    await securities.quote("AAPL")

    usage = securities.get_usage_snapshot()

    assert usage.providers["FMP"].total == 1
    assert usage.cache.sizes["quote"] == 1


async def test_symbol_lookup_reaching_soft_limit_completes(securities, upstream, fmp_quota):
    for _ in range(494):
        fmp_quota.try_consume("quote")
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))
    upstream.route("/profile/AAPL", (200, [PROFILE]))

    detail = await securities.search_by_symbol("AAPL")

    assert detail.sector == "Technology"
    assert upstream.calls() == 2
    assert fmp_quota.total == 495
    assert fmp_quota.exhausted
    with pytest.raises(QuotaExceeded):
        await securities.search_by_symbol("MSFT")
    assert upstream.calls() == 2


async def test_symbol_lookup_refused_sends_neither_request(securities, upstream, fmp_quota):
    fmp_quota.report_upstream_rate_limited()

    with pytest.raises(QuotaExceeded):
        await securities.search_by_symbol("AAPL")

    assert upstream.calls() == 0


async def test_symbol_lookup_retries_are_counted_per_leg(securities, upstream, fmp_quota, sleep):
    upstream.route("/quote/AAPL", (200, [fmp_quote_row()]))
    upstream.route("/profile/AAPL", (500, {}), (200, [PROFILE]))

    await securities.search_by_symbol("AAPL")

    assert fmp_quota.get_snapshot().counts == {"symbol": 1, "profile": 1}
    assert sleep.delays == [1.0]


async def test_mutating_a_result_leaves_the_cached_value_intact(securities, upstream):
    upstream.route(
        "/historical-price-full/AAPL",
        (
            200,
            {
                "historical": [
                    {"date": "2024-02-28", "close": 1.0},
                    {"date": "2024-02-29", "close": 2.0},
                ]
            },
        ),
    )

    bars = await securities.history("AAPL", 2)
    bars.clear()
    again = await securities.history("AAPL", 2)
    again[0].close = 99.0

    assert [b.close for b in await securities.history("AAPL", 2)] == [1.0, 2.0]
    assert upstream.calls() == 1


async def test_news_is_shaped_and_not_cached(securities, upstream, fmp_quota):
    upstream.route(
        "/stock_news",
        (
            200,
            [
                {
                    "symbol": "AAPL",
                    "publishedDate": "2024-03-01 10:30:00",
                    "title": "Apple ships",
                    "site": "Reuters",
                    "url": "https://example.com/a",
                }
            ],
        ),
    )

    articles = await securities.news("aapl")
    await securities.news("AAPL")

    assert articles[0].title == "Apple ships"
    assert articles[0].published_at == datetime(2024, 3, 1, 10, 30)
    params = upstream.requests[0].url.params
    assert params["tickers"] == "AAPL"
    assert params["limit"] == "10"
    assert upstream.calls() == 2
    assert fmp_quota.get_snapshot().counts == {"news": 2}


async def test_empty_news_feed_is_empty_list(securities, upstream):
    upstream.route("/stock_news", (200, []))

    assert await securities.news("AAPL") == []


async def test_market_overview_charges_one_unit(securities, upstream, fmp_quota):
    upstream.route(
        "/quotes/index",
        (200, [{"symbol": "^GSPC", "name": "S&P 500", "price": 5100.0, "changesPercentage": 0.8}]),
    )
    upstream.route(
        "/stock/sectors-performance",
        (200, [{"sector": "Technology", "changesPercentage": "1.23456%"}]),
    )

    overview = await securities.market_overview()

    assert [q.symbol for q in overview.indexes] == ["^GSPC"]
    assert overview.sectors[0].sector == "Technology"
    assert overview.sectors[0].change == 1.23
    assert upstream.calls() == 2
    assert fmp_quota.get_snapshot().counts == {"overview": 1}


async def test_market_overview_refused_while_exhausted(securities, upstream, fmp_quota):
    fmp_quota.report_upstream_rate_limited()

    with pytest.raises(QuotaExceeded):
        await securities.market_overview()

    assert upstream.calls() == 0
