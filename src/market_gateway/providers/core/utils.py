"""Shared utilities for market data providers."""
from datetime import datetime

DECIMALS = 2


def normalize_stock_symbol(symbol: str) -> str:
    """Normalize a stock symbol (strip, uppercase)."""
    return symbol.strip().upper()


def normalize_crypto_id(symbol: str) -> str:
    """Normalize a CoinGecko/crypto ID (strip, lowercase)."""
    return symbol.strip().lower()


def round2(x: float | None) -> float | None:
    """Round a value to 2 decimal places; preserve None."""
    if x is None:
        return None
    return round(float(x), DECIMALS)


def parse_timestamp(ts: float | None) -> datetime | None:
    """Convert optional Unix timestamp (seconds) to datetime."""
    return datetime.fromtimestamp(ts) if ts is not None else None
