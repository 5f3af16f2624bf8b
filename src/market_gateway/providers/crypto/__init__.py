"""Cryptocurrency market data providers."""
from market_gateway.providers.crypto.coingecko.coin_gecko_provider import (
    CoinGeckoProvider,
)
from market_gateway.providers.crypto.coingecko.ids import resolve_coin_id
from market_gateway.providers.crypto.crypto_provider_abc import CryptoProviderABC

__all__ = ["CoinGeckoProvider", "CryptoProviderABC", "resolve_coin_id"]
