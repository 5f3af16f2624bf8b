"""Short ticker -> CoinGecko id resolution."""
from market_gateway.providers.core.utils import normalize_crypto_id

COIN_IDS: dict[str, str] = {
    "btc": "bitcoin",
    "eth": "ethereum",
    "usdt": "tether",
    "usdc": "usd-coin",
    "bnb": "binancecoin",
    "xrp": "ripple",
    "sol": "solana",
    "ada": "cardano",
    "doge": "dogecoin",
    "trx": "tron",
    "link": "chainlink",
    "matic": "matic-network",
    "dot": "polkadot",
    "ltc": "litecoin",
    "avax": "avalanche-2",
    "shib": "shiba-inu",
    "uni": "uniswap",
    "atom": "cosmos",
    "xlm": "stellar",
    "etc": "ethereum-classic",
}


def resolve_coin_id(symbol: str) -> str:
    """Map a short ticker ("btc") to its canonical id ("bitcoin").

    Hyphenated or longer-than-5-char inputs are taken as canonical already;
    unknown tickers pass through lower-cased.
    """
    coin = normalize_crypto_id(symbol)
    if "-" in coin or len(coin) > 5:
        return coin
    return COIN_IDS.get(coin, coin)
