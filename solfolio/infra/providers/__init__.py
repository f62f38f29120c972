from solfolio.infra.providers.base import PriceProvider
from solfolio.infra.providers.birdeye import BirdeyeProvider
from solfolio.infra.providers.coingecko import CoinGeckoProvider
from solfolio.infra.providers.cryptocompare import CryptoCompareProvider
from solfolio.infra.providers.jupiter import JupiterProvider

__all__ = [
    "PriceProvider",
    "BirdeyeProvider",
    "CoinGeckoProvider",
    "CryptoCompareProvider",
    "JupiterProvider",
]
