from solfolio.collectors.base import BaseCollector
from solfolio.collectors.liquid_staking import LiquidStakingCollector
from solfolio.collectors.native_stake import NativeStakeCollector
from solfolio.collectors.wallet import WalletCollector

__all__ = [
    "BaseCollector",
    "LiquidStakingCollector",
    "NativeStakeCollector",
    "WalletCollector",
]
