__version__ = "0.1.0"

from permit_stake.adapters.staking_adapter.adapter import StakingAdapter, needs_approval
from permit_stake.core import (
    BaseAdapter,
    LocalSigner,
    StakePoolInfo,
    StakeUserInfo,
    TransactionOutcome,
    WalletProvider,
)

__all__ = [
    "__version__",
    "BaseAdapter",
    "LocalSigner",
    "StakePoolInfo",
    "StakeUserInfo",
    "StakingAdapter",
    "TransactionOutcome",
    "WalletProvider",
    "needs_approval",
]
