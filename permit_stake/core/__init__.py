from permit_stake.core.adapters.BaseAdapter import BaseAdapter
from permit_stake.core.adapters.models import (
    StakePoolInfo,
    StakeUserInfo,
    TransactionOutcome,
)
from permit_stake.core.utils.wallets import LocalSigner, WalletProvider

__all__ = [
    "BaseAdapter",
    "LocalSigner",
    "StakePoolInfo",
    "StakeUserInfo",
    "TransactionOutcome",
    "WalletProvider",
]
