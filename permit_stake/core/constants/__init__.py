from permit_stake.core.constants.base import MAX_UINT256, SECONDS_PER_YEAR
from permit_stake.core.constants.chains import CHAIN_ID_ETHEREUM, CHAIN_ID_GNOSIS

__all__ = ["CHAIN_ID_ETHEREUM", "CHAIN_ID_GNOSIS", "MAX_UINT256", "SECONDS_PER_YEAR"]
