from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class OperationKind(StrEnum):
    APPROVE = "APPROVE"
    STAKE = "STAKE"
    HARVEST = "HARVEST"
    WITHDRAW = "WITHDRAW"


class TransactionStatus(StrEnum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class EarnedAmount(BaseModel):
    amount: Decimal = Decimal(0)
    token: str
    display_token: str


class StakePoolInfo(BaseModel):
    tokens_in_pool: Decimal
    apr: Decimal | None = None
    earned: EarnedAmount
    staked_lp_tokens: Decimal = Decimal(0)
    # Only set for pools whose stake token is a liquidity-pool share.
    reserves: tuple[Decimal, Decimal] | None = None
    pool_total_supply: Decimal | None = None

    @model_validator(mode="after")
    def _lp_fields_together(self) -> "StakePoolInfo":
        if (self.reserves is None) != (self.pool_total_supply is None):
            raise ValueError(
                "reserves and pool_total_supply must both be set or both be None"
            )
        return self

    @property
    def has_liquidity_pool(self) -> bool:
        return self.reserves is not None


class StakeUserInfo(BaseModel):
    staked_lp_tokens: Decimal = Decimal(0)
    earned: EarnedAmount
    # Raw integer strings, compared exactly against raw amounts.
    not_staked_lp_tokens_wei: str = "0"
    allowance_lp_tokens: str = "0"


class TransactionOutcome(BaseModel):
    operation: OperationKind
    chain_id: int
    tx_hash: str
    status: TransactionStatus = TransactionStatus.PENDING
    receipt: dict[str, Any] | None = None

    @property
    def confirmed(self) -> bool:
        return self.status == TransactionStatus.CONFIRMED


class TransactionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    operation: OperationKind
    stage: TransactionStatus
    chain_id: int
    tx_hash: str
    amount: str | None = None
    explorer_url: str | None = None
