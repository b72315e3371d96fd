from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

from eth_utils import (
    is_address,
    is_checksum_address,
    is_checksum_formatted_address,
    to_checksum_address,
)

from permit_stake.core.adapters.BaseAdapter import BaseAdapter
from permit_stake.core.adapters.models import (
    EarnedAmount,
    OperationKind,
    StakePoolInfo,
    StakeUserInfo,
    TransactionOutcome,
    TransactionStatus,
)
from permit_stake.core.config import (
    get_display_token,
    get_primary_chain_id,
    get_stake_pools,
    get_token_symbol,
    get_tracked_token_address,
)
from permit_stake.core.constants.base import STAKE_WITH_PERMIT_GAS_LIMIT
from permit_stake.core.constants.staking_abi import LM_ABI, UNI_V2_PAIR_ABI
from permit_stake.core.notifications import NotificationSink
from permit_stake.core.utils.permit import build_permit, select_permit_variant
from permit_stake.core.utils.pool_metrics import (
    compute_apr,
    compute_lp_apr,
    to_decimal,
)
from permit_stake.core.utils.transaction import (
    encode_call,
    receipt_succeeded,
    send_transaction,
    wait_for_transaction_receipt,
)
from permit_stake.core.utils.units import format_ether, from_wei
from permit_stake.core.utils.wallets import Signer, WalletProvider, signer_address
from permit_stake.core.utils.web3 import web3_from_chain_id


def _is_zero_amount(amount: str | int) -> bool:
    value = int(str(amount).strip())
    if value < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    return value == 0


def _validated_address(address: str | None) -> str | None:
    text = str(address or "")
    if not is_address(text):
        return None
    # Mixed case means the caller claims a checksum; it must verify.
    if is_checksum_formatted_address(text) and not is_checksum_address(text):
        return None
    return to_checksum_address(text)


def needs_approval(user_info: StakeUserInfo, amount: str | int) -> bool:
    """True when the current allowance does not cover ``amount`` (raw units)."""
    return int(user_info.allowance_lp_tokens) < int(str(amount))


class StakingAdapter(BaseAdapter):
    """
    Liquidity-mining staking: permit-based (gasless approval) and classic
    approve + stake flows, harvest and withdraw, plus the pool and user reads
    needed to display pool economics.

    Every write follows the same lifecycle: submit, notify PENDING, wait for
    the receipt, notify CONFIRMED or FAILED exactly once. Reverted
    transactions are reported, not raised; transport and signing errors
    propagate to the caller.
    """

    adapter_type = "STAKING"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        notification_sink: NotificationSink | None = None,
    ) -> None:
        super().__init__("staking_adapter", config, notification_sink)

    # -- reads -----------------------------------------------------------------

    async def fetch_stake_pool_info(
        self,
        pool_address: str,
        lm_address: str,
        chain_id: int,
        has_liquidity_pool: bool,
        *,
        tracked_token: str | None = None,
    ) -> StakePoolInfo:
        async with web3_from_chain_id(chain_id) as web3:
            lm = web3.eth.contract(address=to_checksum_address(lm_address), abi=LM_ABI)

            if has_liquidity_pool:
                pair = web3.eth.contract(
                    address=to_checksum_address(pool_address), abi=UNI_V2_PAIR_ABI
                )
                (
                    raw_reserves,
                    token0,
                    raw_pool_total_supply,
                    raw_total_supply,
                    raw_reward_rate,
                ) = await asyncio.gather(
                    pair.functions.getReserves().call(),
                    pair.functions.token0().call(),
                    pair.functions.totalSupply().call(),
                    lm.functions.totalSupply().call(),
                    lm.functions.rewardRate().call(),
                )
            else:
                raw_total_supply, raw_reward_rate = await asyncio.gather(
                    lm.functions.totalSupply().call(),
                    lm.functions.rewardRate().call(),
                )

        total_supply = to_decimal(int(raw_total_supply))
        reserves: tuple[Decimal, Decimal] | None = None
        pool_total_supply: Decimal | None = None

        if has_liquidity_pool:
            reserves = (to_decimal(int(raw_reserves[0])), to_decimal(int(raw_reserves[1])))
            pool_total_supply = to_decimal(int(raw_pool_total_supply))
            # Nothing staked: no APR, and the tracked token is never looked up.
            apr = None
            if total_supply != 0:
                apr = compute_lp_apr(
                    int(raw_reward_rate),
                    total_supply,
                    reserves=reserves,
                    token0=str(token0),
                    tracked_token=tracked_token or get_tracked_token_address(chain_id),
                    pool_total_supply=pool_total_supply,
                )
        else:
            apr = compute_apr(int(raw_reward_rate), total_supply)

        symbol = get_token_symbol()
        return StakePoolInfo(
            tokens_in_pool=total_supply,
            apr=apr,
            earned=EarnedAmount(amount=Decimal(0), token=symbol, display_token=symbol),
            reserves=reserves,
            pool_total_supply=pool_total_supply,
        )

    async def fetch_user_info(
        self,
        address: str,
        pool_address: str,
        lm_address: str,
        chain_id: int,
    ) -> StakeUserInfo:
        valid_address = _validated_address(address)
        if valid_address is None:
            self.logger.debug(f"Skipping user info fetch for invalid address {address!r}")
            symbol = get_token_symbol()
            return StakeUserInfo(
                earned=EarnedAmount(amount=Decimal(0), token=symbol, display_token=symbol)
            )

        lm_checksum = to_checksum_address(lm_address)
        async with web3_from_chain_id(chain_id) as web3:
            lm = web3.eth.contract(address=lm_checksum, abi=LM_ABI)
            pair = web3.eth.contract(
                address=to_checksum_address(pool_address), abi=UNI_V2_PAIR_ABI
            )
            staked, earned, not_staked, allowance = await asyncio.gather(
                lm.functions.balanceOf(valid_address).call(),
                lm.functions.earned(valid_address).call(),
                pair.functions.balanceOf(valid_address).call(),
                pair.functions.allowance(valid_address, lm_checksum).call(),
            )

        return StakeUserInfo(
            staked_lp_tokens=from_wei(int(staked)),
            earned=EarnedAmount(
                amount=from_wei(int(earned)),
                token=get_token_symbol(),
                display_token=get_display_token(chain_id),
            ),
            not_staked_lp_tokens_wei=str(int(not_staked)),
            allowance_lp_tokens=str(int(allowance)),
        )

    async def fetch_configured_pools(self, chain_id: int) -> list[StakePoolInfo]:
        pools = get_stake_pools(chain_id)
        return list(
            await asyncio.gather(
                *[
                    self.fetch_stake_pool_info(
                        pool["pool_address"],
                        pool["lm_address"],
                        chain_id,
                        bool(pool.get("has_liquidity_pool", False)),
                    )
                    for pool in pools
                ]
            )
        )

    # -- writes ----------------------------------------------------------------

    async def approve(
        self,
        amount: str,
        pool_address: str,
        lm_address: str,
        provider: WalletProvider,
    ) -> TransactionOutcome | None:
        if _is_zero_amount(amount):
            return None

        signer = provider.get_signer()
        tx = encode_call(
            target=pool_address,
            abi=UNI_V2_PAIR_ABI,
            fn_name="approve",
            args=[to_checksum_address(lm_address), int(amount)],
            from_address=signer_address(signer),
            chain_id=provider.chain_id,
        )
        return await self._submit_and_track(OperationKind.APPROVE, tx, signer)

    async def stake_tokens(
        self,
        amount: str,
        pool_address: str,
        lm_address: str,
        provider: WalletProvider,
    ) -> TransactionOutcome | None:
        """Stake with an off-chain permit in a single ``stakeWithPermit`` transaction."""
        if _is_zero_amount(amount):
            return None

        signer = provider.get_signer()
        chain_id = provider.chain_id
        variant = select_permit_variant(chain_id, get_primary_chain_id())
        self.logger.debug(f"Using {variant} permit for chain {chain_id}")

        async with web3_from_chain_id(chain_id) as web3:
            permit = await build_permit(
                variant,
                web3,
                signer=signer,
                chain_id=chain_id,
                pool_address=pool_address,
                lm_address=lm_address,
                amount=int(amount),
            )

        tx = encode_call(
            target=lm_address,
            abi=LM_ABI,
            fn_name="stakeWithPermit",
            args=[int(amount), bytes.fromhex(permit.data.removeprefix("0x"))],
            from_address=signer_address(signer),
            chain_id=chain_id,
            gas=STAKE_WITH_PERMIT_GAS_LIMIT,
        )
        return await self._submit_and_track(
            OperationKind.STAKE, tx, signer, amount=format_ether(amount)
        )

    async def stake_tokens_without_permit(
        self,
        amount: str,
        pool_address: str,
        lm_address: str,
        provider: WalletProvider,
    ) -> TransactionOutcome | None:
        """Plain ``stake``; the allowance must already be granted via :meth:`approve`."""
        if _is_zero_amount(amount):
            return None

        signer = provider.get_signer()
        tx = encode_call(
            target=lm_address,
            abi=LM_ABI,
            fn_name="stake",
            args=[int(amount)],
            from_address=signer_address(signer),
            chain_id=provider.chain_id,
        )
        return await self._submit_and_track(
            OperationKind.STAKE, tx, signer, amount=format_ether(amount)
        )

    async def harvest_tokens(
        self, lm_address: str, chain_id: int, signer: Signer
    ) -> TransactionOutcome:
        tx = encode_call(
            target=lm_address,
            abi=LM_ABI,
            fn_name="getReward",
            args=[],
            from_address=signer_address(signer),
            chain_id=chain_id,
        )
        return await self._submit_and_track(OperationKind.HARVEST, tx, signer)

    async def withdraw_tokens(
        self, amount: int | str, lm_address: str, chain_id: int, signer: Signer
    ) -> TransactionOutcome:
        tx = encode_call(
            target=lm_address,
            abi=LM_ABI,
            fn_name="withdraw",
            args=[int(str(amount))],
            from_address=signer_address(signer),
            chain_id=chain_id,
        )
        return await self._submit_and_track(OperationKind.WITHDRAW, tx, signer)

    async def _submit_and_track(
        self,
        operation: OperationKind,
        transaction: dict[str, Any],
        signer: Signer,
        *,
        amount: str | None = None,
    ) -> TransactionOutcome:
        chain_id = int(transaction["chainId"])
        tx_hash = await send_transaction(transaction, signer.sign_callback)
        self.notify(operation, TransactionStatus.PENDING, chain_id, tx_hash, amount)

        receipt = await wait_for_transaction_receipt(chain_id, tx_hash)
        if receipt_succeeded(receipt):
            status = TransactionStatus.CONFIRMED
        else:
            status = TransactionStatus.FAILED
            self.logger.warning(f"{operation} transaction {tx_hash} reverted")
        self.notify(operation, status, chain_id, tx_hash)

        return TransactionOutcome(
            operation=operation,
            chain_id=chain_id,
            tx_hash=tx_hash,
            status=status,
            receipt=receipt,
        )
