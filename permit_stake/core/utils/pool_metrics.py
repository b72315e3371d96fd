"""
APR and liquidity-pool math for liquidity-mining stake pools.

Rates and supplies arrive as 18-decimal fixed-point integers, so everything
here runs on ``Decimal`` with a precision wide enough to hold any uint256
product exactly. Floats never enter the computation.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, localcontext

from permit_stake.core.constants.base import MANTISSA, SECONDS_PER_YEAR

Numeric = int | str | Decimal

# uint256 * uint256 needs ~155 significant digits.
_PRECISION = 160


def to_decimal(value: Numeric) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a numeric amount")
    if isinstance(value, int):
        return Decimal(value)
    return Decimal(str(value).strip())


def select_tracked_reserve(
    reserves: Sequence[Numeric], token0: str, tracked_token: str
) -> Decimal:
    """Pick the reserve slot holding ``tracked_token``.

    Uniswap V2 pairs store reserves in ``token0``/``token1`` order. The tracked
    token is assumed to be one of the two; if it is not ``token0`` it is taken
    to be ``token1``.
    """
    reserve0, reserve1 = reserves[0], reserves[1]
    if str(token0).lower() == str(tracked_token).lower():
        return to_decimal(reserve0)
    return to_decimal(reserve1)


def compute_lp_multiplier(pool_total_supply: Numeric, tracked_reserve: Numeric) -> Decimal:
    """
    Value of one LP token in units of the tracked token, scaled by 1e18.

        lp_multiplier = pool_total_supply * 1e18 / 2 / tracked_reserve

    Only valid for a 50/50 constant-product pair, where the tracked reserve is
    exactly half of the pool's value.
    """
    reserve = to_decimal(tracked_reserve)
    if reserve == 0:
        raise ValueError("Tracked token reserve is zero; LP value is undefined")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return to_decimal(pool_total_supply) * MANTISSA / 2 / reserve


def compute_apr(
    reward_rate_per_second: Numeric,
    total_staked_supply: Numeric,
    lp_multiplier: Numeric | None = None,
) -> Decimal | None:
    """
    Annualised reward rate, in percent, of a liquidity-mining pool.

        apr = reward_rate * SECONDS_PER_YEAR * 100 / total_staked

    For LP-backed pools the result is further scaled by
    ``lp_multiplier / 1e18`` (see :func:`compute_lp_multiplier`).

    Returns ``None`` when nothing is staked: the rate is undefined.
    """
    total = to_decimal(total_staked_supply)
    if total == 0:
        return None

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        apr = to_decimal(reward_rate_per_second) * SECONDS_PER_YEAR * 100 / total
        if lp_multiplier is not None:
            apr = apr * to_decimal(lp_multiplier) / MANTISSA
    return apr


def compute_lp_apr(
    reward_rate_per_second: Numeric,
    total_staked_supply: Numeric,
    *,
    reserves: Sequence[Numeric],
    token0: str,
    tracked_token: str,
    pool_total_supply: Numeric,
) -> Decimal | None:
    if to_decimal(total_staked_supply) == 0:
        return None
    reserve = select_tracked_reserve(reserves, token0, tracked_token)
    multiplier = compute_lp_multiplier(pool_total_supply, reserve)
    return compute_apr(reward_rate_per_second, total_staked_supply, multiplier)


def lp_share_value(
    lp_amount: Numeric,
    reserves: Sequence[Numeric],
    pool_total_supply: Numeric,
) -> tuple[Decimal, Decimal]:
    """Underlying ``(amount0, amount1)`` redeemable for ``lp_amount`` LP tokens."""
    supply = to_decimal(pool_total_supply)
    if supply == 0:
        return Decimal(0), Decimal(0)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        share = to_decimal(lp_amount) / supply
        return to_decimal(reserves[0]) * share, to_decimal(reserves[1]) * share
