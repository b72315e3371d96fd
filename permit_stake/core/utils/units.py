"""Conversions between raw fixed-point integers and human decimal amounts."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation

ETHER_DECIMALS = 18

Amount = str | int | float | Decimal


def parse_amount(amount: Amount) -> Decimal:
    """User-entered amount as a ``Decimal``; floats go through ``str`` to keep their printed digits."""
    if isinstance(amount, bool):
        raise ValueError(f"Invalid token amount: {amount!r}")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid token amount: {amount}")
    return value


def to_raw_amount(amount: Amount, decimals: int) -> int:
    """Scale to raw units, truncating digits beyond ``decimals``."""
    value = parse_amount(amount)
    if value < 0:
        raise ValueError("Amount must be non-negative")
    return int(value.scaleb(int(decimals)).to_integral_value(rounding=ROUND_DOWN))


def to_wei(amount: Amount) -> int:
    return to_raw_amount(amount, ETHER_DECIMALS)


def from_raw_amount(raw_amount: str | int, decimals: int) -> Decimal:
    try:
        raw = int(str(raw_amount).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid raw amount: {raw_amount}") from exc
    return Decimal(raw).scaleb(-int(decimals))


def from_wei(raw_amount: str | int) -> Decimal:
    return from_raw_amount(raw_amount, ETHER_DECIMALS)


def format_units(raw_amount: str | int, decimals: int) -> str:
    """Plain decimal string, always with a fractional part (``"1.5"``, ``"2.0"``)."""
    text = format(from_raw_amount(raw_amount, decimals).normalize(), "f")
    return text if "." in text else f"{text}.0"


def format_ether(raw_amount: str | int) -> str:
    return format_units(raw_amount, ETHER_DECIMALS)
