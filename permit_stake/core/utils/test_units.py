from decimal import Decimal

import pytest

from permit_stake.core.utils.units import (
    format_ether,
    format_units,
    from_raw_amount,
    from_wei,
    to_raw_amount,
    to_wei,
)


class TestToRawAmount:
    def test_whole_and_fractional(self):
        assert to_wei("1.5") == 1_500_000_000_000_000_000
        assert to_raw_amount("12.345678", 6) == 12_345_678

    def test_truncates_extra_precision(self):
        assert to_raw_amount("0.1234567", 6) == 123_456

    def test_rejects_negative(self):
        with pytest.raises(ValueError, match="non-negative"):
            to_wei("-1")

    def test_rejects_garbage(self):
        with pytest.raises(ValueError, match="Invalid token amount"):
            to_wei("abc")


class TestFromRawAmount:
    def test_exact_decimal(self):
        assert from_wei(123456789012345678901) == Decimal("123.456789012345678901")
        assert from_raw_amount("2500000", 6) == Decimal("2.5")

    def test_rejects_garbage(self):
        with pytest.raises(ValueError, match="Invalid raw amount"):
            from_wei("1.5")


class TestFormat:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (0, "0.0"),
            (10**18, "1.0"),
            (2 * 10**18, "2.0"),
            (15 * 10**17, "1.5"),
            (1, "0.000000000000000001"),
            (10**24, "1000000.0"),
        ],
    )
    def test_format_ether(self, raw, expected):
        assert format_ether(raw) == expected
        assert format_ether(str(raw)) == expected

    def test_format_units_six_decimals(self):
        assert format_units(1_230_000, 6) == "1.23"
