"""
Tests for ledger money helpers.

Amounts are Decimal major units; Stripe amounts are integer minor units.
"""

from decimal import Decimal

import pytest

from payments.ledger.types import (
    platform_fee,
    quantize_amount,
    settlement_credit,
    to_decimal,
    to_major_units,
    to_minor_units,
    withdrawal_total,
)


class TestToDecimal:
    """Tests for to_decimal()."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("20.00", Decimal("20.00")),
            (20, Decimal("20")),
            (0.1, Decimal("0.1")),
            (Decimal("9.5"), Decimal("9.5")),
        ],
    )
    def test_parses_numbers(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", ["abc", None, True, "NaN", "Infinity", [1]])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)


class TestMinorUnits:
    """Tests for the Stripe boundary conversions."""

    def test_to_minor_units(self):
        assert to_minor_units(Decimal("20.00")) == 2000
        assert to_minor_units(Decimal("9.50")) == 950

    def test_to_minor_units_rounds_half_up(self):
        assert to_minor_units(Decimal("20.005")) == 2001
        assert to_minor_units(Decimal("20.004")) == 2000

    def test_to_major_units(self):
        assert to_major_units(2000) == Decimal("20.00")
        assert to_major_units(1) == Decimal("0.01")

    def test_quantize_amount(self):
        assert quantize_amount(Decimal("1.005")) == Decimal("1.01")
        assert str(quantize_amount(Decimal("3"))) == "3.00"


class TestPlatformFee:
    """Tests for fee helpers driven by settings.PLATFORM_FEE."""

    def test_reads_fee_from_settings(self, settings):
        settings.PLATFORM_FEE = Decimal("0.75")

        assert platform_fee() == Decimal("0.75")

    def test_accepts_string_setting(self, settings):
        settings.PLATFORM_FEE = "0.5"

        assert platform_fee() == Decimal("0.50")

    def test_settlement_credit_deducts_fee(self):
        assert settlement_credit(Decimal("20.00")) == Decimal("19.50")

    def test_settlement_credit_below_fee_is_negative(self):
        assert settlement_credit(Decimal("0.30")) == Decimal("-0.20")
        assert settlement_credit(Decimal("0.50")) == Decimal("0.00")

    def test_withdrawal_total_adds_fee(self):
        assert withdrawal_total(Decimal("9.50")) == Decimal("10.00")
