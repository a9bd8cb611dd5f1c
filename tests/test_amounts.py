# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for USDC base-unit conversion and formatting."""

from __future__ import annotations

from decimal import Decimal

import pytest

from aumos_treasury.amounts import (
    base_units_to_usdc,
    format_usdc,
    parse_amount,
    usdc_to_base_units,
)


# ---------------------------------------------------------------------------
# TestUsdcToBaseUnits
# ---------------------------------------------------------------------------


class TestUsdcToBaseUnits:
    def test_string_amount_is_scaled_by_six_decimals(self) -> None:
        assert usdc_to_base_units("2.50") == 2_500_000

    def test_decimal_and_int_amounts(self) -> None:
        assert usdc_to_base_units(Decimal("0.000001")) == 1
        assert usdc_to_base_units(100) == 100_000_000

    def test_more_than_six_places_raises(self) -> None:
        with pytest.raises(ValueError, match="decimal places"):
            usdc_to_base_units("0.0000001")

    def test_negative_amount_raises(self) -> None:
        with pytest.raises(ValueError, match=">= 0"):
            usdc_to_base_units("-1")

    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError, match="Not a valid USDC amount"):
            usdc_to_base_units("ten dollars")


# ---------------------------------------------------------------------------
# TestFormatting
# ---------------------------------------------------------------------------


class TestFormatting:
    def test_base_units_to_usdc_is_exact(self) -> None:
        assert base_units_to_usdc(1) == Decimal("0.000001")
        assert base_units_to_usdc("1500000") == Decimal("1.5")

    def test_two_place_formatting(self) -> None:
        assert format_usdc(1_234_567) == "1.23"
        assert format_usdc(5_000_000) == "5.00"

    def test_six_place_formatting(self) -> None:
        assert format_usdc(1_234_567, places=6) == "1.234567"
        assert format_usdc(250_000, places=6) == "0.250000"

    def test_rounding_is_half_even(self) -> None:
        assert format_usdc(5_000) == "0.00"
        assert format_usdc(15_000) == "0.02"


# ---------------------------------------------------------------------------
# TestParseAmount
# ---------------------------------------------------------------------------


class TestParseAmount:
    def test_integer_string(self) -> None:
        assert parse_amount("42") == 42
        assert parse_amount(" 7 ") == 7

    def test_int_passthrough(self) -> None:
        assert parse_amount(250_000) == 250_000

    def test_bool_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_amount(True)

    def test_decimal_string_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_amount("1.5")

    def test_negative_rejected_unless_allowed(self) -> None:
        with pytest.raises(ValueError):
            parse_amount("-1")
        assert parse_amount("-1", allow_negative=True) == -1
