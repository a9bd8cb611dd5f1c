# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Conversions between USDC base units and human-readable amounts.

Every amount handled by this package is an ``int`` counted in the smallest
unit of USDC (6 decimal places). Conversions go through :class:`decimal.Decimal`
so no value is ever routed through binary floating point.
"""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

USDC_DECIMALS = 6
BASE_UNITS_PER_USDC = 10**USDC_DECIMALS

_SCALE = Decimal(BASE_UNITS_PER_USDC)


def usdc_to_base_units(amount: Decimal | int | str) -> int:
    """
    Convert a human-readable USDC amount into base units.

    Args:
        amount: The USDC amount, e.g. ``"2.50"`` or ``Decimal("0.000001")``.

    Returns:
        The amount in base units.

    Raises:
        ValueError: If ``amount`` is not a number, is negative, or carries
            more precision than 6 decimal places.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Not a valid USDC amount: {amount!r}.") from exc
    if not value.is_finite():
        raise ValueError(f"Not a valid USDC amount: {amount!r}.")
    if value < 0:
        raise ValueError(f"USDC amount must be >= 0; got {amount!r}.")
    scaled = value * _SCALE
    if scaled != scaled.to_integral_value():
        raise ValueError(
            f"USDC amount {amount!r} has more than {USDC_DECIMALS} decimal places."
        )
    return int(scaled)


def base_units_to_usdc(amount: int | str) -> Decimal:
    """Convert base units into an exact :class:`~decimal.Decimal` USDC amount."""
    return Decimal(parse_amount(amount, allow_negative=True)) / _SCALE


def format_usdc(amount: int | str, places: int = 2) -> str:
    """
    Render base units as a fixed-point USDC string.

    ``format_usdc(1_234_567)`` returns ``"1.23"``; ``format_usdc(1_234_567, 6)``
    returns ``"1.234567"``. Rounding is banker's rounding.
    """
    quantum = Decimal(1).scaleb(-places)
    return str(base_units_to_usdc(amount).quantize(quantum, rounding=ROUND_HALF_EVEN))


def parse_amount(value: int | str, allow_negative: bool = False) -> int:
    """
    Parse a base-unit amount from its wire form (an integer string).

    Raises:
        ValueError: If ``value`` is not an integer, or is negative while
            ``allow_negative`` is False.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a valid base-unit amount: {value!r}.")
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip()
        if not text.lstrip("-").isdigit():
            raise ValueError(f"Not a valid base-unit amount: {value!r}.")
        parsed = int(text)
    if parsed < 0 and not allow_negative:
        raise ValueError(f"Base-unit amount must be >= 0; got {value!r}.")
    return parsed
