"""Ticket pricing: subtotal, service fee, tax and rounding.

Every function here is pure. Rates are converted through ``Decimal`` so that
``7200 * 0.1`` is exactly 720 and never 719.999...

The service fee rounds half up while tax truncates. The asymmetry matches the
venue's billing convention and must not be "fixed".
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Iterable

from nightpos.errors import ValidationError
from nightpos.models import (
    MenuLine,
    PricingConfig,
    PricingMode,
    Rounding,
    RoundingLevel,
    RoundingMethod,
    Ticket,
    Totals,
    is_plain_int,
)

_ONE = Decimal(1)


def _rate(value: float) -> Decimal:
    return Decimal(str(value))


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def _ceil(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def elapsed_minutes(check_in: datetime | None, check_out: datetime | None) -> int:
    """Whole minutes between check-in and check-out, 0 when either is missing."""
    if check_in is None or check_out is None:
        return 0
    seconds = Decimal(str((check_out - check_in).total_seconds()))
    return max(0, _round_half_up(seconds / 60))


def line_base_amount(line: MenuLine, elapsed: int | float = 0) -> int:
    """Amount a line contributes before service fee and tax."""
    line.validate()
    if line.pricing_mode is PricingMode.PER_UNIT:
        if elapsed <= 0:
            return 0
        units = _ceil(Decimal(str(elapsed)) / line.unit_minutes)
        return line.unit_price * units
    return line.unit_price * line.quantity


def apply_rounding(amount: int, rounding: Rounding) -> int:
    """Round ``amount`` to a multiple of ``rounding.unit``."""
    unit = rounding.unit
    if unit <= 1:
        return amount
    quotient, remainder = divmod(amount, unit)
    if remainder == 0:
        return amount
    if rounding.method is RoundingMethod.FLOOR:
        return quotient * unit
    if rounding.method is RoundingMethod.CEIL:
        return (quotient + 1) * unit
    if remainder * 2 >= unit:
        quotient += 1
    return quotient * unit


def compute_totals(
    lines: Iterable[MenuLine],
    config: PricingConfig,
    elapsed_minutes: int | float = 0,
    discount: int = 0,
) -> Totals:
    """Price a ticket's lines.

    ``elapsed_minutes`` drives per-unit (time-billed) lines and is 0 while the
    ticket has no check-out. ``discount`` is taken off before ticket-level
    rounding and can never push the total below zero.

    With ticket-level rounding only ``total`` is adjusted, so the displayed
    subtotal, fee and tax need not add up to it.
    """
    if not isinstance(config, PricingConfig):
        raise TypeError(f"config must be a PricingConfig, got {type(config).__name__}")
    if isinstance(elapsed_minutes, bool) or not isinstance(elapsed_minutes, (int, float)) or elapsed_minutes < 0:
        raise ValidationError(f"elapsed_minutes must be a non-negative number, got {elapsed_minutes!r}")
    if not is_plain_int(discount) or discount < 0:
        raise ValidationError(f"discount must be a non-negative integer, got {discount!r}")

    rounding = config.rounding
    subtotal = 0
    fee_base = 0
    tax_base = 0
    settled = 0

    for line in lines:
        base = line_base_amount(line, elapsed_minutes)
        if line.pricing_mode is PricingMode.SPLIT:
            subtotal += base
            settled += base
            continue
        if rounding.level is RoundingLevel.LINE:
            base = apply_rounding(base, rounding)
        subtotal += base
        if line.serviceable:
            fee_base += base
        if line.taxable:
            tax_base += base

    service_fee = _round_half_up(Decimal(fee_base) * _rate(config.service_fee_rate))
    # Service fee is itself taxable.
    tax = _floor(Decimal(tax_base + service_fee) * _rate(config.tax_rate))
    total = max(0, subtotal + service_fee + tax - discount)

    if rounding.level is RoundingLevel.TICKET:
        # Split amounts are already final; only the freshly priced part is rounded.
        priced = max(0, total - settled)
        total = apply_rounding(priced, rounding) + min(total, settled)

    return Totals(
        subtotal=subtotal,
        service_fee=service_fee,
        tax=tax,
        total=total,
        elapsed_minutes=int(elapsed_minutes),
    )


def ticket_totals(ticket: Ticket, config: PricingConfig, now: datetime | None = None) -> Totals:
    """Totals for a ticket.

    Paid tickets return the snapshot taken at settlement. For an open ticket
    without a check-out, ``now`` may stand in for it to preview running
    time charges.
    """
    if ticket.is_paid and ticket.settled_totals is not None:
        return ticket.settled_totals
    check_out = ticket.closed_at if ticket.closed_at is not None else now
    minutes = elapsed_minutes(ticket.opened_at, check_out)
    return compute_totals(ticket.lines, config, minutes, ticket.discount)
