"""Sales figures over settled tickets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from nightpos.models import PricingConfig, PricingMode, Staff, Ticket
from nightpos.pricing import ticket_totals


@dataclass(frozen=True)
class DailySales:
    day: date
    total: int
    covers: int


@dataclass(frozen=True)
class MenuRanking:
    name: str
    quantity: int


@dataclass(frozen=True)
class Kpis:
    total_sales: int
    covers: int
    average_check: int


def paid_tickets(tickets: Iterable[Ticket]) -> list[Ticket]:
    return [ticket for ticket in tickets if ticket.is_paid]


def daily_sales(tickets: Iterable[Ticket], config: PricingConfig) -> list[DailySales]:
    """Settled sales per business day, oldest first."""
    totals: dict[date, list[int]] = {}
    for ticket in paid_tickets(tickets):
        bucket = totals.setdefault(ticket.business_date, [0, 0])
        bucket[0] += ticket_totals(ticket, config).total
        bucket[1] += 1
    return [DailySales(day=day, total=total, covers=covers) for day, (total, covers) in sorted(totals.items())]


def top_menu(tickets: Iterable[Ticket], limit: int = 5) -> list[MenuRanking]:
    """Best sellers by quantity. Split lines are bookkeeping and never rank."""
    counts: dict[str, int] = {}
    for ticket in paid_tickets(tickets):
        for line in ticket.lines:
            if line.pricing_mode is PricingMode.SPLIT:
                continue
            counts[line.name] = counts.get(line.name, 0) + line.quantity
    ranked = sorted(counts.items(), key=lambda pair: -pair[1])
    return [MenuRanking(name=name, quantity=quantity) for name, quantity in ranked[:limit]]


def sales_by_payment_method(tickets: Iterable[Ticket], config: PricingConfig) -> dict[str, int]:
    sales: dict[str, int] = {}
    for ticket in paid_tickets(tickets):
        sales[ticket.payment_method] = sales.get(ticket.payment_method, 0) + ticket_totals(ticket, config).total
    return sales


def sales_by_staff(tickets: Iterable[Ticket], staff: Iterable[Staff], config: PricingConfig) -> list[tuple[str, int]]:
    """Nominated-cast ranking as (name, sales), highest first."""
    names = {member.id: member.name for member in staff}
    sales: dict[str, int] = {}
    for ticket in paid_tickets(tickets):
        if ticket.staff_id is None:
            continue
        sales[ticket.staff_id] = sales.get(ticket.staff_id, 0) + ticket_totals(ticket, config).total
    ranked = sorted(sales.items(), key=lambda pair: -pair[1])
    return [(names.get(staff_id, staff_id), amount) for staff_id, amount in ranked]


def kpis(tickets: Iterable[Ticket], config: PricingConfig) -> Kpis:
    series = daily_sales(tickets, config)
    total_sales = sum(day.total for day in series)
    covers = sum(day.covers for day in series)
    average = 0
    if covers:
        average = int((Decimal(total_sales) / covers).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return Kpis(total_sales=total_sales, covers=covers, average_check=average)
