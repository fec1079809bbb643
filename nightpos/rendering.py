"""Rich rendering helpers for tickets and the dashboard."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from nightpos.attendance import PayrollLine
from nightpos.constant import CURRENCY_SYMBOLS, PAYMENT_METHOD_LABELS
from nightpos.dashboard import DailySales, Kpis
from nightpos.models import MenuLine, PricingMode, Ticket, TicketStatus, Totals


def format_yen(amount: int, currency: str = "JPY") -> str:
    """Format an amount with its currency symbol and thousands separators."""
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,}"


def badge_style(status: TicketStatus) -> str:
    """Return a consistent badge style for ticket status tags."""
    if status is TicketStatus.PAID:
        return "bold #0b1f0f on #5fbf72"
    return "bold #1b0f12 on #c6a35e"


def format_line_label(line: MenuLine) -> Text:
    """Render a line name with a tag for time-billed and split lines."""
    text = Text()
    if line.pricing_mode is PricingMode.PER_UNIT:
        text.append("T", style="bold #ffffff on #2f6db5")
        text.append(f" {line.name}")
    elif line.pricing_mode is PricingMode.SPLIT:
        text.append("S", style="bold #ffffff on #b23a48")
        text.append(f" {line.name}")
    else:
        text.append(line.name)
    return text


def format_ticket(ticket: Ticket, totals: Totals, currency: str = "JPY") -> Text:
    text = Text()
    text.append(f" {ticket.status.value.upper()} ", style=badge_style(ticket.status))
    text.append(f" {ticket.id}", style="bold")
    if ticket.seat:
        text.append(f"  seat {ticket.seat}")
    text.append(f"  {ticket.customer_name or '-'}\n")

    if not ticket.lines:
        text.append("(no items yet)\n", style="dim")
    for idx, line in enumerate(ticket.lines):
        text.append(f"{idx + 1}. ")
        text.append_text(format_line_label(line))
        if line.pricing_mode is PricingMode.PER_UNIT:
            text.append(f"  {format_yen(line.unit_price, currency)}/{line.unit_minutes}min\n")
        else:
            text.append(f"  {format_yen(line.unit_price, currency)} x {line.quantity}\n")

    text.append(f"Subtotal  {format_yen(totals.subtotal, currency)}\n")
    text.append(f"Service   {format_yen(totals.service_fee, currency)}\n")
    text.append(f"Tax       {format_yen(totals.tax, currency)}\n")
    if ticket.discount:
        text.append(f"Discount  {format_yen(-ticket.discount, currency)}\n")
    text.append(f"Total     {format_yen(totals.total, currency)}", style="bold #c6a35e")
    text.append(f"  ({PAYMENT_METHOD_LABELS.get(ticket.payment_method, ticket.payment_method)})", style="dim")
    return text


def kpi_text(figures: Kpis, currency: str = "JPY") -> Text:
    text = Text()
    text.append("Sales ", style="dim")
    text.append(format_yen(figures.total_sales, currency), style="bold")
    text.append("  Covers ", style="dim")
    text.append(str(figures.covers), style="bold")
    text.append("  Avg check ", style="dim")
    text.append(format_yen(figures.average_check, currency), style="bold")
    return text


def sales_table(series: list[DailySales], currency: str = "JPY") -> Table:
    table = Table(title="Daily sales")
    table.add_column("Date")
    table.add_column("Tickets", justify="right")
    table.add_column("Sales", justify="right")
    for day in series:
        table.add_row(day.day.isoformat(), str(day.covers), format_yen(day.total, currency))
    return table


def payroll_table(lines: list[PayrollLine], currency: str = "JPY") -> Table:
    table = Table(title="Payroll")
    table.add_column("Staff")
    table.add_column("Hours", justify="right")
    table.add_column("Pay", justify="right")
    for line in lines:
        table.add_row(line.name, f"{line.minutes // 60}:{line.minutes % 60:02d}", format_yen(line.pay, currency))
    return table
