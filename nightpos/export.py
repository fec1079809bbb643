"""CSV and JSON export of ticket and attendance records."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, TextIO

from nightpos.attendance import worked_minutes
from nightpos.models import AttendanceRecord, PricingConfig, Ticket
from nightpos.pricing import ticket_totals

TICKET_FIELDS = (
    "id",
    "date",
    "status",
    "payment_method",
    "seat",
    "customer_name",
    "staff_id",
    "opened_at",
    "closed_at",
    "lines",
    "discount",
    "subtotal",
    "service_fee",
    "tax",
    "total",
)

ATTENDANCE_FIELDS = ("id", "staff_id", "clock_in", "clock_out", "minutes")


def ticket_rows(tickets: Iterable[Ticket], config: PricingConfig) -> list[dict[str, object]]:
    """Flat, already-priced records ready for a spreadsheet."""
    rows = []
    for ticket in tickets:
        totals = ticket_totals(ticket, config)
        rows.append(
            {
                "id": ticket.id,
                "date": ticket.business_date.isoformat(),
                "status": ticket.status.value,
                "payment_method": ticket.payment_method,
                "seat": ticket.seat,
                "customer_name": ticket.customer_name,
                "staff_id": ticket.staff_id or "",
                "opened_at": ticket.opened_at.isoformat(timespec="minutes"),
                "closed_at": ticket.closed_at.isoformat(timespec="minutes") if ticket.closed_at else "",
                "lines": len(ticket.lines),
                "discount": ticket.discount,
                "subtotal": totals.subtotal,
                "service_fee": totals.service_fee,
                "tax": totals.tax,
                "total": totals.total,
            }
        )
    return rows


def ticket_documents(tickets: Iterable[Ticket], config: PricingConfig) -> list[dict[str, object]]:
    """Ticket records including their lines, for JSON export."""
    tickets = list(tickets)
    documents = []
    for ticket, row in zip(tickets, ticket_rows(tickets, config)):
        row["lines"] = [
            {
                "id": line.id,
                "name": line.name,
                "unit_price": line.unit_price,
                "quantity": line.quantity,
                "serviceable": line.serviceable,
                "taxable": line.taxable,
                "pricing_mode": line.pricing_mode.value,
                "unit_minutes": line.unit_minutes,
            }
            for line in ticket.lines
        ]
        documents.append(row)
    return documents


def _write_csv(stream: TextIO, fields: tuple[str, ...], rows: list[dict[str, object]]) -> None:
    writer = csv.DictWriter(stream, fieldnames=fields)
    writer.writeheader()
    writer.writerows(rows)


def export_tickets_csv(tickets: Iterable[Ticket], config: PricingConfig, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8", newline="") as fh:
        _write_csv(fh, TICKET_FIELDS, ticket_rows(tickets, config))
    return out


def export_tickets_json(tickets: Iterable[Ticket], config: PricingConfig, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(ticket_documents(tickets, config), ensure_ascii=False, indent=2), encoding="utf-8")
    return out


def attendance_rows(records: Iterable[AttendanceRecord]) -> list[dict[str, object]]:
    return [
        {
            "id": record.id,
            "staff_id": record.staff_id,
            "clock_in": record.clock_in.isoformat(timespec="minutes"),
            "clock_out": record.clock_out.isoformat(timespec="minutes") if record.clock_out else "",
            "minutes": worked_minutes(record),
        }
        for record in records
    ]


def export_attendance_csv(records: Iterable[AttendanceRecord], path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8", newline="") as fh:
        _write_csv(fh, ATTENDANCE_FIELDS, attendance_rows(records))
    return out
