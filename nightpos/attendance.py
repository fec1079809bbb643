"""Staff clock-in/out and payroll."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable
from uuid import uuid4

from nightpos.constant import DEFAULT_STAFF
from nightpos.errors import AttendanceError
from nightpos.models import AttendanceRecord, Staff
from nightpos.pricing import elapsed_minutes


@dataclass(frozen=True)
class PayrollLine:
    staff_id: str
    name: str
    minutes: int
    pay: int


def staff_from_dict(raw: dict) -> Staff:
    return Staff(
        id=str(raw["id"]),
        code=str(raw["code"]),
        name=str(raw["name"]),
        role=str(raw.get("role", "cast")),
        active=bool(raw.get("active", True)),
        hourly_wage=int(raw.get("hourlyWage", 0)),
    )


def default_staff() -> list[Staff]:
    return [staff_from_dict(raw) for raw in DEFAULT_STAFF]


def new_staff(existing: list[Staff], name: str = "新規", role: str = "cast", hourly_wage: int = 0) -> Staff:
    """A new roster entry with the next S1xx code."""
    return Staff(
        id=uuid4().hex[:8],
        code=f"S{100 + len(existing)}",
        name=name,
        role=role,
        hourly_wage=hourly_wage,
    )


def open_record(records: Iterable[AttendanceRecord], staff_id: str) -> AttendanceRecord | None:
    for record in records:
        if record.staff_id == staff_id and record.is_open:
            return record
    return None


def clock_in(records: list[AttendanceRecord], staff_id: str, now: datetime | None = None) -> AttendanceRecord:
    if open_record(records, staff_id) is not None:
        raise AttendanceError(f"staff {staff_id} is already clocked in")
    record = AttendanceRecord(id=uuid4().hex[:8], staff_id=staff_id, clock_in=now or datetime.now())
    records.insert(0, record)
    return record


def clock_out(records: list[AttendanceRecord], staff_id: str, now: datetime | None = None) -> AttendanceRecord:
    record = open_record(records, staff_id)
    if record is None:
        raise AttendanceError(f"staff {staff_id} is not clocked in")
    record.clock_out = now or datetime.now()
    return record


def worked_minutes(record: AttendanceRecord) -> int:
    """Minutes on shift; an open record counts as zero until clock-out."""
    return elapsed_minutes(record.clock_in, record.clock_out)


def minutes_by_staff(records: Iterable[AttendanceRecord], day: date | None = None) -> dict[str, int]:
    """Worked minutes per staff id, optionally limited to shifts starting on ``day``."""
    totals: dict[str, int] = {}
    for record in records:
        if day is not None and record.clock_in.date() != day:
            continue
        totals[record.staff_id] = totals.get(record.staff_id, 0) + worked_minutes(record)
    return totals


def payroll(staff: Iterable[Staff], records: Iterable[AttendanceRecord], day: date | None = None) -> list[PayrollLine]:
    """Pay per staff member, truncated to whole currency units."""
    minutes = minutes_by_staff(records, day)
    lines = []
    for member in staff:
        worked = minutes.get(member.id, 0)
        if worked == 0:
            continue
        lines.append(
            PayrollLine(
                staff_id=member.id,
                name=member.name,
                minutes=worked,
                pay=worked * member.hourly_wage // 60,
            )
        )
    return lines
