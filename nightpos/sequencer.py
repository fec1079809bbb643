"""Date-scoped ticket numbering (T-YYYYMMDD-NNN)."""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable

TICKET_ID_PREFIX = "T"
SEQUENCE_WIDTH = 3

_LEADING_DIGITS = re.compile(r"\d+")


def date_stamp(day: date | None = None) -> str:
    """8-digit local date stamp, today when ``day`` is omitted."""
    return (day or date.today()).strftime("%Y%m%d")


def ticket_prefix(day: date | None = None) -> str:
    return f"{TICKET_ID_PREFIX}-{date_stamp(day)}-"


def _ticket_id_of(entry: object) -> str | None:
    if isinstance(entry, str):
        return entry
    ticket_id = getattr(entry, "id", None)
    return ticket_id if isinstance(ticket_id, str) else None


def sequence_number(ticket_id: str, prefix: str) -> int | None:
    """Parse the sequence part of an id issued under ``prefix``.

    Ids from another day, or whose suffix does not start with digits,
    yield None.
    """
    if not ticket_id.startswith(prefix):
        return None
    match = _LEADING_DIGITS.match(ticket_id[len(prefix) :])
    if match is None:
        return None
    return int(match.group())


def next_ticket_id(existing_tickets: Iterable[object], today: date | None = None) -> str:
    """Next id for today given the tickets that currently exist.

    The counter is re-derived on every call, so a new day starts again at
    001 without any rollover state. Uniqueness only holds among the tickets
    passed in; see ``TicketBook`` for the persisted high-water mark.
    """
    prefix = ticket_prefix(today)
    highest = 0
    for entry in existing_tickets or ():
        ticket_id = _ticket_id_of(entry)
        if ticket_id is None:
            continue
        number = sequence_number(ticket_id, prefix)
        if number is not None:
            highest = max(highest, number)
    return f"{prefix}{str(highest + 1).zfill(SEQUENCE_WIDTH)}"
