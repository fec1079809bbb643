"""Tests for date-scoped ticket numbering."""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace

from nightpos.sequencer import date_stamp, next_ticket_id, sequence_number, ticket_prefix

NEW_YEAR = date(2025, 1, 1)


def tickets(*ids):
    return [SimpleNamespace(id=ticket_id) for ticket_id in ids]


class TestNextTicketId:
    def test_first_ticket_of_the_day(self):
        assert next_ticket_id([], today=NEW_YEAR) == "T-20250101-001"

    def test_continues_after_highest_number(self):
        existing = tickets("T-20250101-001", "T-20250101-007")
        assert next_ticket_id(existing, today=NEW_YEAR) == "T-20250101-008"

    def test_order_of_existing_tickets_does_not_matter(self):
        existing = tickets("T-20250101-007", "T-20250101-002", "T-20250101-005")
        assert next_ticket_id(existing, today=NEW_YEAR) == "T-20250101-008"

    def test_other_days_are_ignored(self):
        existing = tickets("T-19990101-999", "T-20241231-042")
        assert next_ticket_id(existing, today=NEW_YEAR) == "T-20250101-001"

    def test_malformed_ids_are_skipped(self):
        existing = [
            *tickets("T-20250101-abc", "X-20250101-050", "T-20250101-", None, 42),
            SimpleNamespace(name="no id"),
            object(),
        ]
        assert next_ticket_id(existing, today=NEW_YEAR) == "T-20250101-001"

    def test_suffix_is_read_up_to_first_non_digit(self):
        assert next_ticket_id(tickets("T-20250101-012x"), today=NEW_YEAR) == "T-20250101-013"

    def test_plain_string_ids_are_accepted(self):
        assert next_ticket_id(["T-20250101-003"], today=NEW_YEAR) == "T-20250101-004"

    def test_more_than_999_tickets_grows_the_suffix(self):
        assert next_ticket_id(tickets("T-20250101-999"), today=NEW_YEAR) == "T-20250101-1000"
        assert next_ticket_id(tickets("T-20250101-1000"), today=NEW_YEAR) == "T-20250101-1001"

    def test_none_is_treated_as_no_tickets(self):
        assert next_ticket_id(None, today=NEW_YEAR) == "T-20250101-001"

    def test_defaults_to_local_today(self):
        assert next_ticket_id([]) == f"T-{date.today():%Y%m%d}-001"


def test_date_stamp_and_prefix():
    assert date_stamp(date(2025, 3, 9)) == "20250309"
    assert ticket_prefix(date(2025, 3, 9)) == "T-20250309-"


def test_sequence_number():
    assert sequence_number("T-20250101-007", "T-20250101-") == 7
    assert sequence_number("T-20250102-007", "T-20250101-") is None
    assert sequence_number("T-20250101-x1", "T-20250101-") is None
