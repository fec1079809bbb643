"""
Tests for the ticket book and its SQLite persistence.

Covers numbering across deletions, the active ticket, and that settle, split
and transfer survive a reload from disk.
"""

from __future__ import annotations

from datetime import datetime

import pytest
from conftest import make_line

from nightpos.errors import TicketClosedError, TicketNotFoundError, ValidationError
from nightpos.models import PricingConfig, PricingMode, Rounding, TicketStatus
from nightpos.persistence import (
    SqliteSettingsRepository,
    SqliteTicketRepository,
    load_pricing_config,
)
from nightpos.tickets import LAST_TICKET_ID_KEY, TicketBook

OPENED = datetime(2025, 1, 1, 20, 0)


@pytest.fixture
def book(db_path, config):
    book = TicketBook(SqliteTicketRepository(db_path), SqliteSettingsRepository(db_path), config)
    book.load()
    return book


def reload(db_path, config=None):
    book = TicketBook(SqliteTicketRepository(db_path), SqliteSettingsRepository(db_path), config)
    book.load()
    return book


class TestNumbering:
    def test_new_ticket_becomes_active(self, book):
        ticket = book.new_ticket(now=OPENED)
        assert ticket.id == "T-20250101-001"
        assert book.active is ticket

    def test_deleted_number_is_not_reused(self, book, db_path):
        book.new_ticket(now=OPENED)
        second = book.new_ticket(now=OPENED)
        book.delete_ticket(second.id)

        assert book.new_ticket(now=OPENED).id == "T-20250101-003"
        assert SqliteSettingsRepository(db_path).get(LAST_TICKET_ID_KEY) == "T-20250101-003"

    def test_deleted_number_is_not_reused_after_reload(self, book, db_path):
        book.new_ticket(now=OPENED)
        second = book.new_ticket(now=OPENED)
        book.delete_ticket(second.id)

        assert reload(db_path).new_ticket(now=OPENED).id == "T-20250101-003"

    def test_without_settings_the_highest_live_number_wins(self, db_path):
        book = TicketBook(SqliteTicketRepository(db_path))
        book.new_ticket(now=OPENED)
        second = book.new_ticket(now=OPENED)
        book.delete_ticket(second.id)

        assert book.new_ticket(now=OPENED).id == "T-20250101-002"

    def test_numbering_restarts_each_day(self, book):
        book.new_ticket(now=OPENED)
        assert book.new_ticket(now=datetime(2025, 1, 2, 19, 0)).id == "T-20250102-001"


class TestActiveTicket:
    def test_load_picks_first_open_ticket(self, book, db_path):
        first = book.new_ticket(now=OPENED)
        book.new_ticket(now=OPENED)

        assert reload(db_path).active_ticket_id == first.id

    def test_delete_active_falls_back_to_last_open(self, book):
        first = book.new_ticket(now=OPENED)
        second = book.new_ticket(now=OPENED)
        third = book.new_ticket(now=OPENED)
        book.settle(first.id, now=OPENED)

        book.delete_ticket(third.id)
        assert book.active_ticket_id == second.id

    def test_operations_without_active_ticket(self, book):
        with pytest.raises(TicketNotFoundError):
            book.add_line(make_line())
        with pytest.raises(TicketNotFoundError):
            book.get("T-20250101-404")

    def test_paid_ticket_cannot_be_deleted(self, book):
        ticket = book.new_ticket(now=OPENED)
        book.settle(now=OPENED)
        with pytest.raises(TicketClosedError):
            book.delete_ticket(ticket.id)


class TestPersistence:
    def test_lines_round_trip_in_order(self, book, db_path):
        book.new_ticket(now=OPENED, customer_name="佐藤", seat="B-2")
        book.add_line(make_line("a", unit_price=6000))
        book.add_line(make_line("b", unit_price=3000, pricing_mode="perUnit", unit_minutes=30))
        book.change_quantity("a", 1)

        ticket = reload(db_path).tickets[0]
        assert [line.id for line in ticket.lines] == ["a", "b"]
        assert ticket.lines[0].quantity == 2
        assert ticket.lines[1].pricing_mode is PricingMode.PER_UNIT
        assert ticket.lines[1].unit_minutes == 30
        assert (ticket.customer_name, ticket.seat) == ("佐藤", "B-2")

    def test_settle_is_persisted_with_snapshot(self, book, db_path):
        book.new_ticket(now=OPENED)
        book.add_line(make_line(unit_price=6000))
        assert book.settle(payment_method="card", now=datetime(2025, 1, 1, 22, 0)) is True
        assert book.settle(now=datetime(2025, 1, 1, 23, 0)) is False

        ticket = reload(db_path).tickets[0]
        assert ticket.status is TicketStatus.PAID
        assert ticket.payment_method == "card"
        assert ticket.closed_at == datetime(2025, 1, 1, 22, 0)
        assert ticket.settled_totals.total == 7900
        assert ticket.settled_totals.elapsed_minutes == 120

    def test_split_is_persisted(self, book, db_path):
        source = book.new_ticket(now=OPENED)
        book.add_line(make_line(unit_price=6000))

        targets = book.split_equally(3, now=OPENED)

        assert [ticket.id for ticket in targets] == ["T-20250101-002", "T-20250101-003"]
        assert book.active is source
        stored = reload(db_path)
        amounts = [stored.totals(ticket.id).total for ticket in stored.tickets]
        assert amounts == [2634, 2633, 2633]
        assert stored.new_ticket(now=OPENED).id == "T-20250101-004"

    def test_split_reuses_requested_tickets(self, book):
        source = book.new_ticket(now=OPENED)
        book.add_line(make_line(unit_price=6000))
        spare = book.new_ticket(now=OPENED)

        targets = book.split_equally(2, ticket_id=source.id, reuse_ids=[spare.id], now=OPENED)

        assert targets == [spare]
        assert len(book.tickets) == 2

    def test_split_rejects_repeated_reuse_ids(self, db_path, flat_config):
        book = TicketBook(SqliteTicketRepository(db_path), SqliteSettingsRepository(db_path), flat_config)
        source = book.new_ticket(now=OPENED)
        book.add_line(make_line(unit_price=9000))
        spare = book.new_ticket(now=OPENED)

        with pytest.raises(ValidationError):
            book.split_equally(3, ticket_id=source.id, reuse_ids=[spare.id, spare.id], now=OPENED)

        stored = reload(db_path, flat_config)
        assert stored.totals(source.id).total == 9000
        assert stored.get(spare.id).lines == []
        assert len(stored.tickets) == 2

    def test_transfer_is_persisted(self, book, db_path):
        source = book.new_ticket(now=OPENED)
        target = book.new_ticket(now=OPENED)
        book.add_line(make_line("a"), ticket_id=source.id)
        book.add_line(make_line("b", unit_price=900), ticket_id=source.id)

        book.transfer_last_line(target.id, ticket_id=source.id)

        stored = reload(db_path)
        assert [line.id for line in stored.get(source.id).lines] == ["a"]
        assert [line.id for line in stored.get(target.id).lines] == ["b"]
        assert stored.get(target.id).lines[0].unit_price == 900

    def test_deleted_ticket_and_lines_are_gone(self, book, db_path):
        ticket = book.new_ticket(now=OPENED)
        book.add_line(make_line())
        book.delete_ticket(ticket.id)

        assert reload(db_path).tickets == []

    def test_set_config_is_saved(self, book, db_path):
        edited = PricingConfig(service_fee_rate=0.25, tax_rate=0.08, rounding=Rounding(method="floor", unit=10))
        book.set_config(edited)

        assert load_pricing_config(SqliteSettingsRepository(db_path)) == edited

    def test_config_change_keeps_paid_snapshot(self, book):
        book.new_ticket(now=OPENED)
        book.add_line(make_line(unit_price=6000))
        book.settle(now=OPENED)

        book.set_config(PricingConfig(service_fee_rate=0, tax_rate=0))
        assert book.totals().total == 7900


def test_missing_pricing_config_falls_back_to_defaults(db_path):
    assert load_pricing_config(SqliteSettingsRepository(db_path)) == PricingConfig()
