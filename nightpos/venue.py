"""Startup wiring: repositories, venue settings and the ticket book in one place."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from nightpos import attendance
from nightpos.catalog import MenuCatalog, default_menu, parse_menu_json
from nightpos.config import DB_PATH
from nightpos.constant import DEFAULT_STORE_SETTINGS
from nightpos.debug_log import log_debug
from nightpos.errors import CatalogImportError
from nightpos.models import AttendanceRecord, MenuItem, Staff, StoreSettings
from nightpos.persistence import (
    SqliteAttendanceRepository,
    SqliteMenuRepository,
    SqliteSettingsRepository,
    SqliteStaffRepository,
    SqliteTicketRepository,
    load_pricing_config,
    load_store_settings,
    save_store_settings,
)
from nightpos.tickets import TicketBook


@dataclass
class Venue:
    """Everything staff work with during one business session."""

    book: TicketBook
    catalog: MenuCatalog
    staff: list[Staff]
    shifts: list[AttendanceRecord]
    store: StoreSettings
    menu_repository: SqliteMenuRepository
    staff_repository: SqliteStaffRepository
    attendance_repository: SqliteAttendanceRepository
    settings_repository: SqliteSettingsRepository

    def import_menu(self, text: str) -> list[MenuItem]:
        """Apply menu JSON; on error nothing in memory or on disk changes."""
        try:
            items = parse_menu_json(text)
        except CatalogImportError as exc:
            log_debug(f"menu_import_failed error={exc}")
            raise
        self.menu_repository.replace_all(items)
        self.catalog.items = items
        log_debug(f"menu_import items={len(items)}")
        return items

    def save_menu_item(self, item: MenuItem) -> MenuItem:
        self.menu_repository.save(item)
        self.catalog.upsert(item)
        return item

    def remove_menu_item(self, item_id: str) -> bool:
        if all(item.id != item_id for item in self.catalog.items):
            return False
        self.menu_repository.delete(item_id)
        return self.catalog.remove(item_id)

    def add_staff(self, name: str = "新規", role: str = "cast", hourly_wage: int = 0) -> Staff:
        member = attendance.new_staff(self.staff, name=name, role=role, hourly_wage=hourly_wage)
        self.staff_repository.save(member)
        self.staff.append(member)
        return member

    def clock_in(self, staff_id: str, now: datetime | None = None) -> AttendanceRecord:
        record = attendance.clock_in(self.shifts, staff_id, now)
        self.attendance_repository.save(record)
        log_debug(f"clock_in staff={staff_id} record={record.id}")
        return record

    def clock_out(self, staff_id: str, now: datetime | None = None) -> AttendanceRecord:
        record = attendance.clock_out(self.shifts, staff_id, now)
        self.attendance_repository.save(record)
        log_debug(f"clock_out staff={staff_id} record={record.id}")
        return record

    def update_store(self, store: StoreSettings) -> None:
        self.store = store
        save_store_settings(self.settings_repository, store)


def open_venue(db_path: str | Path = DB_PATH) -> Venue:
    """Load persisted state, seeding the default menu and staff on first run."""
    settings = SqliteSettingsRepository(db_path)
    menu_repository = SqliteMenuRepository(db_path)
    staff_repository = SqliteStaffRepository(db_path)
    attendance_repository = SqliteAttendanceRepository(db_path)

    items = menu_repository.load()
    if not items:
        items = default_menu()
        menu_repository.replace_all(items)

    staff = staff_repository.load()
    if not staff:
        staff = attendance.default_staff()
        for member in staff:
            staff_repository.save(member)

    book = TicketBook(SqliteTicketRepository(db_path), settings, load_pricing_config(settings))
    book.load()

    venue = Venue(
        book=book,
        catalog=MenuCatalog(items),
        staff=staff,
        shifts=attendance_repository.load(),
        store=load_store_settings(settings, DEFAULT_STORE_SETTINGS),
        menu_repository=menu_repository,
        staff_repository=staff_repository,
        attendance_repository=attendance_repository,
        settings_repository=settings,
    )
    log_debug(f"open_venue db={db_path} menu={len(items)} staff={len(staff)} tickets={len(book.tickets)}")
    return venue
