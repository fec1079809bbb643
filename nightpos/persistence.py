"""SQLite repositories for tickets, catalog, staff, attendance and settings."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol, TypeVar

from nightpos.config import DB_PATH
from nightpos.debug_log import log_debug
from nightpos.models import (
    AttendanceRecord,
    MenuItem,
    MenuLine,
    PricingConfig,
    Staff,
    StoreSettings,
    Ticket,
    Totals,
)

T = TypeVar("T")

PRICING_CONFIG_KEY = "pricing"
STORE_SETTINGS_KEY = "store"


class Repository(Protocol[T]):
    """Get-all / put storage for one logical collection."""

    def load(self) -> list[T]: ...

    def save(self, entity: T) -> None: ...

    def delete(self, entity_id: str) -> None: ...


class TicketRepository(Repository[Ticket], Protocol):
    pass


class SettingsRepository(Protocol):
    def get(self, key: str, default: object = None) -> object: ...

    def put(self, key: str, value: object) -> None: ...


def _connect(db_path: str | Path) -> sqlite3.Connection:
    db_file = Path(db_path)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def bootstrap_schema(db_path: str | Path = DB_PATH) -> None:
    """Create persistence schema if it does not already exist."""
    with _connect(db_path) as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS tickets (
                id TEXT PRIMARY KEY,
                opened_at TEXT NOT NULL,
                closed_at TEXT,
                status TEXT NOT NULL,
                payment_method TEXT NOT NULL,
                seat TEXT NOT NULL DEFAULT '',
                customer_name TEXT NOT NULL DEFAULT '',
                is_new_guest INTEGER NOT NULL DEFAULT 0,
                customer_memo TEXT NOT NULL DEFAULT '',
                staff_id TEXT,
                discount INTEGER NOT NULL DEFAULT 0,
                memo TEXT NOT NULL DEFAULT '',
                subtotal INTEGER,
                service_fee INTEGER,
                tax INTEGER,
                total INTEGER,
                elapsed_minutes INTEGER
            );

            CREATE TABLE IF NOT EXISTS ticket_lines (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                ticket_id TEXT NOT NULL,
                line_index INTEGER NOT NULL,
                line_id TEXT NOT NULL,
                name TEXT NOT NULL,
                unit_price INTEGER NOT NULL,
                quantity INTEGER NOT NULL,
                serviceable INTEGER NOT NULL,
                taxable INTEGER NOT NULL,
                pricing_mode TEXT NOT NULL,
                unit_minutes INTEGER NOT NULL,
                menu_id TEXT,
                category TEXT,
                FOREIGN KEY(ticket_id) REFERENCES tickets(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS menu_items (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                code TEXT NOT NULL,
                name TEXT NOT NULL,
                category TEXT NOT NULL,
                price INTEGER NOT NULL,
                unit TEXT NOT NULL,
                unit_value INTEGER NOT NULL,
                pricing TEXT NOT NULL,
                serviceable INTEGER NOT NULL,
                taxable INTEGER NOT NULL,
                active INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS staff (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                code TEXT NOT NULL,
                name TEXT NOT NULL,
                role TEXT NOT NULL,
                active INTEGER NOT NULL,
                hourly_wage INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS attendance (
                id TEXT PRIMARY KEY,
                staff_id TEXT NOT NULL,
                clock_in TEXT NOT NULL,
                clock_out TEXT
            );

            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_ticket_lines_ticket_id_line
                ON ticket_lines(ticket_id, line_index);

            CREATE INDEX IF NOT EXISTS idx_attendance_staff_id
                ON attendance(staff_id);
            """
        )
    log_debug(f"bootstrap_schema db={db_path}")


class SqliteTicketRepository:
    """Tickets with their ordered lines. Paid tickets keep their totals snapshot."""

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = db_path
        bootstrap_schema(db_path)

    def load(self) -> list[Ticket]:
        with _connect(self.db_path) as conn:
            ticket_rows = conn.execute(
                """
                SELECT id, opened_at, closed_at, status, payment_method, seat, customer_name,
                       is_new_guest, customer_memo, staff_id, discount, memo,
                       subtotal, service_fee, tax, total, elapsed_minutes
                FROM tickets ORDER BY rowid
                """
            ).fetchall()
            line_rows = conn.execute(
                """
                SELECT ticket_id, line_id, name, unit_price, quantity, serviceable, taxable,
                       pricing_mode, unit_minutes, menu_id, category
                FROM ticket_lines ORDER BY ticket_id, line_index
                """
            ).fetchall()

        lines_by_ticket: dict[str, list[MenuLine]] = {}
        for row in line_rows:
            lines_by_ticket.setdefault(row[0], []).append(
                MenuLine(
                    id=row[1],
                    name=row[2],
                    unit_price=row[3],
                    quantity=row[4],
                    serviceable=bool(row[5]),
                    taxable=bool(row[6]),
                    pricing_mode=row[7],
                    unit_minutes=row[8],
                    menu_id=row[9],
                    category=row[10],
                )
            )

        tickets = []
        for row in ticket_rows:
            settled = None
            if row[15] is not None:
                settled = Totals(
                    subtotal=row[12],
                    service_fee=row[13],
                    tax=row[14],
                    total=row[15],
                    elapsed_minutes=row[16] or 0,
                )
            tickets.append(
                Ticket(
                    id=row[0],
                    opened_at=datetime.fromisoformat(row[1]),
                    closed_at=_parse_dt(row[2]),
                    status=row[3],
                    payment_method=row[4],
                    seat=row[5],
                    customer_name=row[6],
                    is_new_guest=bool(row[7]),
                    customer_memo=row[8],
                    staff_id=row[9],
                    discount=row[10],
                    memo=row[11],
                    settled_totals=settled,
                    lines=lines_by_ticket.get(row[0], []),
                )
            )
        return tickets

    def save(self, ticket: Ticket) -> None:
        totals = ticket.settled_totals
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO tickets (
                        id, opened_at, closed_at, status, payment_method, seat, customer_name,
                        is_new_guest, customer_memo, staff_id, discount, memo,
                        subtotal, service_fee, tax, total, elapsed_minutes
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        opened_at = excluded.opened_at,
                        closed_at = excluded.closed_at,
                        status = excluded.status,
                        payment_method = excluded.payment_method,
                        seat = excluded.seat,
                        customer_name = excluded.customer_name,
                        is_new_guest = excluded.is_new_guest,
                        customer_memo = excluded.customer_memo,
                        staff_id = excluded.staff_id,
                        discount = excluded.discount,
                        memo = excluded.memo,
                        subtotal = excluded.subtotal,
                        service_fee = excluded.service_fee,
                        tax = excluded.tax,
                        total = excluded.total,
                        elapsed_minutes = excluded.elapsed_minutes
                    """,
                    (
                        ticket.id,
                        ticket.opened_at.isoformat(),
                        _iso(ticket.closed_at),
                        ticket.status.value,
                        ticket.payment_method,
                        ticket.seat,
                        ticket.customer_name,
                        int(ticket.is_new_guest),
                        ticket.customer_memo,
                        ticket.staff_id,
                        ticket.discount,
                        ticket.memo,
                        totals.subtotal if totals else None,
                        totals.service_fee if totals else None,
                        totals.tax if totals else None,
                        totals.total if totals else None,
                        totals.elapsed_minutes if totals else None,
                    ),
                )
                conn.execute("DELETE FROM ticket_lines WHERE ticket_id = ?", (ticket.id,))
                for idx, line in enumerate(ticket.lines):
                    conn.execute(
                        """
                        INSERT INTO ticket_lines (
                            ticket_id, line_index, line_id, name, unit_price, quantity,
                            serviceable, taxable, pricing_mode, unit_minutes, menu_id, category
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            ticket.id,
                            idx,
                            line.id,
                            line.name,
                            line.unit_price,
                            line.quantity,
                            int(line.serviceable),
                            int(line.taxable),
                            line.pricing_mode.value,
                            line.unit_minutes,
                            line.menu_id,
                            line.category,
                        ),
                    )

    def delete(self, ticket_id: str) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute("DELETE FROM tickets WHERE id = ?", (ticket_id,))


class SqliteMenuRepository:
    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = db_path
        bootstrap_schema(db_path)

    def load(self) -> list[MenuItem]:
        with _connect(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT id, code, name, category, price, unit, unit_value, pricing,
                       serviceable, taxable, active
                FROM menu_items ORDER BY position
                """
            ).fetchall()
        return [
            MenuItem(
                id=row[0],
                code=row[1],
                name=row[2],
                category=row[3],
                price=row[4],
                unit=row[5],
                unit_value=row[6],
                pricing=row[7],
                serviceable=bool(row[8]),
                taxable=bool(row[9]),
                active=bool(row[10]),
            )
            for row in rows
        ]

    def _upsert(self, conn: sqlite3.Connection, item: MenuItem, position: int) -> None:
        conn.execute(
            """
            INSERT INTO menu_items (
                id, position, code, name, category, price, unit, unit_value, pricing,
                serviceable, taxable, active
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                code = excluded.code,
                name = excluded.name,
                category = excluded.category,
                price = excluded.price,
                unit = excluded.unit,
                unit_value = excluded.unit_value,
                pricing = excluded.pricing,
                serviceable = excluded.serviceable,
                taxable = excluded.taxable,
                active = excluded.active
            """,
            (
                item.id,
                position,
                item.code,
                item.name,
                item.category,
                item.price,
                item.unit,
                item.unit_value,
                item.pricing,
                int(item.serviceable),
                int(item.taxable),
                int(item.active),
            ),
        )

    def save(self, item: MenuItem) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                (position,) = conn.execute("SELECT COALESCE(MAX(position), -1) + 1 FROM menu_items").fetchone()
                self._upsert(conn, item, position)

    def replace_all(self, items: list[MenuItem]) -> None:
        """Swap the whole catalog in one transaction."""
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute("DELETE FROM menu_items")
                for position, item in enumerate(items):
                    self._upsert(conn, item, position)

    def delete(self, item_id: str) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute("DELETE FROM menu_items WHERE id = ?", (item_id,))


class SqliteStaffRepository:
    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = db_path
        bootstrap_schema(db_path)

    def load(self) -> list[Staff]:
        with _connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT id, code, name, role, active, hourly_wage FROM staff ORDER BY position"
            ).fetchall()
        return [
            Staff(id=row[0], code=row[1], name=row[2], role=row[3], active=bool(row[4]), hourly_wage=row[5])
            for row in rows
        ]

    def save(self, member: Staff) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                (position,) = conn.execute("SELECT COALESCE(MAX(position), -1) + 1 FROM staff").fetchone()
                conn.execute(
                    """
                    INSERT INTO staff (id, position, code, name, role, active, hourly_wage)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        code = excluded.code,
                        name = excluded.name,
                        role = excluded.role,
                        active = excluded.active,
                        hourly_wage = excluded.hourly_wage
                    """,
                    (
                        member.id,
                        position,
                        member.code,
                        member.name,
                        member.role,
                        int(member.active),
                        member.hourly_wage,
                    ),
                )

    def delete(self, staff_id: str) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute("DELETE FROM staff WHERE id = ?", (staff_id,))


class SqliteAttendanceRepository:
    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = db_path
        bootstrap_schema(db_path)

    def load(self) -> list[AttendanceRecord]:
        with _connect(self.db_path) as conn:
            rows = conn.execute("SELECT id, staff_id, clock_in, clock_out FROM attendance ORDER BY rowid DESC").fetchall()
        return [
            AttendanceRecord(
                id=row[0],
                staff_id=row[1],
                clock_in=datetime.fromisoformat(row[2]),
                clock_out=_parse_dt(row[3]),
            )
            for row in rows
        ]

    def save(self, record: AttendanceRecord) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO attendance (id, staff_id, clock_in, clock_out) VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET clock_out = excluded.clock_out
                    """,
                    (record.id, record.staff_id, record.clock_in.isoformat(), _iso(record.clock_out)),
                )

    def delete(self, record_id: str) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute("DELETE FROM attendance WHERE id = ?", (record_id,))


class SqliteSettingsRepository:
    """JSON values under string keys."""

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = db_path
        bootstrap_schema(db_path)

    def get(self, key: str, default: object = None) -> object:
        with _connect(self.db_path) as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        if row is None:
            return default
        return json.loads(row[0])

    def put(self, key: str, value: object) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO settings (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (key, json.dumps(value, ensure_ascii=False)),
                )


def load_pricing_config(settings: SettingsRepository) -> PricingConfig:
    """Saved venue rates, or the documented defaults when nothing is saved."""
    record = settings.get(PRICING_CONFIG_KEY)
    if not isinstance(record, dict):
        return PricingConfig()
    return PricingConfig.from_record(record)


def save_pricing_config(settings: SettingsRepository, config: PricingConfig) -> None:
    settings.put(PRICING_CONFIG_KEY, config.to_record())


def load_store_settings(settings: SettingsRepository, defaults: dict[str, str]) -> StoreSettings:
    record = settings.get(STORE_SETTINGS_KEY)
    merged = dict(defaults)
    if isinstance(record, dict):
        merged.update({key: str(value) for key, value in record.items() if key in defaults})
    return StoreSettings(**merged)


def save_store_settings(settings: SettingsRepository, store: StoreSettings) -> None:
    settings.put(
        STORE_SETTINGS_KEY,
        {"store_name": store.store_name, "currency": store.currency, "receipt_footer": store.receipt_footer},
    )
