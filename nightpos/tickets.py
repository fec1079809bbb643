"""Ticket lifecycle: order entry, settlement, equal split and line transfer."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence
from uuid import uuid4

from nightpos.config import DEFAULT_UNIT_MINUTES, PAYMENT_METHODS, SPLIT_MAX_PARTS, SPLIT_MIN_PARTS
from nightpos.debug_log import log_debug
from nightpos.errors import LineValidationError, TicketClosedError, TicketNotFoundError, ValidationError
from nightpos.models import MenuItem, MenuLine, PricingConfig, PricingMode, Ticket, TicketStatus, Totals, is_plain_int
from nightpos.persistence import SettingsRepository, TicketRepository, save_pricing_config
from nightpos.pricing import compute_totals, elapsed_minutes, ticket_totals
from nightpos.sequencer import next_ticket_id

LAST_TICKET_ID_KEY = "last_ticket_id"


def new_line_id() -> str:
    return uuid4().hex[:8]


def line_from_menu_item(item: MenuItem, quantity: int = 1, line_id: str | None = None) -> MenuLine:
    """Copy a catalog item into a new order line."""
    time_billed = item.pricing == "perUnit" and item.unit == "minute"
    return MenuLine(
        id=line_id or new_line_id(),
        name=item.name,
        unit_price=item.price,
        quantity=quantity,
        serviceable=item.serviceable,
        taxable=item.taxable,
        pricing_mode=PricingMode.PER_UNIT if time_billed else PricingMode.FIXED,
        unit_minutes=(item.unit_value or DEFAULT_UNIT_MINUTES) if time_billed else DEFAULT_UNIT_MINUTES,
        menu_id=item.id,
        category=item.category,
    )


def open_ticket(existing: Iterable[object], now: datetime | None = None, **details: object) -> Ticket:
    """Create an empty open ticket numbered after ``existing``."""
    now = now or datetime.now()
    return Ticket(id=next_ticket_id(existing, today=now.date()), opened_at=now, **details)


def _ensure_open(ticket: Ticket) -> None:
    if ticket.is_paid:
        raise TicketClosedError(f"ticket {ticket.id} is already paid")


def _find_line(ticket: Ticket, line_id: str) -> MenuLine:
    for line in ticket.lines:
        if line.id == line_id:
            return line
    raise ValidationError(f"ticket {ticket.id} has no line {line_id!r}")


def add_line(ticket: Ticket, line: MenuLine) -> MenuLine:
    _ensure_open(ticket)
    line.validate()
    if any(existing.id == line.id for existing in ticket.lines):
        raise ValidationError(f"ticket {ticket.id} already has a line {line.id!r}")
    ticket.lines.append(line)
    return line


def change_quantity(ticket: Ticket, line_id: str, delta: int) -> MenuLine:
    """Step a line's quantity up or down; it never drops below 1."""
    _ensure_open(ticket)
    line = _find_line(ticket, line_id)
    line.quantity = max(1, line.quantity + delta)
    return line


def set_quantity(ticket: Ticket, line_id: str, quantity: int) -> MenuLine:
    _ensure_open(ticket)
    if not is_plain_int(quantity) or quantity < 1:
        raise LineValidationError(f"line {line_id!r}: quantity must be an integer >= 1, got {quantity!r}")
    line = _find_line(ticket, line_id)
    line.quantity = quantity
    return line


def remove_line(ticket: Ticket, line_id: str) -> MenuLine:
    _ensure_open(ticket)
    line = _find_line(ticket, line_id)
    ticket.lines.remove(line)
    return line


def clear_lines(ticket: Ticket) -> None:
    _ensure_open(ticket)
    ticket.lines.clear()


def check_out(ticket: Ticket, now: datetime | None = None) -> None:
    """Record the guest's check-out time; time-billed lines are charged up to it."""
    _ensure_open(ticket)
    ticket.closed_at = now or datetime.now()


def needs_confirm_on_pay(customer_name: str | None) -> bool:
    """Settling without a guest name needs an explicit confirmation from staff."""
    return not (customer_name or "").strip()


def settle(
    ticket: Ticket,
    config: PricingConfig,
    payment_method: str | None = None,
    now: datetime | None = None,
) -> bool:
    """Mark a ticket paid and snapshot its totals.

    Returns False without touching anything when the ticket is already paid.
    A missing check-out is recorded as ``now``.
    """
    if ticket.is_paid:
        return False
    method = payment_method or ticket.payment_method
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"unknown payment method {method!r}; expected one of {', '.join(PAYMENT_METHODS)}")

    closed_at = ticket.closed_at or now or datetime.now()
    totals = compute_totals(ticket.lines, config, elapsed_minutes(ticket.opened_at, closed_at), ticket.discount)

    ticket.closed_at = closed_at
    ticket.payment_method = method
    ticket.settled_totals = totals
    ticket.status = TicketStatus.PAID
    return True


def split_line(amount: int, index: int, parts: int) -> MenuLine:
    return MenuLine(
        id=new_line_id(),
        name=f"Split {index}/{parts}",
        unit_price=amount,
        quantity=1,
        serviceable=False,
        taxable=False,
        pricing_mode=PricingMode.SPLIT,
    )


def equal_split(
    source: Ticket,
    parts: int,
    config: PricingConfig,
    others: Iterable[object] = (),
    reuse: Sequence[Ticket] = (),
    now: datetime | None = None,
) -> list[Ticket]:
    """Split ``source``'s total into ``parts`` equal tickets.

    The remainder stays on ``source``. Open tickets in ``reuse`` are taken
    first, each at most once; the rest are opened fresh and numbered after
    ``others``. Without a check-out, time-billed lines are priced up to
    ``now``. Returns the other tickets (reused and new) in split order.
    """
    if not is_plain_int(parts) or not (SPLIT_MIN_PARTS <= parts <= SPLIT_MAX_PARTS):
        raise ValidationError(f"parts must be between {SPLIT_MIN_PARTS} and {SPLIT_MAX_PARTS}, got {parts!r}")
    _ensure_open(source)
    reused = list(reuse)[: parts - 1]
    if len({ticket.id for ticket in reused}) != len(reused):
        raise ValidationError("each reused ticket can take only one share of a split")
    for ticket in reused:
        if ticket is source or ticket.id == source.id:
            raise ValidationError(f"ticket {source.id} cannot be split into itself")
        _ensure_open(ticket)

    # Time-billed lines are charged up to ``now`` before they are replaced.
    now = now or datetime.now()
    total = ticket_totals(source, config, now).total
    per, remainder = divmod(total, parts)

    known: list[object] = [*others, source, *reused]
    targets = list(reused)
    while len(targets) < parts - 1:
        ticket = open_ticket(known, now=now)
        known.append(ticket)
        targets.append(ticket)

    source.lines = [split_line(per + remainder, 1, parts)]
    source.discount = 0
    for index, ticket in enumerate(targets, start=2):
        ticket.lines = [split_line(per, index, parts)]
        ticket.discount = 0
    return targets


def transfer_last_line(source: Ticket, target: Ticket) -> MenuLine:
    """Move the most recently added line of ``source`` to ``target`` unchanged."""
    if source is target or source.id == target.id:
        raise ValidationError(f"ticket {source.id} cannot transfer to itself")
    _ensure_open(source)
    _ensure_open(target)
    if not source.lines:
        raise ValidationError(f"ticket {source.id} has no lines to transfer")
    line = source.lines[-1]
    if any(existing.id == line.id for existing in target.lines):
        raise ValidationError(f"ticket {target.id} already has a line {line.id!r}")
    source.lines.pop()
    target.lines.append(line)
    return line


class TicketBook:
    """The floor's tickets, with one active ticket, saved through a repository.

    When a settings repository is supplied the last issued id is persisted
    too, so a deleted ticket's number is never handed out again.
    """

    def __init__(
        self,
        repository: TicketRepository,
        settings: SettingsRepository | None = None,
        config: PricingConfig | None = None,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self.config = config or PricingConfig()
        self.tickets: list[Ticket] = []
        self.active_ticket_id: str | None = None

    def load(self) -> list[Ticket]:
        self.tickets = list(self.repository.load())
        open_tickets = [ticket for ticket in self.tickets if not ticket.is_paid]
        self.active_ticket_id = open_tickets[0].id if open_tickets else None
        log_debug(f"ticket_book_load tickets={len(self.tickets)} active={self.active_ticket_id!r}")
        return self.tickets

    @property
    def active(self) -> Ticket | None:
        if self.active_ticket_id is None:
            return None
        for ticket in self.tickets:
            if ticket.id == self.active_ticket_id:
                return ticket
        return None

    def get(self, ticket_id: str) -> Ticket:
        for ticket in self.tickets:
            if ticket.id == ticket_id:
                return ticket
        raise TicketNotFoundError(ticket_id)

    def activate(self, ticket_id: str) -> Ticket:
        ticket = self.get(ticket_id)
        self.active_ticket_id = ticket.id
        return ticket

    def _resolve(self, ticket_id: str | None) -> Ticket:
        if ticket_id is not None:
            return self.get(ticket_id)
        ticket = self.active
        if ticket is None:
            raise TicketNotFoundError("no active ticket")
        return ticket

    def _issued(self) -> list[object]:
        issued: list[object] = list(self.tickets)
        if self.settings is not None:
            last_issued = self.settings.get(LAST_TICKET_ID_KEY)
            if isinstance(last_issued, str):
                issued.append(last_issued)
        return issued

    def _remember_issued(self, ticket_id: str) -> None:
        if self.settings is not None:
            self.settings.put(LAST_TICKET_ID_KEY, ticket_id)

    def _save(self, *tickets: Ticket) -> None:
        for ticket in tickets:
            self.repository.save(ticket)

    def new_ticket(self, now: datetime | None = None, **details: object) -> Ticket:
        ticket = open_ticket(self._issued(), now=now, **details)
        self.tickets.append(ticket)
        self.active_ticket_id = ticket.id
        self._remember_issued(ticket.id)
        self._save(ticket)
        log_debug(f"new_ticket id={ticket.id}")
        return ticket

    def add_menu_item(self, item: MenuItem, quantity: int = 1, ticket_id: str | None = None) -> MenuLine:
        return self.add_line(line_from_menu_item(item, quantity), ticket_id)

    def add_line(self, line: MenuLine, ticket_id: str | None = None) -> MenuLine:
        ticket = self._resolve(ticket_id)
        add_line(ticket, line)
        self._save(ticket)
        log_debug(f"add_line ticket={ticket.id} line={line.id} name={line.name!r}")
        return line

    def change_quantity(self, line_id: str, delta: int, ticket_id: str | None = None) -> MenuLine:
        ticket = self._resolve(ticket_id)
        line = change_quantity(ticket, line_id, delta)
        self._save(ticket)
        return line

    def remove_line(self, line_id: str, ticket_id: str | None = None) -> MenuLine:
        ticket = self._resolve(ticket_id)
        line = remove_line(ticket, line_id)
        self._save(ticket)
        log_debug(f"remove_line ticket={ticket.id} line={line_id}")
        return line

    def clear(self, ticket_id: str | None = None) -> None:
        ticket = self._resolve(ticket_id)
        clear_lines(ticket)
        self._save(ticket)

    def check_out(self, ticket_id: str | None = None, now: datetime | None = None) -> Ticket:
        ticket = self._resolve(ticket_id)
        check_out(ticket, now)
        self._save(ticket)
        return ticket

    def delete_ticket(self, ticket_id: str) -> None:
        """Cancel an open ticket. Its number is not reused while settings are persisted."""
        ticket = self.get(ticket_id)
        _ensure_open(ticket)
        self.tickets.remove(ticket)
        self.repository.delete(ticket.id)
        if self.active_ticket_id == ticket.id:
            open_tickets = [t for t in self.tickets if not t.is_paid]
            self.active_ticket_id = open_tickets[-1].id if open_tickets else None
        log_debug(f"delete_ticket id={ticket_id}")

    def settle(
        self,
        ticket_id: str | None = None,
        payment_method: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        ticket = self._resolve(ticket_id)
        if not settle(ticket, self.config, payment_method, now):
            log_debug(f"settle_skipped id={ticket.id} reason=already_paid")
            return False
        self._save(ticket)
        log_debug(f"settle id={ticket.id} total={ticket.settled_totals.total} method={ticket.payment_method}")
        return True

    def split_equally(
        self,
        parts: int,
        ticket_id: str | None = None,
        reuse_ids: Sequence[str] = (),
        now: datetime | None = None,
    ) -> list[Ticket]:
        source = self._resolve(ticket_id)
        reuse = [self.get(reuse_id) for reuse_id in reuse_ids]
        known_ids = {ticket.id for ticket in self.tickets}
        targets = equal_split(source, parts, self.config, self._issued(), reuse, now)
        created = [ticket for ticket in targets if ticket.id not in known_ids]
        self.tickets.extend(created)
        if created:
            self._remember_issued(created[-1].id)
        self._save(source, *targets)
        log_debug(f"split id={source.id} parts={parts} targets={[ticket.id for ticket in targets]}")
        return targets

    def transfer_last_line(self, target_id: str, ticket_id: str | None = None) -> MenuLine:
        source = self._resolve(ticket_id)
        target = self.get(target_id)
        line = transfer_last_line(source, target)
        self._save(source, target)
        log_debug(f"transfer line={line.id} from={source.id} to={target.id}")
        return line

    def totals(self, ticket_id: str | None = None, now: datetime | None = None) -> Totals:
        return ticket_totals(self._resolve(ticket_id), self.config, now)

    def set_config(self, config: PricingConfig) -> None:
        """Swap in edited venue rates; settled tickets keep their snapshots."""
        self.config = config
        if self.settings is not None:
            save_pricing_config(self.settings, config)
