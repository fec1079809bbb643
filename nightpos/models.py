"""Domain models for nightpos."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum

from nightpos.config import (
    DEFAULT_PAYMENT_METHOD,
    DEFAULT_UNIT_MINUTES,
    ROUNDING_LEVEL,
    ROUNDING_METHOD,
    ROUNDING_UNIT,
    SERVICE_FEE_RATE,
    TAX_RATE,
)
from nightpos.errors import ConfigError, LineValidationError


class PricingMode(str, Enum):
    FIXED = "fixed"
    PER_UNIT = "perUnit"
    # Pre-settled amount produced by an equal split; never charged fee, tax or rounding.
    SPLIT = "split"


class TicketStatus(str, Enum):
    OPEN = "open"
    PAID = "paid"


class RoundingLevel(str, Enum):
    TICKET = "ticket"
    LINE = "line"


class RoundingMethod(str, Enum):
    ROUND = "round"
    CEIL = "ceil"
    FLOOR = "floor"


def is_plain_int(value: object) -> bool:
    """True for ints that are not bools."""
    return isinstance(value, int) and not isinstance(value, bool)


def _is_rate(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 1


@dataclass
class MenuLine:
    """One order line on a ticket, copied from a catalog item."""

    id: str
    name: str
    unit_price: int
    quantity: int = 1
    serviceable: bool = True
    taxable: bool = True
    pricing_mode: PricingMode = PricingMode.FIXED
    unit_minutes: int = DEFAULT_UNIT_MINUTES
    menu_id: str | None = None
    category: str | None = None

    def __post_init__(self) -> None:
        try:
            self.pricing_mode = PricingMode(self.pricing_mode)
        except ValueError as exc:
            raise LineValidationError(f"line {self.id!r}: unknown pricing mode {self.pricing_mode!r}") from exc
        self.validate()

    def validate(self) -> None:
        """Reject prices and quantities the pricing engine cannot bill."""
        if not is_plain_int(self.unit_price) or self.unit_price < 0:
            raise LineValidationError(
                f"line {self.id!r}: unit_price must be a non-negative integer, got {self.unit_price!r}"
            )
        if not is_plain_int(self.quantity) or self.quantity < 1:
            raise LineValidationError(f"line {self.id!r}: quantity must be an integer >= 1, got {self.quantity!r}")
        if not is_plain_int(self.unit_minutes) or self.unit_minutes < 1:
            raise LineValidationError(
                f"line {self.id!r}: unit_minutes must be an integer >= 1, got {self.unit_minutes!r}"
            )


@dataclass(frozen=True)
class Rounding:
    """Rounding policy applied to the ticket total or to every line."""

    level: RoundingLevel = RoundingLevel(ROUNDING_LEVEL)
    method: RoundingMethod = RoundingMethod(ROUNDING_METHOD)
    unit: int = ROUNDING_UNIT

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "level", RoundingLevel(self.level))
            object.__setattr__(self, "method", RoundingMethod(self.method))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        if not is_plain_int(self.unit) or self.unit < 1:
            raise ConfigError(f"rounding unit must be a positive integer, got {self.unit!r}")


@dataclass(frozen=True)
class PricingConfig:
    """Venue-wide rates. Passed explicitly into every pricing call."""

    service_fee_rate: float = SERVICE_FEE_RATE
    tax_rate: float = TAX_RATE
    rounding: Rounding = field(default_factory=Rounding)

    def __post_init__(self) -> None:
        if not _is_rate(self.service_fee_rate):
            raise ConfigError(f"service_fee_rate must be within [0, 1], got {self.service_fee_rate!r}")
        if not _is_rate(self.tax_rate):
            raise ConfigError(f"tax_rate must be within [0, 1], got {self.tax_rate!r}")

    def to_record(self) -> dict[str, object]:
        return {
            "service_fee_rate": self.service_fee_rate,
            "tax_rate": self.tax_rate,
            "rounding": {
                "level": self.rounding.level.value,
                "method": self.rounding.method.value,
                "unit": self.rounding.unit,
            },
        }

    @classmethod
    def from_record(cls, record: dict) -> PricingConfig:
        rounding = record.get("rounding") or {}
        return cls(
            service_fee_rate=record.get("service_fee_rate", SERVICE_FEE_RATE),
            tax_rate=record.get("tax_rate", TAX_RATE),
            rounding=Rounding(
                level=rounding.get("level", ROUNDING_LEVEL),
                method=rounding.get("method", ROUNDING_METHOD),
                unit=rounding.get("unit", ROUNDING_UNIT),
            ),
        )


@dataclass(frozen=True)
class Totals:
    """Computed amounts for one ticket."""

    subtotal: int = 0
    service_fee: int = 0
    tax: int = 0
    total: int = 0
    elapsed_minutes: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class Ticket:
    """One customer tab from opening to settlement."""

    id: str
    opened_at: datetime
    lines: list[MenuLine] = field(default_factory=list)
    closed_at: datetime | None = None
    status: TicketStatus = TicketStatus.OPEN
    payment_method: str = DEFAULT_PAYMENT_METHOD
    seat: str = ""
    customer_name: str = ""
    is_new_guest: bool = False
    customer_memo: str = ""
    staff_id: str | None = None
    discount: int = 0
    memo: str = ""
    settled_totals: Totals | None = None

    def __post_init__(self) -> None:
        self.status = TicketStatus(self.status)

    @property
    def is_paid(self) -> bool:
        return self.status is TicketStatus.PAID

    @property
    def business_date(self) -> date:
        return self.opened_at.date()


@dataclass(frozen=True)
class MenuItem:
    """A catalog entry that order lines are created from."""

    id: str
    code: str
    name: str
    category: str
    price: int
    unit: str = "item"
    unit_value: int = 1
    pricing: str = "fixed"
    serviceable: bool = True
    taxable: bool = True
    active: bool = True


@dataclass(frozen=True)
class Staff:
    """A cast member or floor staff."""

    id: str
    code: str
    name: str
    role: str = "cast"
    active: bool = True
    hourly_wage: int = 0


@dataclass
class AttendanceRecord:
    """A single clock-in, closed by a later clock-out."""

    id: str
    staff_id: str
    clock_in: datetime
    clock_out: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None


@dataclass(frozen=True)
class StoreSettings:
    store_name: str
    currency: str
    receipt_footer: str
