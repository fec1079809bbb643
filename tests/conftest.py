from __future__ import annotations

from datetime import datetime

import pytest

from nightpos.debug_log import set_log_path
from nightpos.models import MenuLine, PricingConfig, Rounding


@pytest.fixture(autouse=True)
def _debug_log_in_tmp(tmp_path):
    set_log_path(tmp_path / "debug.log")


@pytest.fixture
def config() -> PricingConfig:
    """Venue defaults: 20% service, 10% tax, ticket total rounded to 100."""
    return PricingConfig()


@pytest.fixture
def flat_config() -> PricingConfig:
    """No fee, no tax, no rounding: totals equal the raw line amounts."""
    return PricingConfig(service_fee_rate=0, tax_rate=0, rounding=Rounding(unit=1))


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 1, 1, 21, 30)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "nightpos.db"


def make_line(line_id: str = "l1", unit_price: int = 6000, quantity: int = 1, **kwargs) -> MenuLine:
    return MenuLine(id=line_id, name=kwargs.pop("name", f"item {line_id}"), unit_price=unit_price, quantity=quantity, **kwargs)
