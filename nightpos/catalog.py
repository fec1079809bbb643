"""Menu catalog: editing, filtering and JSON import/export."""

from __future__ import annotations

import json
from typing import Iterable

from nightpos.constant import DEFAULT_MENU
from nightpos.debug_log import log_debug
from nightpos.errors import CatalogImportError
from nightpos.models import MenuItem, is_plain_int

ALL_CATEGORIES = "all"
UNITS = ("item", "minute")
PRICING_MODES = ("fixed", "perUnit")


def _bool(raw: dict, key: str, default: bool = True) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


def _flag(raw: dict, flag_key: str, rate_key: str) -> bool:
    # Older exports carry percentage rates instead of flags; any non-zero rate means "applies".
    if flag_key in raw:
        return _bool(raw, flag_key)
    if rate_key in raw:
        rate = raw[rate_key]
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            raise ValueError(f"{rate_key} must be a number")
        return rate > 0
    return True


def _whole_number(raw: dict, key: str, default: int | None = None) -> int:
    value = raw.get(key, default)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not is_plain_int(value) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def menu_item_from_dict(raw: dict) -> MenuItem:
    """Build a MenuItem from the camelCase shape used by the JSON editor."""
    if not isinstance(raw, dict):
        raise ValueError(f"menu entries must be objects, got {type(raw).__name__}")
    item_id = raw.get("id")
    name = raw.get("name")
    if not isinstance(item_id, str) or not item_id.strip():
        raise ValueError("id is required")
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"{item_id}: name is required")

    unit = raw.get("unit", "item")
    if unit not in UNITS:
        raise ValueError(f"{item_id}: unit must be one of {', '.join(UNITS)}")
    pricing = raw.get("pricing", "fixed")
    if pricing not in PRICING_MODES:
        raise ValueError(f"{item_id}: pricing must be one of {', '.join(PRICING_MODES)}")

    return MenuItem(
        id=item_id,
        code=str(raw.get("code") or item_id),
        name=name,
        category=str(raw.get("category") or "other"),
        price=_whole_number(raw, "price"),
        unit=unit,
        unit_value=_whole_number(raw, "unitValue", 1),
        pricing=pricing,
        serviceable=_flag(raw, "serviceable", "serviceRate"),
        taxable=_flag(raw, "taxable", "taxRate"),
        active=_bool(raw, "active"),
    )


def menu_item_to_dict(item: MenuItem) -> dict[str, object]:
    return {
        "id": item.id,
        "code": item.code,
        "name": item.name,
        "category": item.category,
        "price": item.price,
        "unit": item.unit,
        "unitValue": item.unit_value,
        "pricing": item.pricing,
        "serviceable": item.serviceable,
        "taxable": item.taxable,
        "active": item.active,
    }


def default_menu() -> list[MenuItem]:
    return [menu_item_from_dict(raw) for raw in DEFAULT_MENU]


def parse_menu_json(text: str) -> list[MenuItem]:
    """Parse a full catalog from JSON text, raising CatalogImportError on any problem."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogImportError(f"JSON error: {exc.msg} (line {exc.lineno}, column {exc.colno})") from exc
    if not isinstance(payload, list):
        raise CatalogImportError("JSON error: the menu must be an array of items")

    items: list[MenuItem] = []
    seen: set[str] = set()
    for index, raw in enumerate(payload):
        try:
            item = menu_item_from_dict(raw)
        except ValueError as exc:
            raise CatalogImportError(f"menu item #{index + 1}: {exc}") from exc
        if item.id in seen:
            raise CatalogImportError(f"menu item #{index + 1}: duplicate id {item.id!r}")
        seen.add(item.id)
        items.append(item)
    return items


class MenuCatalog:
    """In-memory menu master. Order entry treats it as read-only input."""

    def __init__(self, items: Iterable[MenuItem] | None = None) -> None:
        self.items: list[MenuItem] = list(items) if items is not None else default_menu()

    def get(self, item_id: str) -> MenuItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise KeyError(item_id)

    def active_items(self) -> list[MenuItem]:
        return [item for item in self.items if item.active]

    def categories(self) -> list[str]:
        """Filter options: "all" followed by categories in first-seen order."""
        seen: list[str] = []
        for item in self.items:
            if item.category not in seen:
                seen.append(item.category)
        return [ALL_CATEGORIES, *seen]

    def filter(self, category: str = ALL_CATEGORIES) -> list[MenuItem]:
        if category == ALL_CATEGORIES:
            return list(self.items)
        return [item for item in self.items if item.category == category]

    def upsert(self, item: MenuItem) -> MenuItem:
        for idx, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[idx] = item
                return item
        self.items.append(item)
        return item

    def remove(self, item_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.id != item_id]
        return len(self.items) < before

    def reset(self) -> None:
        self.items = default_menu()

    def to_json(self) -> str:
        return json.dumps([menu_item_to_dict(item) for item in self.items], ensure_ascii=False, indent=2)

    def import_json(self, text: str) -> list[MenuItem]:
        """Replace the catalog from JSON. On failure the catalog is left as it was."""
        try:
            items = parse_menu_json(text)
        except CatalogImportError as exc:
            log_debug(f"menu_import_failed error={exc}")
            raise
        self.items = items
        log_debug(f"menu_import items={len(items)}")
        return items
