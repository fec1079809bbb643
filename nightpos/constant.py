"""Editable seed data for the menu, staff roster and store settings."""

from __future__ import annotations

# Same camelCase shape the menu JSON editor imports and exports.
DEFAULT_MENU: list[dict[str, object]] = [
    {
        "id": "set60",
        "code": "SET60",
        "name": "セット60分",
        "category": "時間",
        "price": 3000,
        "unit": "minute",
        "unitValue": 60,
        "pricing": "perUnit",
        "serviceable": True,
        "taxable": True,
        "active": True,
    },
    {
        "id": "set_regular_60",
        "code": "REG60",
        "name": "レギュラー60",
        "category": "set",
        "price": 6000,
        "unit": "item",
        "unitValue": 1,
        "pricing": "fixed",
        "serviceable": True,
        "taxable": True,
        "active": True,
    },
    {
        "id": "drink_beer",
        "code": "BEER",
        "name": "生ビール",
        "category": "drink",
        "price": 800,
        "unit": "item",
        "unitValue": 1,
        "pricing": "fixed",
        "serviceable": True,
        "taxable": True,
        "active": True,
    },
    {
        "id": "drink_shochu",
        "code": "SHOCHU",
        "name": "芋焼酎(ロック)",
        "category": "drink",
        "price": 900,
        "unit": "item",
        "unitValue": 1,
        "pricing": "fixed",
        "serviceable": True,
        "taxable": True,
        "active": True,
    },
    {
        "id": "shot",
        "code": "SHOT",
        "name": "ショット",
        "category": "drink",
        "price": 1200,
        "unit": "item",
        "unitValue": 1,
        "pricing": "fixed",
        "serviceable": True,
        "taxable": True,
        "active": True,
    },
    {
        "id": "bottle",
        "code": "BOTTLE",
        "name": "ボトル",
        "category": "bottle",
        "price": 15000,
        "unit": "item",
        "unitValue": 1,
        "pricing": "fixed",
        "serviceable": True,
        "taxable": True,
        "active": True,
    },
    {
        "id": "nomination_one",
        "code": "NOMINATION",
        "name": "本指名",
        "category": "nomination",
        "price": 3000,
        "unit": "item",
        "unitValue": 1,
        "pricing": "fixed",
        "serviceable": False,
        "taxable": True,
        "active": True,
    },
]

DEFAULT_STAFF: list[dict[str, object]] = [
    {"id": "s001", "code": "S001", "name": "アヤ", "role": "cast", "active": True, "hourlyWage": 3000},
    {"id": "s002", "code": "S002", "name": "ミナ", "role": "cast", "active": True, "hourlyWage": 3000},
    {"id": "s101", "code": "S101", "name": "店長", "role": "staff", "active": True, "hourlyWage": 1500},
]

DEFAULT_STORE_SETTINGS: dict[str, str] = {
    "store_name": "Club Night+",
    "currency": "JPY",
    "receipt_footer": "ご来店ありがとうございました。",
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "JPY": "¥",
    "USD": "$",
    "EUR": "€",
}

PAYMENT_METHOD_LABELS: dict[str, str] = {
    "cash": "現金",
    "card": "カード",
    "invoice": "売掛",
}
