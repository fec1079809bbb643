"""Runtime configuration defaults for pricing, persistence and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("NIGHTPOS_DB_PATH", "").strip() or "data/nightpos.db"
DEBUG_LOG_PATH = "/tmp/nightpos-debug.log"

# Venue defaults. Staff edits are persisted and passed around as PricingConfig.
SERVICE_FEE_RATE = 0.20
TAX_RATE = 0.10
ROUNDING_LEVEL = "ticket"
ROUNDING_METHOD = "round"
ROUNDING_UNIT = 100

DEFAULT_UNIT_MINUTES = 60
SPLIT_MIN_PARTS = 2
SPLIT_MAX_PARTS = 20

PAYMENT_METHODS: tuple[str, ...] = ("cash", "card", "invoice")
DEFAULT_PAYMENT_METHOD = "cash"

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 28
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_FONT_ENV = "NIGHTPOS_PRINTER_FONT_PATH"
PRINTER_LEFT_INDENT_PX = 16
PRINTER_TAIL_SPACER_PX = 70
