"""Thermal receipt printing over USB ESC/POS."""

from __future__ import annotations

import os
from pathlib import Path
from time import sleep

from nightpos.config import (
    PRINTER_FONT_ENV,
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from nightpos.constant import PAYMENT_METHOD_LABELS
from nightpos.models import PricingMode, StoreSettings, Ticket, Totals
from nightpos.rendering import format_yen

# Keep these grouped so thermal-print behavior can be tuned in one place.
_SECTION_SEPARATOR_HEIGHT_PX = 12
_SECTION_SEPARATOR_THICKNESS_PX = 3
_SECTION_SEPARATOR_STRIPE_HEIGHT_PX = 2
_SECTION_SEPARATOR_PAUSE_SECONDS = 0.1
_LINE_EXTRA_PX = 12
_SEPARATOR_TOKEN = "__SEP__"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
)


def _amount_row(label: str, amount: int, currency: str, width: int = 24) -> str:
    value = format_yen(amount, currency)
    return f"{label}{value.rjust(max(1, width - len(label)))}"


def receipt_lines(ticket: Ticket, totals: Totals, store: StoreSettings) -> list[str]:
    """Printable text rows for a ticket receipt, separators as tokens."""
    currency = store.currency
    lines = [store.store_name, ticket.id, ticket.opened_at.strftime("%Y-%m-%d %H:%M")]
    if ticket.customer_name:
        lines.append(f"{ticket.customer_name} 様")
    lines.append(_SEPARATOR_TOKEN)

    for line in ticket.lines:
        if line.pricing_mode is PricingMode.PER_UNIT:
            lines.append(line.name)
            lines.append(f"    {totals.elapsed_minutes}min @ {format_yen(line.unit_price, currency)}/{line.unit_minutes}min")
        elif line.quantity > 1:
            lines.append(f"{line.name} x{line.quantity}")
            lines.append(f"    {format_yen(line.unit_price * line.quantity, currency)}")
        else:
            lines.append(f"{line.name}  {format_yen(line.unit_price, currency)}")

    lines.append(_SEPARATOR_TOKEN)
    lines.append(_amount_row("Subtotal", totals.subtotal, currency))
    lines.append(_amount_row("Service", totals.service_fee, currency))
    lines.append(_amount_row("Tax", totals.tax, currency))
    if ticket.discount:
        lines.append(_amount_row("Discount", -ticket.discount, currency))
    lines.append(_amount_row("TOTAL", totals.total, currency))
    lines.append(PAYMENT_METHOD_LABELS.get(ticket.payment_method, ticket.payment_method))
    if store.receipt_footer:
        lines.append(_SEPARATOR_TOKEN)
        lines.append(store.receipt_footer)
    return lines


def resolve_printer_font_path() -> str:
    """
    Resolve a printer font path with macOS default behavior preserved.

    Resolution order:
    1. NIGHTPOS_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(PRINTER_FONT_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {PRINTER_FONT_ENV} to a valid .ttf/.otf/.ttc file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        font_path = resolve_printer_font_path()
        ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer deps unavailable: {exc}")
    return (True, "Printer ready")


def _fit_text_to_px(text: str, font: object, max_width_px: int) -> str:
    from PIL import Image, ImageDraw

    probe = Image.new("1", (1, 1), color=1)
    draw = ImageDraw.Draw(probe)
    if draw.textbbox((0, 0), text, font=font)[2] <= max_width_px:
        return text
    ellipsis = "..."
    trimmed = text
    while trimmed:
        candidate = f"{trimmed}{ellipsis}"
        if draw.textbbox((0, 0), candidate, font=font)[2] <= max_width_px:
            return candidate
        trimmed = trimmed[:-1]
    return ellipsis


def _render_line(text: str, font: object) -> object:
    from PIL import Image, ImageDraw

    canvas_height = PRINTER_FONT_SIZE + _LINE_EXTRA_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)

    safe_text = _fit_text_to_px(text, font, PRINTER_WIDTH_PX - (PRINTER_LEFT_INDENT_PX * 2))
    bbox = draw.textbbox((0, 0), safe_text, font=font)
    text_height = bbox[3] - bbox[1]

    x = PRINTER_LEFT_INDENT_PX
    # Offset by bbox top so descenders are not clipped.
    y = (canvas_height - text_height) // 2 - bbox[1]
    draw.text((x, y), safe_text, font=font, fill=0)
    return img


def _render_spacer(height_px: int) -> object:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def _render_section_separator() -> object:
    from PIL import Image, ImageDraw

    img = Image.new("1", (PRINTER_WIDTH_PX, _SECTION_SEPARATOR_HEIGHT_PX), color=1)
    draw = ImageDraw.Draw(img)
    top = max(0, (_SECTION_SEPARATOR_HEIGHT_PX - _SECTION_SEPARATOR_THICKNESS_PX) // 2)
    bottom = min(_SECTION_SEPARATOR_HEIGHT_PX - 1, top + _SECTION_SEPARATOR_THICKNESS_PX - 1)
    draw.rectangle((0, top, PRINTER_WIDTH_PX - 1, bottom), fill=0)
    return img


def _print_section_separator(printer: object) -> None:
    """
    Print the separator in short stripes with tiny pauses.

    This reduces instantaneous heat so the line stays crisp instead of
    bleeding into adjacent dots.
    """
    separator = _render_section_separator()
    for top in range(0, separator.height, _SECTION_SEPARATOR_STRIPE_HEIGHT_PX):
        bottom = min(separator.height, top + _SECTION_SEPARATOR_STRIPE_HEIGHT_PX)
        stripe = separator.crop((0, top, PRINTER_WIDTH_PX, bottom))
        printer.image(stripe)
        if bottom < separator.height:
            sleep(_SECTION_SEPARATOR_PAUSE_SECONDS)


def print_receipt(ticket: Ticket, totals: Totals, store: StoreSettings) -> None:
    """Print a ticket receipt and cut. Open tickets are marked NOT PAID."""
    try:
        from escpos.printer import Usb
        from PIL import ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    font = ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)

    if not ticket.is_paid:
        printer.image(_render_line("NOT PAID", font))

    for line in receipt_lines(ticket, totals, store):
        if line == _SEPARATOR_TOKEN:
            _print_section_separator(printer)
            continue
        printer.image(_render_line(line, font))

    # Extra tail for easier tearing.
    printer.image(_render_spacer(PRINTER_TAIL_SPACER_PX))
    printer.cut()
