# Overview: Service-layer operations for receipts; renders plain-text receipts for thermal printers.

"""
Receipt rendering.

LAYOUT (width = printer paper width, 80 without a printer):

    header lines centred (restaurant name, full address, "Tél: ...", website)
    ======== rule, blank line
    Facture / Date, blank line
    -------- rule, column header (Article 30 | Qté 10 | Prix 20 | Total 20), rule
    one line per item
    -------- rule, blank line
    totals (label padded to 50, value right-aligned in 30)
    footer message centred, blank line

CURRENCY VISIBILITY:
- FC columns and totals for payment modes FC and MIXED
- USD for USD and MIXED, and only for amounts > 0

Header values prefer the restaurant's customization and fall back to the
printer's restaurant_* fields. Postal code, city and country from the
customization are appended to whichever street line is used. Columns are
padded and cut to their width.
"""

from __future__ import annotations

from decimal import Decimal

from ..models import Printer, RestaurantCustomization, Sale
from ..models.printers import DEFAULT_PAPER_WIDTH
from ..models.sales import PAYMENT_FC, PAYMENT_MIXED, PAYMENT_USD
from .customization_service import get_customization
from .printer_service import get_default_printer
from .sales_service import get_sale, mark_printed
from restopos.currency import ZERO, format_fc, format_usd
from restopos.time_utils import format_receipt_datetime


DEFAULT_RESTAURANT_NAME = "Restaurant"
DEFAULT_FOOTER = "Merci de votre visite !"
ITEM_NAME_MAX = 28

COL_ARTICLE = 30
COL_QTY = 10
COL_PRICE = 20
COL_TOTAL = 20
TOTALS_LABEL = 50
TOTALS_VALUE = 30


def center(text: str, width: int) -> str:
    """Pad both sides to `width`: floor of the padding left, ceil right."""
    padding = width - len(text)
    if padding <= 0:
        return text
    left = padding // 2
    return " " * left + text + " " * (padding - left)


def pad_right(text: str, width: int) -> str:
    return text[:width].ljust(width)


def pad_left(text: str, width: int) -> str:
    return text[:width].rjust(width)


def _totals_line(label: str, value: str) -> str:
    return pad_right(label, TOTALS_LABEL) + pad_left(value, TOTALS_VALUE)


def _header_lines(sale: Sale, printer: Printer | None, customization: RestaurantCustomization | None, width: int) -> list[str]:
    restaurant = customization.restaurant if customization is not None else None

    name = (restaurant.name if restaurant else None) or (printer.restaurant_name if printer else None) or DEFAULT_RESTAURANT_NAME
    phone = (restaurant.phone if restaurant else None) or (printer.restaurant_phone if printer else None)
    website = customization.website if customization else None

    printer_address = printer.restaurant_address if printer is not None else None
    address = customization.full_address(printer_address) if customization else printer_address

    lines = [center(name, width)]
    if address:
        lines.append(center(address, width))
    if phone:
        lines.append(center(f"Tél: {phone}", width))
    if website:
        lines.append(center(website, width))
    lines.append("=" * width)
    lines.append("")
    return lines


def format_receipt(
    sale: Sale,
    printer: Printer | None = None,
    customization: RestaurantCustomization | None = None,
) -> str:
    width = printer.paper_width if printer is not None and printer.paper_width else DEFAULT_PAPER_WIDTH

    mode = sale.payment_mode or PAYMENT_FC
    show_fc = mode in (PAYMENT_FC, PAYMENT_MIXED)
    show_usd = mode in (PAYMENT_USD, PAYMENT_MIXED)

    lines = _header_lines(sale, printer, customization, width)

    lines.append(f"Facture: {sale.invoice_number}")
    lines.append(f"Date: {format_receipt_datetime(sale.created_at)}")
    lines.append("")

    lines.append("-" * width)
    lines.append(
        pad_right("Article", COL_ARTICLE)
        + pad_left("Qté", COL_QTY)
        + pad_left("Prix", COL_PRICE)
        + pad_left("Total", COL_TOTAL)
    )
    lines.append("-" * width)

    for item in sale.items:
        name = item.product.name if item.product is not None else "Produit"
        line = pad_right(name[:ITEM_NAME_MAX], COL_ARTICLE)

        unit_fc = Decimal(item.unit_price_fc or 0)
        unit_usd = Decimal(item.unit_price_usd or 0)

        if show_fc:
            line += pad_left(str(item.quantity), COL_QTY)
            line += pad_left(format_fc(unit_fc), COL_PRICE)
            line += pad_left(format_fc(unit_fc * item.quantity), COL_TOTAL)

        if show_usd and unit_usd > 0:
            if show_fc:
                line += " / "
            line += format_usd(unit_usd)

        lines.append(line)

    lines.append("-" * width)
    lines.append("")

    total_fc = Decimal(sale.total_fc or 0)
    total_usd = Decimal(sale.total_usd or 0)
    paid_fc = Decimal(sale.paid_fc or 0)
    paid_usd = Decimal(sale.paid_usd or 0)
    change_fc = Decimal(sale.change_fc or 0)
    change_usd = Decimal(sale.change_usd or 0)

    if show_fc:
        lines.append(_totals_line("Total FC:", format_fc(total_fc)))
    if show_usd and total_usd > 0:
        lines.append(_totals_line("Total USD:", format_usd(total_usd)))
    lines.append("")

    if show_fc:
        lines.append(_totals_line("Payé FC:", format_fc(paid_fc)))
    if show_usd and paid_usd > 0:
        lines.append(_totals_line("Payé USD:", format_usd(paid_usd)))

    due_fc = total_fc - paid_fc
    if show_fc and due_fc > ZERO:
        lines.append(_totals_line("Reste à payer FC:", format_fc(due_fc)))
    due_usd = total_usd - paid_usd
    if show_usd and due_usd > ZERO:
        lines.append(_totals_line("Reste à payer USD:", format_usd(due_usd)))

    if show_fc and change_fc > ZERO:
        lines.append(_totals_line("Rendu FC:", format_fc(change_fc)))
    if show_usd and change_usd > ZERO:
        lines.append(_totals_line("Rendu USD:", format_usd(change_usd)))
    lines.append("")

    message = printer.receipt_message if printer is not None and printer.receipt_message else DEFAULT_FOOTER
    lines.append(center(message, width))
    lines.append("")

    return "\n".join(lines)


def print_receipt(*, sale_id: int, restaurant_id: int | None) -> dict:
    """
    Render the receipt of a sale with the restaurant's default printer and
    customization, and mark the sale printed.

    Raises:
        TenantAccessError: If the sale is missing or another restaurant's
    """
    sale = get_sale(sale_id=sale_id, restaurant_id=restaurant_id)

    printer = get_default_printer(sale.restaurant_id)
    customization = get_customization(sale.restaurant_id)

    receipt = format_receipt(sale, printer, customization)
    mark_printed(sale)

    return {
        "receipt": receipt,
        "printer": printer.to_dict() if printer else None,
        "customization": customization.to_dict() if customization else None,
        "sale": sale.to_dict(),
    }
