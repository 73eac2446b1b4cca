# Overview: Service-layer operations for sales; encapsulates business logic and database work.

"""
Sales Service - dual-currency sales with immediate stock removal

WHY: A sale is recorded in one step at the counter: lines, payment and stock
removal commit together, or nothing does.

CURRENCY:
- Unit prices are entered in FC (or taken from the product for the unit).
- The exchange rate (FC per USD) defaults to the configured rate and is
  stored on the sale; every USD figure derives from FC at that rate:
      unit_price_usd = fc_to_usd(unit_price_fc, rate)
      total_usd      = fc_to_usd(total_fc, rate)
- Change ("rendu") is computed per currency and never negative.

STOCK:
Each line removes stock through products_service.remove_stock. If any line
is short, the session is rolled back and SaleError (409) names the product.
"""

from __future__ import annotations

import secrets
import string
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Product, Sale, SaleItem
from ..models.sales import PAYMENT_MIXED, PAYMENT_MODES
from ..validation import ValidationError, parse_sale_items
from .concurrency import lock_product, run_with_retry
from .products_service import add_stock, remove_stock
from .subscription_service import check_limit
from .tenant_service import TenantAccessError, require_owned
from restopos.currency import ZERO, CurrencyError, current_rate, fc_to_usd, quantize_money, to_decimal
from restopos.time_utils import period_bounds, utcnow


INVOICE_PREFIX = "FACT"
INVOICE_SUFFIX_LENGTH = 6
_INVOICE_ALPHABET = string.ascii_uppercase + string.digits


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None, status_code: int = 400):
        super().__init__(message)
        self.details = details or {}
        self.status_code = status_code


def generate_invoice_number(now=None) -> str:
    """FACT-YYYYMMDD-XXXXXX with 6 random uppercase letters/digits, unique."""
    stamp = (now or utcnow()).strftime("%Y%m%d")
    while True:
        suffix = "".join(secrets.choice(_INVOICE_ALPHABET) for _ in range(INVOICE_SUFFIX_LENGTH))
        number = f"{INVOICE_PREFIX}-{stamp}-{suffix}"
        if db.session.query(Sale.id).filter(Sale.invoice_number == number).first() is None:
            return number


def _amount(value, field: str) -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        amount = to_decimal(value, field=field)
    except CurrencyError as e:
        raise SaleError(str(e))
    if amount < 0:
        raise SaleError(f"{field} must be >= 0")
    return quantize_money(amount)


def _rate(value) -> Decimal:
    if value is None or value == "":
        return current_rate()
    try:
        rate = to_decimal(value, field="exchange_rate")
    except CurrencyError as e:
        raise SaleError(str(e))
    if rate <= 0:
        raise SaleError("exchange_rate must be > 0")
    return rate


def _normalize_items(items) -> list[dict]:
    try:
        return parse_sale_items(items)
    except ValidationError as e:
        raise SaleError(str(e))


def _resolve_products(restaurant_id: int, items: list[dict]) -> None:
    """
    Check every line's product belongs to the restaurant. Must run before
    any write: a refused lookup commits its security event.
    """
    for product_id in dict.fromkeys(item["product_id"] for item in items):
        try:
            require_owned(Product, product_id, restaurant_id)
        except TenantAccessError:
            raise SaleError(
                "Produit non autorisé pour votre restaurant.",
                details={"product_id": product_id},
                status_code=404,
            )


def _build_items(sale: Sale, items: list[dict], rate: Decimal) -> Decimal:
    """
    Create SaleItem rows and remove stock. Returns total_fc.

    Products must have gone through _resolve_products. Raises SaleError (409)
    when a product is inactive or short on stock. The caller rolls back.
    """
    total_fc = ZERO

    for item in items:
        product = lock_product(item["product_id"])

        if not product.is_active:
            raise SaleError(
                f"Le produit {product.name} est inactif.",
                details={"product_id": product.id},
                status_code=409,
            )

        unit_fc = item["unit_price_fc"]
        if unit_fc is None:
            unit_fc = product.price_fc(item["unit"])
        unit_fc = quantize_money(unit_fc)
        unit_usd = fc_to_usd(unit_fc, rate)
        quantity = item["quantity"]

        if not remove_stock(product, item["unit"], quantity):
            raise SaleError(
                f"Stock insuffisant pour {product.name}. Vente annulée.",
                details={
                    "product_id": product.id,
                    "product_name": product.name,
                    "unit": item["unit"],
                    "requested": quantity,
                    "available_bottles": product.total_bottles,
                },
                status_code=409,
            )

        subtotal_fc = unit_fc * quantity
        sale.items.append(SaleItem(
            product_id=product.id,
            unit=item["unit"],
            quantity=quantity,
            unit_price_fc=unit_fc,
            unit_price_usd=unit_usd,
            subtotal_fc=subtotal_fc,
            subtotal_usd=unit_usd * quantity,
            profit_fc=ZERO,
            profit_usd=ZERO,
        ))
        total_fc += subtotal_fc

    return total_fc


def _apply_totals(sale: Sale, total_fc: Decimal, paid_fc: Decimal, paid_usd: Decimal, rate: Decimal) -> None:
    total_usd = fc_to_usd(total_fc, rate)
    sale.total_fc = total_fc
    sale.total_usd = total_usd
    sale.paid_fc = paid_fc
    sale.paid_usd = paid_usd
    sale.change_fc = max(ZERO, paid_fc - total_fc)
    sale.change_usd = max(ZERO, paid_usd - total_usd)
    sale.exchange_rate = rate


def create_sale(
    *,
    restaurant_id: int,
    user_id: int | None,
    items,
    payment_mode: str = PAYMENT_MIXED,
    paid_fc=None,
    paid_usd=None,
    exchange_rate=None,
    notes: str | None = None,
    offline_payload: dict | None = None,
    actor=None,
) -> Sale:
    """
    Record a sale, its lines and the stock removal in one transaction.

    Raises:
        SaleError: validation (400), foreign product (404), stock (409)
        SubscriptionLimitError: monthly sales limit reached
    """
    normalized = _normalize_items(items)
    if payment_mode not in PAYMENT_MODES:
        raise SaleError(f"payment_mode must be one of {', '.join(PAYMENT_MODES)}")
    paid_fc = _amount(paid_fc, "paid_fc")
    paid_usd = _amount(paid_usd, "paid_usd")
    rate = _rate(exchange_rate)

    check_limit(restaurant_id, "sales", actor=actor)

    def _op():
        _resolve_products(restaurant_id, normalized)
        sale = Sale(
            restaurant_id=restaurant_id,
            user_id=user_id,
            invoice_number=generate_invoice_number(),
            payment_mode=payment_mode,
            exchange_rate=rate,
            paid_fc=paid_fc,
            paid_usd=paid_usd,
            notes=notes,
            offline_payload=offline_payload,
            is_synced=True,
        )
        db.session.add(sale)

        total_fc = _build_items(sale, normalized, rate)
        _apply_totals(sale, total_fc, paid_fc, paid_usd, rate)

        db.session.commit()
        return sale

    try:
        sale = run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Sale created: invoice=%s restaurant=%s total_fc=%s items=%s",
        sale.invoice_number, restaurant_id, sale.total_fc, len(sale.items),
    )
    return sale


def update_sale(
    *,
    sale_id: int,
    restaurant_id: int | None,
    items,
    payment_mode: str = PAYMENT_MIXED,
    paid_fc=None,
    paid_usd=None,
    exchange_rate=None,
    notes: str | None = None,
) -> Sale:
    """
    Replace a sale's lines and payment.

    Stock of the old lines is put back, the old lines are deleted, and the
    new lines are priced and removed from stock as in create_sale. Without
    an explicit rate the sale keeps the rate it was recorded at. Any failure
    rolls back to the state before the call.
    """
    normalized = _normalize_items(items)
    if payment_mode not in PAYMENT_MODES:
        raise SaleError(f"payment_mode must be one of {', '.join(PAYMENT_MODES)}")
    paid_fc = _amount(paid_fc, "paid_fc")
    paid_usd = _amount(paid_usd, "paid_usd")

    def _op():
        sale = require_owned(Sale, sale_id, restaurant_id)
        rate = _rate(exchange_rate) if exchange_rate not in (None, "") else Decimal(sale.exchange_rate)
        _resolve_products(sale.restaurant_id, normalized)

        for old in list(sale.items):
            product = db.session.get(Product, old.product_id)
            if product is not None:
                add_stock(product, old.unit, old.quantity)
        sale.items.clear()
        db.session.flush()

        total_fc = _build_items(sale, normalized, rate)
        _apply_totals(sale, total_fc, paid_fc, paid_usd, rate)
        sale.payment_mode = payment_mode
        sale.notes = notes

        db.session.commit()
        return sale

    try:
        sale = run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Sale updated: invoice=%s total_fc=%s", sale.invoice_number, sale.total_fc)
    return sale


def mark_printed(sale: Sale) -> Sale:
    sale.is_printed = True
    sale.printed_at = utcnow()
    db.session.commit()
    current_app.logger.info("Sale printed: invoice=%s", sale.invoice_number)
    return sale


def get_sale(*, sale_id: int, restaurant_id: int | None) -> Sale:
    return require_owned(Sale, sale_id, restaurant_id)


def list_sales(
    *,
    restaurant_id: int,
    period: str = "day",
    user_id: int | None = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """
    Sales of the current day, ISO week or calendar month, newest first.

    statistics cover the whole window (user filter included), not just the
    returned page.
    """
    start, end = period_bounds(period)

    query = db.session.query(Sale).filter(
        Sale.restaurant_id == restaurant_id,
        Sale.deleted_at.is_(None),
        Sale.created_at >= start,
        Sale.created_at < end,
    )
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)

    total_fc, total_usd, count = query.with_entities(
        db.func.coalesce(db.func.sum(Sale.total_fc), 0),
        db.func.coalesce(db.func.sum(Sale.total_usd), 0),
        db.func.count(Sale.id),
    ).one()

    per_page = min(per_page or 20, 100)
    page = max(page or 1, 1)
    total_pages = (count + per_page - 1) // per_page if count > 0 else 1

    sales = (
        query.order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return {
        "items": [s.to_dict() for s in sales],
        "count": len(sales),
        "period": period,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "statistics": {
            "total_sales_fc": f"{quantize_money(total_fc):.2f}",
            "total_sales_usd": f"{quantize_money(total_usd):.2f}",
            "sales_count": count,
        },
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": count,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
