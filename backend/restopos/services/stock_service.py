# Overview: Service-layer operations for stock movements; encapsulates business logic and database work.

"""
Stock movements.

Every change to on-hand stock outside a sale is recorded as a StockMovement
row together with the product update, in one transaction:

- IN          adds each granularity (crates, bottles, glasses)
- OUT         removes each granularity; all-or-nothing when stock is short
- ADJUSTMENT  replaces on-hand with the counted quantities; delta_bottles
              records the correction (counted minus previous)

total_bottles on the movement = crates * bottles_per_crate + bottles + glasses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Product, StockMovement
from ..models.inventory import MOVEMENT_ADJUSTMENT, MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_TYPES
from .concurrency import lock_product, run_with_retry
from .tenant_service import require_owned
from restopos.currency import current_rate, fc_to_usd
from restopos.time_utils import utcnow


class StockError(Exception):
    """Raised for invalid or unsatisfiable stock movements (409 when short)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def movement_total_bottles(product: Product, crates: int, bottles: int, glasses: int) -> int:
    return crates * product.bottles_per_crate + bottles + glasses


def _apply_total(product: Product, total: int) -> None:
    product.quantity_crates = total // product.bottles_per_crate
    product.quantity_bottles = total % product.bottles_per_crate


def record_movement(
    *,
    restaurant_id: int | None,
    user_id: int | None,
    product_id: int,
    movement_type: str,
    quantity_crates: int = 0,
    quantity_bottles: int = 0,
    quantity_glasses: int = 0,
    purchase_price_fc: Decimal | None = None,
    purchase_price_usd: Decimal | None = None,
    reason: str | None = None,
    supplier_reference: str | None = None,
    moved_at: datetime | None = None,
) -> StockMovement:
    """
    Persist a movement and apply it to the product's stock.

    A purchase price given only in FC gets its USD counterpart at the
    configured rate.

    Raises:
        StockError: bad type/quantities, or OUT exceeding on-hand
        TenantAccessError: product missing or another restaurant's
    """
    if movement_type not in MOVEMENT_TYPES:
        raise StockError(f"movement_type must be one of {', '.join(MOVEMENT_TYPES)}")

    quantities = (quantity_crates or 0, quantity_bottles or 0, quantity_glasses or 0)
    if any(isinstance(q, bool) or not isinstance(q, int) for q in quantities):
        raise StockError("Quantities must be integers")
    if any(q < 0 for q in quantities):
        raise StockError("Quantities must be >= 0")
    if movement_type != MOVEMENT_ADJUSTMENT and not any(q > 0 for q in quantities):
        raise StockError("At least one quantity must be > 0")

    crates, bottles, glasses = quantities

    if purchase_price_fc is not None and purchase_price_usd is None:
        purchase_price_usd = fc_to_usd(purchase_price_fc, current_rate())

    def _op():
        product = require_owned(Product, product_id, restaurant_id)
        product = lock_product(product.id)

        total = movement_total_bottles(product, crates, bottles, glasses)
        before = product.total_bottles

        if movement_type == MOVEMENT_IN:
            after = before + total
        elif movement_type == MOVEMENT_OUT:
            if total > before:
                raise StockError(
                    f"Stock insuffisant pour {product.name}",
                    details={
                        "product_id": product.id,
                        "requested_bottles": total,
                        "available_bottles": before,
                    },
                )
            after = before - total
        else:
            after = total

        _apply_total(product, after)

        movement = StockMovement(
            restaurant_id=product.restaurant_id,
            product_id=product.id,
            user_id=user_id,
            movement_type=movement_type,
            quantity_crates=crates,
            quantity_bottles=bottles,
            quantity_glasses=glasses,
            total_bottles=total,
            delta_bottles=after - before,
            purchase_price_fc=purchase_price_fc,
            purchase_price_usd=purchase_price_usd,
            reason=reason,
            supplier_reference=supplier_reference,
            moved_at=moved_at or utcnow(),
        )
        db.session.add(movement)
        db.session.commit()
        return movement

    try:
        movement = run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Stock movement recorded: id=%s type=%s product=%s delta=%s",
        movement.id, movement.movement_type, movement.product_id, movement.delta_bottles,
    )
    return movement


def list_movements(
    *,
    restaurant_id: int,
    product_id: int | None = None,
    movement_type: str | None = None,
    limit: int = 200,
) -> list[StockMovement]:
    query = db.session.query(StockMovement).filter(StockMovement.restaurant_id == restaurant_id)
    if product_id is not None:
        require_owned(Product, product_id, restaurant_id, include_deleted=True)
        query = query.filter(StockMovement.product_id == product_id)
    if movement_type:
        query = query.filter(StockMovement.movement_type == movement_type)
    return (
        query.order_by(StockMovement.moved_at.desc(), StockMovement.id.desc())
        .limit(min(max(limit, 1), 1000))
        .all()
    )
