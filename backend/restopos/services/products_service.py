# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are restaurant-scoped.
- list_products filters by restaurant_id
- get/update/delete resolve the product through tenant_service.require_owned
- codes are unique within a restaurant

STOCK ARITHMETIC:
add_stock/remove_stock convert a quantity to bottles (a crate is
bottles_per_crate bottles; a bottle or a glass is one bottle), apply it, then
renormalize into whole crates plus loose bottles. They mutate the product
in the session and leave the commit to the caller, so a sale can remove
stock for several lines and roll everything back together.
"""
from __future__ import annotations

import random

from flask import current_app

from ..extensions import db
from ..models import Product
from ..models.inventory import UNIT_BOTTLE, UNIT_CRATE, UNIT_GLASS
from ..validation import ConflictError
from .subscription_service import check_limit
from .tenant_service import require_owned
from restopos.currency import current_rate
from restopos.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {
    "code",
    "name",
    "description",
    "category",
    "image",
    "unit_of_measure",
    "bottles_per_crate",
    "quantity_crates",
    "quantity_bottles",
    "quantity_glasses",
    "stock_minimum",
    "price_crate_fc",
    "price_bottle_fc",
    "price_glass_fc",
    "is_active",
}

CODE_MAX_COUNTER = 9999


class ProductError(Exception):
    """Raised for product operations that break a business rule."""
    pass


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _bottles_for(product: Product, unit: str, quantity: int) -> int:
    if unit == UNIT_CRATE:
        return quantity * product.bottles_per_crate
    if unit in (UNIT_BOTTLE, UNIT_GLASS):
        return quantity
    raise ProductError(f"Unknown unit: {unit}")


def _set_total_bottles(product: Product, total: int) -> None:
    product.quantity_crates = total // product.bottles_per_crate
    product.quantity_bottles = total % product.bottles_per_crate


def remove_stock(product: Product, unit: str, quantity: int) -> bool:
    """
    Take `quantity` of `unit` out of stock.

    Returns False, leaving the product untouched, when the request exceeds
    what is on hand.
    """
    if quantity < 0:
        raise ProductError("quantity must be >= 0")
    needed = _bottles_for(product, unit, quantity)
    available = product.total_bottles
    if needed > available:
        return False
    _set_total_bottles(product, available - needed)
    return True


def add_stock(product: Product, unit: str, quantity: int) -> bool:
    if quantity < 0:
        raise ProductError("quantity must be >= 0")
    _set_total_bottles(product, product.total_bottles + _bottles_for(product, unit, quantity))
    return True


def code_taken(restaurant_id: int, code: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(
        Product.restaurant_id == restaurant_id,
        Product.code == code,
    )
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def code_base(name: str) -> str:
    """
    'Coca Cola' -> 'COCO', 'Primus' -> 'PRX', '33 Export' -> '33EX'.

    Two leading characters per word (one for single-character words),
    at most 6, right-padded with X to at least 3.
    """
    initials = ""
    for word in (name or "").strip().upper().split():
        initials += word[:2] if len(word) >= 2 else word
    return initials[:6].ljust(3, "X")


def generate_product_code(name: str, restaurant_id: int, rng: random.Random | None = None) -> str:
    """
    Unique code within the restaurant.

    base, then base[:3] + 001, 002, ...; after CODE_MAX_COUNTER collisions
    falls back to base + a random 4-digit number.
    """
    base = code_base(name)
    code = base
    counter = 1

    while code_taken(restaurant_id, code):
        code = f"{base[:3]}{counter:03d}"
        counter += 1
        if counter > CODE_MAX_COUNTER:
            code = f"{base}{(rng or random).randint(1000, 9999)}"
            break

    return code


def _low_stock_clause():
    return (
        Product.quantity_crates * Product.bottles_per_crate + Product.quantity_bottles
        <= Product.stock_minimum * Product.bottles_per_crate
    )


def list_products(
    restaurant_id: int,
    search: str | None = None,
    category: str | None = None,
    low_stock: bool = False,
    active_only: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Restaurant-scoped product listing with optional pagination.

    search matches name or code (case-insensitive substring).

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product).filter(
        Product.restaurant_id == restaurant_id,
        Product.deleted_at.is_(None),
    )

    if search:
        pattern = f"%{search.strip()}%"
        base_query = base_query.filter(db.or_(Product.name.ilike(pattern), Product.code.ilike(pattern)))

    if category:
        base_query = base_query.filter(Product.category == category)

    if low_stock:
        base_query = base_query.filter(_low_stock_clause())

    if active_only:
        base_query = base_query.filter(Product.is_active.is_(True))

    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())
    rate = current_rate()

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict(rate=rate) for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict(rate=rate) for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_categories(restaurant_id: int) -> list[str]:
    rows = (
        db.session.query(Product.category)
        .filter(
            Product.restaurant_id == restaurant_id,
            Product.deleted_at.is_(None),
            Product.category.isnot(None),
        )
        .distinct()
        .order_by(Product.category.asc())
        .all()
    )
    return [row[0] for row in rows]


def get_product(*, product_id: int, restaurant_id: int | None) -> Product:
    return require_owned(Product, product_id, restaurant_id)


def create_product(*, patch: dict, restaurant_id: int, actor=None) -> Product:
    """
    Create product using a validated patch dict.

    Generates a code when none is supplied and enforces the plan's
    max_products limit.

    Raises:
        ConflictError: If the code already exists in the restaurant
        SubscriptionLimitError: If the plan's product limit is reached
    """
    if not patch.get("name"):
        raise ProductError("name is required")

    check_limit(restaurant_id, "products", actor=actor)

    code = patch.get("code")
    if code:
        if code_taken(restaurant_id, code):
            raise ConflictError("Product code already exists for this restaurant.")
    else:
        code = generate_product_code(patch["name"], restaurant_id)

    p = Product(restaurant_id=restaurant_id)
    apply_product_patch(p, patch)
    p.code = code

    db.session.add(p)
    db.session.commit()

    current_app.logger.info("Product created: id=%s code=%s restaurant=%s", p.id, p.code, restaurant_id)
    return p


def update_product(*, product_id: int, patch: dict, restaurant_id: int | None) -> Product:
    """
    Update a product. A code change must stay unique in the restaurant.

    Raises:
        TenantAccessError: If the product is missing or another restaurant's
        ConflictError: If the new code already exists
    """
    p = require_owned(Product, product_id, restaurant_id)

    if "code" in patch and patch["code"] != p.code:
        if not patch["code"]:
            raise ProductError("code cannot be blank")
        if code_taken(p.restaurant_id, patch["code"], exclude_id=p.id):
            raise ConflictError("Product code already exists for this restaurant.")

    if "bottles_per_crate" in patch and patch["bottles_per_crate"] != p.bottles_per_crate:
        # Keep the on-hand bottle count when the crate size changes
        total = p.total_bottles
        apply_product_patch(p, patch)
        if "quantity_crates" not in patch and "quantity_bottles" not in patch:
            _set_total_bottles(p, total)
    else:
        apply_product_patch(p, patch)

    db.session.commit()
    return p


def delete_product(*, product_id: int, restaurant_id: int | None) -> bool:
    """Soft-delete: the row stays for sale history, hidden from listings."""
    p = require_owned(Product, product_id, restaurant_id)
    p.deleted_at = utcnow()
    p.is_active = False
    db.session.commit()
    return True
