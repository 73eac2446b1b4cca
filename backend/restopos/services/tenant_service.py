# Overview: Service-layer helpers for restaurant (tenant) scoping and slugs.

"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

WHY: Centralize tenant validation logic for reuse across services and routes.
Every request is scoped to a restaurant, and cross-tenant access must be
explicitly denied.

SECURITY INVARIANTS:
1. Every authenticated restaurant user has g.restaurant_id set
2. Ids from client input are resolved through require_owned(), which
   refuses rows of another restaurant
3. Cross-tenant access attempts are logged as security events
4. A row of another restaurant is reported as "not found", never as
   "forbidden", so ids cannot be probed

USAGE:
    from restopos.services.tenant_service import require_owned

    product = require_owned(Product, product_id, g.restaurant_id)
"""

import re
import unicodedata

from flask import g, has_request_context, request
from ..extensions import db
from ..models import Restaurant
from .permission_service import log_security_event


class TenantAccessError(Exception):
    """Raised when cross-tenant access is attempted or the row is missing."""
    pass


def get_current_restaurant_id() -> int:
    """
    Current tenant's restaurant_id from Flask g.

    Raises TenantAccessError for sessions without a restaurant (super-admins).
    """
    restaurant_id = getattr(g, 'restaurant_id', None)
    if restaurant_id is None:
        raise TenantAccessError("Tenant context not established")
    return restaurant_id


def require_owned(model, row_id: int, restaurant_id: int | None, *, include_deleted: bool = False):
    """
    Load `model` row `row_id` and check it belongs to `restaurant_id`.

    restaurant_id=None means an unscoped (super-admin) caller.
    Soft-deleted rows are treated as missing unless include_deleted.
    """
    row = db.session.get(model, row_id)

    if row is None:
        raise TenantAccessError(f"{model.__name__} not found")

    if not include_deleted and getattr(row, "deleted_at", None) is not None:
        raise TenantAccessError(f"{model.__name__} not found")

    if restaurant_id is not None and row.restaurant_id != restaurant_id:
        _log_cross_tenant_attempt(
            f"{model.__name__} {row_id} belongs to restaurant {row.restaurant_id}, not {restaurant_id}",
            restaurant_id=restaurant_id,
        )
        raise TenantAccessError(f"{model.__name__} not found")

    return row


def scoped_query(model, restaurant_id: int | None = None):
    """
    Base query filtered to one restaurant.

    Usage:
        products = scoped_query(Product, g.restaurant_id).filter_by(is_active=True).all()
    """
    if restaurant_id is None:
        restaurant_id = get_current_restaurant_id()

    query = db.session.query(model).filter(model.restaurant_id == restaurant_id)
    if hasattr(model, "deleted_at"):
        query = query.filter(model.deleted_at.is_(None))
    return query


def slugify(value: str) -> str:
    """'Chez Léa & Fils' -> 'chez-lea-fils'."""
    normalized = unicodedata.normalize("NFKD", value or "")
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text).strip("-")
    return slug or "restaurant"


def unique_slug(name: str, exclude_id: int | None = None) -> str:
    """
    Slug from name, suffixed -1, -2, ... until unused.

    Soft-deleted restaurants keep their slug reserved so a restore never
    collides.
    """
    base = slugify(name)
    candidate = base
    counter = 1

    while True:
        query = db.session.query(Restaurant.id).filter(Restaurant.slug == candidate)
        if exclude_id is not None:
            query = query.filter(Restaurant.id != exclude_id)
        if query.first() is None:
            return candidate
        candidate = f"{base}-{counter}"
        counter += 1


def _log_cross_tenant_attempt(reason: str, restaurant_id: int | None = None) -> None:
    """
    Log a cross-tenant access attempt as a security event.

    Outside a request (CLI, tests calling services directly) the request
    fields are left empty.
    """
    user = getattr(g, 'current_user', None) if has_request_context() else None

    log_security_event(
        user_id=user.id if user is not None else None,
        event_type="CROSS_TENANT_ACCESS_DENIED",
        success=False,
        resource=request.path if has_request_context() else None,
        action=request.method if has_request_context() else None,
        reason=reason,
        ip_address=request.remote_addr if has_request_context() else None,
        user_agent=request.headers.get("User-Agent") if has_request_context() else None,
        restaurant_id=restaurant_id,
    )
