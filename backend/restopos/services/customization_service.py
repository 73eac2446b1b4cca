# Overview: Service-layer operations for restaurant customization and typography.

from __future__ import annotations

from ..extensions import db
from ..models import Restaurant, RestaurantCustomization
from ..validation import ModelValidationPolicy, enforce_rules_customization, validate_payload
from .tenant_service import TenantAccessError
from restopos.typography import (
    DEFAULT_TYPOGRAPHY,
    TypographySettings,
    resolve_typography_with_source,
    typography_from_storage,
    update_typography,
)


CUSTOMIZATION_POLICY = ModelValidationPolicy(
    writable_fields={
        "address",
        "city",
        "country",
        "postal_code",
        "description",
        "website",
        "logo",
        "primary_color",
        "secondary_color",
        "theme",
        "font_family",
        "font_size",
        "social_links",
        "opening_hours",
    },
)

# Blank strings clear these fields
NULLABLE_TEXT_FIELDS = (
    "address",
    "city",
    "country",
    "postal_code",
    "description",
    "website",
    "logo",
    "primary_color",
    "secondary_color",
    "font_family",
    "font_size",
)


def get_customization(restaurant_id: int) -> RestaurantCustomization | None:
    return (
        db.session.query(RestaurantCustomization)
        .filter(RestaurantCustomization.restaurant_id == restaurant_id)
        .first()
    )


def get_or_create_customization(restaurant_id: int) -> RestaurantCustomization:
    restaurant = db.session.get(Restaurant, restaurant_id)
    if restaurant is None or restaurant.is_deleted:
        raise TenantAccessError("Restaurant not found")

    customization = get_customization(restaurant_id)
    if customization is None:
        customization = RestaurantCustomization(
            restaurant_id=restaurant_id,
            social_links={},
            opening_hours={},
        )
        db.session.add(customization)
        db.session.commit()
    return customization


def update_customization(*, restaurant_id: int, payload: dict) -> RestaurantCustomization:
    """
    Patch the restaurant's customization, creating the row on first use.

    restaurant_id in the payload is never honoured; the caller's tenant wins.
    """
    payload = {k: v for k, v in (payload or {}).items() if k != "restaurant_id"}
    for key in NULLABLE_TEXT_FIELDS:
        if isinstance(payload.get(key), str) and payload[key].strip() == "":
            payload[key] = None

    patch = validate_payload(
        model=RestaurantCustomization,
        payload=payload,
        policy=CUSTOMIZATION_POLICY,
        partial=True,
    )
    enforce_rules_customization(patch)

    customization = get_or_create_customization(restaurant_id)
    for key, value in patch.items():
        setattr(customization, key, value)
    db.session.commit()
    return customization


def resolve_restaurant_typography(restaurant_id: int | None, storage=None) -> dict:
    """
    Typography for a page: the restaurant's customization is the server
    layer, the stored preference (cookie) the local layer.
    """
    server = None
    if restaurant_id is not None:
        customization = get_customization(restaurant_id)
        if customization is not None:
            server = customization.typography_layer()

    settings, source = resolve_typography_with_source(server, typography_from_storage(storage))
    return {**settings.to_dict(), "source": source}


def update_typography_preference(storage, patch: dict) -> tuple[TypographySettings, str]:
    """Merge `patch` into the stored preference; returns (settings, value to store)."""
    stored = typography_from_storage(storage)
    current = DEFAULT_TYPOGRAPHY
    if stored is not None:
        settings, _ = resolve_typography_with_source(local=stored)
        current = settings
    return update_typography(current, patch)
