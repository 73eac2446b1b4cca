# Overview: Shared data injected into every dashboard page (user, restaurant, typography, translations).

from __future__ import annotations

from typing import Mapping, Optional

from flask import current_app

from ..locales import default_locale, role_label, translations_for
from ..models import User
from .customization_service import resolve_restaurant_typography
from .subscription_service import get_limitations, subscription_notifications


def _restaurant_payload(user: User) -> Optional[dict]:
    restaurant = user.restaurant
    if restaurant is None or restaurant.is_deleted:
        return None

    customization = restaurant.customization
    return {
        "id": restaurant.id,
        "name": restaurant.name,
        "email": restaurant.email,
        "phone": restaurant.phone,
        "customization": {
            "logo": customization.logo,
            "name": restaurant.name,
            "address": customization.address,
            "city": customization.city,
            "country": customization.country,
            "primary_color": customization.primary_color,
            "secondary_color": customization.secondary_color,
            "font_family": customization.font_family,
            "font_size": customization.font_size,
            "theme": customization.theme or "default",
        } if customization is not None else None,
        # None unless a subscription is current
        "subscription_limitations": get_limitations(restaurant.id),
    }


def build_shared_page_data(user: Optional[User], cookies: Optional[Mapping[str, str]] = None) -> dict:
    """
    Page props shared by every screen.

    Anonymous callers get the locale, translations and the typography
    resolved from the stored preference alone.
    """
    locale = default_locale()
    data = {
        "name": current_app.config.get("APP_NAME", "RestoPOS"),
        "locale": locale,
        "translations": {"auth": translations_for("auth", locale)},
        "auth": {"user": None},
        "restaurant": None,
        "subscription_notifications": [],
    }

    if user is None:
        data["typography"] = resolve_restaurant_typography(None, cookies)
        return data

    user_data = user.to_dict()
    user_data["role_label"] = role_label(user.role, locale)
    data["auth"]["user"] = user_data

    if user.is_super_admin:
        data["subscription_notifications"] = subscription_notifications()
        data["typography"] = resolve_restaurant_typography(None, cookies)
        return data

    data["restaurant"] = _restaurant_payload(user)
    if user.restaurant_id is not None and user.is_admin:
        data["subscription_notifications"] = subscription_notifications(user.restaurant_id)
    data["typography"] = resolve_restaurant_typography(user.restaurant_id, cookies)
    return data
