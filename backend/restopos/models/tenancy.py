from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z


class Restaurant(db.Model):
    """
    Multi-tenant root: every tenant is a Restaurant.

    WHY: One installation serves several establishments. Products, sales,
    printers, users and stock movements all carry restaurant_id and must never
    be visible across restaurants (super-admins excepted).

    DESIGN:
    - slug is globally unique, soft-deleted rows included
    - deleted_at implements soft delete; restore clears it
    - is_active=False (suspension) blocks logins for the restaurant's users
    """
    __tablename__ = "restaurants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Restaurant id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "email": self.email,
            "phone": self.phone,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }


class RestaurantCustomization(db.Model):
    """
    Branding and display preferences for a restaurant (one row per restaurant).

    Feeds three consumers:
    - receipt headers (address, city, country, postal code, website)
    - the shared page payload (colors, logo, theme)
    - typography resolution (font_family, font_size), which treats these
      values as the server layer
    """
    __tablename__ = "restaurant_customizations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, unique=True, index=True)

    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    country = db.Column(db.String(100), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    description = db.Column(db.String(1000), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    logo = db.Column(db.String(255), nullable=True)

    primary_color = db.Column(db.String(7), nullable=True)  # #RRGGBB
    secondary_color = db.Column(db.String(7), nullable=True)
    theme = db.Column(db.String(32), nullable=False, default="default")

    font_family = db.Column(db.String(100), nullable=True)
    font_size = db.Column(db.String(16), nullable=True)  # small | normal | large

    social_links = db.Column(db.JSON, nullable=True)
    opening_hours = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    restaurant = db.relationship(
        "Restaurant",
        backref=db.backref("customization", uselist=False, lazy=True),
    )

    def full_address(self, street: str | None = None) -> str | None:
        """Street line (own address, else `street`) with postal code, city and country."""
        text = self.address or street
        if not text:
            return None
        if self.postal_code:
            text += f", {self.postal_code}"
        if self.city:
            text += f" {self.city}"
        if self.country:
            text += f", {self.country}"
        return text

    def typography_layer(self) -> dict:
        return {"font_family": self.font_family, "font_size": self.font_size}

    def __repr__(self) -> str:
        return f"<RestaurantCustomization restaurant_id={self.restaurant_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "postal_code": self.postal_code,
            "description": self.description,
            "website": self.website,
            "logo": self.logo,
            "primary_color": self.primary_color,
            "secondary_color": self.secondary_color,
            "theme": self.theme or "default",
            "font_family": self.font_family,
            "font_size": self.font_size,
            "social_links": self.social_links or {},
            "opening_hours": self.opening_hours or {},
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
