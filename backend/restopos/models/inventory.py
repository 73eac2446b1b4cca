from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from restopos.currency import fc_to_usd, money_str, rate_str
from restopos.time_utils import to_utc_z


UNIT_CRATE = "CRATE"
UNIT_BOTTLE = "BOTTLE"
UNIT_GLASS = "GLASS"
STOCK_UNITS = (UNIT_CRATE, UNIT_BOTTLE, UNIT_GLASS)

ALLOWED_BOTTLES_PER_CRATE = (12, 24)
DEFAULT_BOTTLES_PER_CRATE = 24

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_ADJUSTMENT = "ADJUSTMENT"
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJUSTMENT)


class Product(db.Model):
    """
    Beverage/product master data with three stock granularities.

    MULTI-TENANT: Products are scoped to restaurants via restaurant_id.
    Codes are unique within a restaurant.

    STOCK DESIGN:
    On-hand is held as (quantity_crates, quantity_bottles). Every stock
    operation converts to bottles, applies the delta, then renormalizes:
        crates  = total // bottles_per_crate
        bottles = total %  bottles_per_crate
    so quantity_bottles is always < bottles_per_crate after a stock operation.
    A glass is drawn from bottle stock one-for-one. quantity_glasses is kept
    as an informational counter set on create/edit.

    PRICING DESIGN:
    FC prices are authoritative and stored. USD prices are never stored on
    the product: price_usd() derives them from the FC price and an exchange
    rate (defaulting to the configured one), so a rate change can never leave
    stale USD prices behind. Sales snapshot both currencies with their rate.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("restaurant_id", "code", name="uq_products_restaurant_code"),
        db.Index("ix_products_restaurant_name", "restaurant_id", "name"),
        db.Index("ix_products_restaurant_active", "restaurant_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)

    code = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(255), nullable=True, index=True)
    image = db.Column(db.String(255), nullable=True)

    unit_of_measure = db.Column(db.String(16), nullable=False, default=UNIT_BOTTLE)
    bottles_per_crate = db.Column(db.Integer, nullable=False, default=DEFAULT_BOTTLES_PER_CRATE)

    quantity_crates = db.Column(db.Integer, nullable=False, default=0)
    quantity_bottles = db.Column(db.Integer, nullable=False, default=0)
    quantity_glasses = db.Column(db.Integer, nullable=False, default=0)

    # Threshold in crates
    stock_minimum = db.Column(db.Integer, nullable=False, default=0)

    price_crate_fc = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    price_bottle_fc = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    price_glass_fc = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    restaurant = db.relationship("Restaurant", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def total_bottles(self) -> int:
        return (self.quantity_crates or 0) * self.bottles_per_crate + (self.quantity_bottles or 0)

    @property
    def is_low_stock(self) -> bool:
        return self.total_bottles <= (self.stock_minimum or 0) * self.bottles_per_crate

    def price_fc(self, unit: str) -> Decimal:
        if unit == UNIT_CRATE:
            return Decimal(self.price_crate_fc or 0)
        if unit == UNIT_BOTTLE:
            return Decimal(self.price_bottle_fc or 0)
        if unit == UNIT_GLASS:
            return Decimal(self.price_glass_fc or 0)
        raise ValueError(f"Unknown unit: {unit}")

    def price_usd(self, unit: str, rate) -> Decimal:
        return fc_to_usd(self.price_fc(unit), rate)

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} name={self.name!r} restaurant_id={self.restaurant_id}>"

    def to_dict(self, rate=None) -> dict:
        data = {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "image": self.image,
            "unit_of_measure": self.unit_of_measure,
            "bottles_per_crate": self.bottles_per_crate,
            "quantity_crates": self.quantity_crates,
            "quantity_bottles": self.quantity_bottles,
            "quantity_glasses": self.quantity_glasses,
            "total_bottles": self.total_bottles,
            "stock_minimum": self.stock_minimum,
            "is_low_stock": self.is_low_stock,
            "price_crate_fc": money_str(self.price_crate_fc),
            "price_bottle_fc": money_str(self.price_bottle_fc),
            "price_glass_fc": money_str(self.price_glass_fc),
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if rate is not None:
            data["exchange_rate"] = rate_str(rate)
            data["price_crate_usd"] = money_str(self.price_usd(UNIT_CRATE, rate))
            data["price_bottle_usd"] = money_str(self.price_usd(UNIT_BOTTLE, rate))
            data["price_glass_usd"] = money_str(self.price_usd(UNIT_GLASS, rate))
        return data


class StockMovement(db.Model):
    """
    Append-only record of a stock entry, exit or count adjustment.

    total_bottles = crates * bottles_per_crate + bottles + glasses, using the
    product's bottles_per_crate at the time of the movement. For ADJUSTMENT
    rows it is the counted on-hand, and delta_bottles records the correction.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_moved", "product_id", "moved_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    movement_type = db.Column(db.String(16), nullable=False, index=True)
    unit = db.Column(db.String(16), nullable=True)

    quantity_crates = db.Column(db.Integer, nullable=False, default=0)
    quantity_bottles = db.Column(db.Integer, nullable=False, default=0)
    quantity_glasses = db.Column(db.Integer, nullable=False, default=0)
    total_bottles = db.Column(db.Integer, nullable=False, default=0)
    delta_bottles = db.Column(db.Integer, nullable=False, default=0)

    purchase_price_fc = db.Column(db.Numeric(15, 2), nullable=True)
    purchase_price_usd = db.Column(db.Numeric(15, 2), nullable=True)

    reason = db.Column(db.Text, nullable=True)
    supplier_reference = db.Column(db.String(255), nullable=True)

    moved_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("stock_movements", lazy=True))
    user = db.relationship("User")

    def __repr__(self) -> str:
        return f"<StockMovement id={self.id} type={self.movement_type} product_id={self.product_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "user_id": self.user_id,
            "movement_type": self.movement_type,
            "unit": self.unit,
            "quantity_crates": self.quantity_crates,
            "quantity_bottles": self.quantity_bottles,
            "quantity_glasses": self.quantity_glasses,
            "total_bottles": self.total_bottles,
            "delta_bottles": self.delta_bottles,
            "purchase_price_fc": money_str(self.purchase_price_fc),
            "purchase_price_usd": money_str(self.purchase_price_usd),
            "reason": self.reason,
            "supplier_reference": self.supplier_reference,
            "moved_at": to_utc_z(self.moved_at),
            "created_at": to_utc_z(self.created_at),
        }
