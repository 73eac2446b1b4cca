from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from restopos.currency import money_str, rate_str
from restopos.time_utils import to_utc_z


PAYMENT_FC = "FC"
PAYMENT_USD = "USD"
PAYMENT_MIXED = "MIXED"
PAYMENT_MODES = (PAYMENT_FC, PAYMENT_USD, PAYMENT_MIXED)


class Sale(db.Model):
    """
    Sale document with dual-currency amounts.

    MULTI-TENANT: Sales are scoped to restaurants via restaurant_id.

    CURRENCY SNAPSHOT:
    exchange_rate records the FC-per-USD rate in force when the sale was
    written. Every USD amount on the sale and its items is derived from the
    FC amount at that recorded rate, so historical sales keep their USD values
    after the configured rate changes, and any USD figure can be re-derived
    from the row itself.

    CHANGE DUE ("rendu"):
        change_fc  = max(0, paid_fc  - total_fc)
        change_usd = max(0, paid_usd - total_usd)
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_restaurant_created", "restaurant_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    # FACT-YYYYMMDD-XXXXXX
    invoice_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    total_fc = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    total_usd = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    paid_fc = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    paid_usd = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    change_fc = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    change_usd = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))

    payment_mode = db.Column(db.String(8), nullable=False, default=PAYMENT_MIXED)
    exchange_rate = db.Column(db.Numeric(10, 4), nullable=False)

    is_printed = db.Column(db.Boolean, nullable=False, default=False)
    printed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Offline capture support: the client may post a sale recorded offline
    is_synced = db.Column(db.Boolean, nullable=False, default=True)
    offline_payload = db.Column(db.JSON, nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    restaurant = db.relationship("Restaurant", backref=db.backref("sales", lazy=True))
    user = db.relationship("User", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} invoice={self.invoice_number!r} total_fc={self.total_fc}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "invoice_number": self.invoice_number,
            "total_fc": money_str(self.total_fc),
            "total_usd": money_str(self.total_usd),
            "paid_fc": money_str(self.paid_fc),
            "paid_usd": money_str(self.paid_usd),
            "change_fc": money_str(self.change_fc),
            "change_usd": money_str(self.change_usd),
            "payment_mode": self.payment_mode,
            "exchange_rate": rate_str(self.exchange_rate),
            "is_printed": self.is_printed,
            "printed_at": to_utc_z(self.printed_at),
            "is_synced": self.is_synced,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    Sale line item.

    unit_price_usd = round(unit_price_fc / sale.exchange_rate, 2)
    subtotal_*     = quantity * unit_price_*
    profit_* stays 0 until purchase costs are tracked per unit.
    """
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    unit = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    unit_price_fc = db.Column(db.Numeric(15, 2), nullable=False)
    unit_price_usd = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    subtotal_fc = db.Column(db.Numeric(15, 2), nullable=False)
    subtotal_usd = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    profit_fc = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))
    profit_usd = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "unit": self.unit,
            "quantity": self.quantity,
            "unit_price_fc": money_str(self.unit_price_fc),
            "unit_price_usd": money_str(self.unit_price_usd),
            "subtotal_fc": money_str(self.subtotal_fc),
            "subtotal_usd": money_str(self.subtotal_usd),
            "profit_fc": money_str(self.profit_fc),
            "profit_usd": money_str(self.profit_usd),
        }
