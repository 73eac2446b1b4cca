from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z


CONNECTION_BLUETOOTH = "bluetooth"
CONNECTION_USB = "usb"
CONNECTION_WIFI = "wifi"
CONNECTION_TYPES = (CONNECTION_BLUETOOTH, CONNECTION_USB, CONNECTION_WIFI)

MIN_PAPER_WIDTH = 58
MAX_PAPER_WIDTH = 112
DEFAULT_PAPER_WIDTH = 80


class Printer(db.Model):
    """
    Receipt printer configuration.

    MULTI-TENANT: Printers are scoped to restaurants via restaurant_id.

    The restaurant_* columns and receipt_message are printed as the receipt
    header and footer. At most one printer per restaurant has is_default set;
    printer_service.set_default() clears the flag on the siblings.
    """
    __tablename__ = "printers"
    __table_args__ = (
        db.Index("ix_printers_restaurant_default", "restaurant_id", "is_default"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    connection_type = db.Column(db.String(16), nullable=False, default=CONNECTION_BLUETOOTH)
    address = db.Column(db.String(255), nullable=True)  # MAC / IP / device path
    model = db.Column(db.String(255), nullable=True)
    paper_width = db.Column(db.Integer, nullable=False, default=DEFAULT_PAPER_WIDTH)
    settings = db.Column(db.JSON, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    receipt_message = db.Column(db.Text, nullable=True)
    restaurant_name = db.Column(db.String(255), nullable=True)
    restaurant_address = db.Column(db.Text, nullable=True)
    restaurant_phone = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    restaurant = db.relationship("Restaurant", backref=db.backref("printers", lazy=True))

    def __repr__(self) -> str:
        return f"<Printer id={self.id} name={self.name!r} default={self.is_default}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "connection_type": self.connection_type,
            "address": self.address,
            "model": self.model,
            "paper_width": self.paper_width,
            "settings": self.settings or {},
            "is_active": self.is_active,
            "is_default": self.is_default,
            "receipt_message": self.receipt_message,
            "restaurant_name": self.restaurant_name,
            "restaurant_address": self.restaurant_address,
            "restaurant_phone": self.restaurant_phone,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
