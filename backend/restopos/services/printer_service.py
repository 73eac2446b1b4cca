# Overview: Service-layer operations for receipt printers; encapsulates business logic and database work.

"""
Printer Service

MULTI-TENANT: printers belong to a restaurant. A printer with
restaurant_id NULL is an installation-wide printer (configured from the CLI
without a restaurant) and is used by restaurants that have no default of
their own.

DEFAULT FLAG: at most one default printer per restaurant scope.
set_default() clears the flag on the other printers of the same scope in the
same transaction.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Printer
from ..models.printers import CONNECTION_WIFI, DEFAULT_PAPER_WIDTH
from ..validation import ModelValidationPolicy, enforce_rules_printer, validate_payload
from .tenant_service import require_owned


PRINTER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "connection_type",
        "address",
        "model",
        "paper_width",
        "settings",
        "is_active",
        "is_default",
        "receipt_message",
        "restaurant_name",
        "restaurant_address",
        "restaurant_phone",
    },
    required_on_create={"name", "connection_type"},
)

DEFAULT_PRINTER_NAME = "JUVISY"
DEFAULT_PRINTER_MODEL = "POS-80"
DEFAULT_RESTAURANT_ADDRESS = "217 Avenue Congo Motors, Quartier Gambella I, Commune Lubumbashi"
DEFAULT_RECEIPT_MESSAGE = "Merci de votre visite chez Juvisy !"


class PrinterError(Exception):
    """Raised for printer operations that break a business rule."""
    pass


def printer_record_name(name: str) -> str:
    return f"Imprimante POS {name}"


def _scope(query, restaurant_id: int | None):
    if restaurant_id is None:
        return query.filter(Printer.restaurant_id.is_(None))
    return query.filter(Printer.restaurant_id == restaurant_id)


def _clear_other_defaults(printer: Printer) -> None:
    query = db.session.query(Printer).filter(Printer.is_default.is_(True))
    if printer.id is not None:
        query = query.filter(Printer.id != printer.id)
    for other in _scope(query, printer.restaurant_id).all():
        other.is_default = False


def list_printers(restaurant_id: int | None) -> list[Printer]:
    """Newest first. restaurant_id=None (super-admin) lists every printer."""
    query = db.session.query(Printer)
    if restaurant_id is not None:
        query = query.filter(Printer.restaurant_id == restaurant_id)
    return query.order_by(Printer.created_at.desc(), Printer.id.desc()).all()


def get_printer(*, printer_id: int, restaurant_id: int | None) -> Printer:
    return require_owned(Printer, printer_id, restaurant_id)


def get_default_printer(restaurant_id: int | None) -> Printer | None:
    """Active default printer of the restaurant, else the installation-wide one."""
    base = db.session.query(Printer).filter(
        Printer.is_active.is_(True),
        Printer.is_default.is_(True),
    )
    if restaurant_id is not None:
        printer = base.filter(Printer.restaurant_id == restaurant_id).order_by(Printer.id.asc()).first()
        if printer is not None:
            return printer
    return base.filter(Printer.restaurant_id.is_(None)).order_by(Printer.id.asc()).first()


def create_printer(*, payload: dict, restaurant_id: int | None) -> Printer:
    patch = validate_payload(model=Printer, payload=payload, policy=PRINTER_POLICY, partial=False)
    enforce_rules_printer(patch)

    printer = Printer(restaurant_id=restaurant_id)
    for key, value in patch.items():
        setattr(printer, key, value)
    if printer.paper_width is None:
        printer.paper_width = current_app.config.get("DEFAULT_PAPER_WIDTH", DEFAULT_PAPER_WIDTH)

    if printer.is_default:
        _clear_other_defaults(printer)

    db.session.add(printer)
    db.session.commit()
    current_app.logger.info("Printer created: id=%s restaurant=%s default=%s", printer.id, restaurant_id, printer.is_default)
    return printer


def update_printer(*, printer_id: int, payload: dict, restaurant_id: int | None) -> Printer:
    printer = require_owned(Printer, printer_id, restaurant_id)
    patch = validate_payload(model=Printer, payload=payload, policy=PRINTER_POLICY, partial=True)
    enforce_rules_printer(patch)

    becomes_default = patch.get("is_default") is True and not printer.is_default
    for key, value in patch.items():
        setattr(printer, key, value)

    if becomes_default:
        _clear_other_defaults(printer)
        current_app.logger.info("Default printer switched: id=%s restaurant=%s", printer.id, printer.restaurant_id)

    db.session.commit()
    return printer


def set_default(printer: Printer) -> Printer:
    """Make `printer` the only default of its restaurant."""
    _clear_other_defaults(printer)
    printer.is_default = True
    db.session.commit()
    current_app.logger.info("Default printer switched: id=%s restaurant=%s", printer.id, printer.restaurant_id)
    return printer


def delete_printer(*, printer_id: int, restaurant_id: int | None) -> bool:
    printer = require_owned(Printer, printer_id, restaurant_id)
    db.session.delete(printer)
    db.session.commit()
    return True


def configure_default_printer(
    name: str | None = DEFAULT_PRINTER_NAME,
    address: str | None = None,
    message: str | None = None,
    phone: str | None = None,
    restaurant_id: int | None = None,
) -> tuple[Printer, bool]:
    """
    Create or update the POS printer named "Imprimante POS {name}".

    Idempotent: the record name is the key, so running it again with the
    same name updates the same row. Blank values fall back to the defaults.
    restaurant_id is only written when given, so a later run without it
    keeps the printer attached to its restaurant.

    Returns:
        (printer, created)
    """
    name = name or DEFAULT_PRINTER_NAME
    record_name = printer_record_name(name)

    printer = (
        db.session.query(Printer)
        .filter(Printer.name == record_name)
        .order_by(Printer.id.asc())
        .first()
    )
    created = printer is None
    if created:
        printer = Printer(name=record_name)
        db.session.add(printer)

    if restaurant_id is not None:
        printer.restaurant_id = restaurant_id

    printer.connection_type = CONNECTION_WIFI
    printer.address = None
    printer.model = DEFAULT_PRINTER_MODEL
    printer.paper_width = DEFAULT_PAPER_WIDTH
    printer.is_active = True
    printer.receipt_message = message or DEFAULT_RECEIPT_MESSAGE
    printer.restaurant_name = name
    printer.restaurant_address = address or DEFAULT_RESTAURANT_ADDRESS
    printer.restaurant_phone = phone or None

    db.session.flush()
    _clear_other_defaults(printer)
    printer.is_default = True
    db.session.commit()

    current_app.logger.info(
        "Default printer %s: id=%s name=%s restaurant=%s",
        "created" if created else "updated", printer.id, record_name, printer.restaurant_id,
    )
    return printer, created
