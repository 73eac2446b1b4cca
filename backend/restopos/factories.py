# Overview: Data factories and the demo seeder used by tests and `flask system seed`.

"""
Factories and seeders.

product_factory/sale_factory are pure: given a random.Random they return
attribute dicts, so tests can pin the seed and assert on the values.
USD figures in those dicts use the fixed seed rate (round(fc / 2500, 2)).
Products never store USD prices, so create_product drops the *_usd keys
before persisting.

seed_demo_data is idempotent: every row is looked up by its natural key
(email, slug, product code, printer name) and only created when missing.
"""

from __future__ import annotations

import random
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app

from .extensions import db
from .models import Product, Restaurant, Sale, User
from .models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_STOCK, ROLE_SUPER_ADMIN
from .models.inventory import UNIT_BOTTLE
from .models.sales import PAYMENT_MODES
from .models.subscriptions import PLAN_PREMIUM
from .services.auth_service import hash_password
from .services.printer_service import configure_default_printer
from .services.products_service import code_taken, generate_product_code
from .services.sales_service import generate_invoice_number
from .services.subscription_service import create_subscription, get_current_subscription


SEED_RATE = Decimal("2500")
SEED_PASSWORD = "password"

PRODUCT_NAMES = (
    "Primus",
    "Heineken",
    "Tiger",
    "Coca-Cola",
    "Fanta",
    "Sprite",
    "Mutzig",
    "Turbo King",
    "Castel",
    "33 Export",
)
PRODUCT_CATEGORIES = ("boisson", "biere", "soda")

DEMO_RESTAURANT = {
    "name": "JUVISY",
    "slug": "juvisy",
    "email": "contact@juvisy.com",
}

DEMO_USERS = (
    ("superadmin@juvisy.com", "Super Administrateur", ROLE_SUPER_ADMIN),
    ("admin@juvisy.com", "Administrateur JUVISY", ROLE_ADMIN),
    ("caisse@juvisy.com", "Caissier JUVISY", ROLE_CASHIER),
    ("stock@juvisy.com", "Gestionnaire Stock JUVISY", ROLE_STOCK),
)

# (name, code, category, bottles_per_crate, crates, bottles, stock_minimum, crate FC, bottle FC, glass FC)
DEMO_CATALOGUE = (
    ("Primus", "PRI001", "biere", 24, 20, 12, 1, 48000, 2200, 700),
    ("Heineken", "HEI001", "biere", 24, 15, 8, 1, 60000, 2800, 900),
    ("Coca-Cola", "COC001", "soda", 24, 30, 15, 2, 36000, 1800, 600),
    ("Fanta", "FAN001", "soda", 24, 25, 10, 2, 36000, 1800, 600),
    ("Mutzig", "MUT001", "biere", 24, 18, 5, 1, 54000, 2500, 800),
    ("Turbo King", "TUR001", "biere", 12, 25, 6, 2, 30000, 2800, 900),
)


def _money(value) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _usd(fc) -> Decimal:
    return _money(Decimal(fc) / SEED_RATE)


def product_factory(rng: random.Random | None = None) -> dict:
    """Random product attributes: bottle 1500-5000 FC, crate at 10% off 24 bottles, glass at 30%."""
    rng = rng or random.Random()
    name = rng.choice(PRODUCT_NAMES)

    bottle_fc = _money(rng.randint(1500, 5000))
    crate_fc = _money(bottle_fc * 24 * Decimal("0.9"))
    glass_fc = _money(bottle_fc * Decimal("0.3"))

    return {
        "name": name,
        "code": f"{name[:3].upper()}{rng.randint(100, 999)}",
        "description": None,
        "category": rng.choice(PRODUCT_CATEGORIES),
        "unit_of_measure": UNIT_BOTTLE,
        "bottles_per_crate": 24,
        "quantity_crates": rng.randint(0, 50),
        "quantity_bottles": rng.randint(0, 23),
        "quantity_glasses": 0,
        "stock_minimum": 10,
        "price_crate_fc": crate_fc,
        "price_crate_usd": _usd(crate_fc),
        "price_bottle_fc": bottle_fc,
        "price_bottle_usd": _usd(bottle_fc),
        "price_glass_fc": glass_fc,
        "price_glass_usd": _usd(glass_fc),
        "is_active": True,
    }


def sale_factory(rng: random.Random | None = None) -> dict:
    rng = rng or random.Random()
    total_fc = _money(rng.randint(5000, 100000))
    paid_fc = total_fc + rng.randint(0, 5000)
    change_fc = paid_fc - total_fc

    return {
        "total_fc": total_fc,
        "total_usd": _usd(total_fc),
        "paid_fc": paid_fc,
        "paid_usd": _usd(paid_fc),
        "change_fc": change_fc,
        "change_usd": _usd(change_fc),
        "payment_mode": rng.choice(PAYMENT_MODES),
        "exchange_rate": SEED_RATE,
        "is_printed": rng.random() < 0.7,
        "is_synced": True,
    }


def create_product(*, restaurant_id: int, rng: random.Random | None = None, commit: bool = True, **overrides) -> Product:
    """
    Persist a factory product for a restaurant.

    A random code that already exists in the restaurant is replaced by a
    generated one unless the caller chose the code explicitly.
    """
    attrs = product_factory(rng)
    attrs.update(overrides)
    for key in ("price_crate_usd", "price_bottle_usd", "price_glass_usd"):
        attrs.pop(key, None)

    if "code" not in overrides and code_taken(restaurant_id, attrs["code"]):
        attrs["code"] = generate_product_code(attrs["name"], restaurant_id, rng=rng)

    product = Product(restaurant_id=restaurant_id, **attrs)
    db.session.add(product)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return product


def create_sale(
    *,
    restaurant_id: int,
    user_id: int | None = None,
    rng: random.Random | None = None,
    commit: bool = True,
    **overrides,
) -> Sale:
    """Persist a factory sale header (no items, stock untouched)."""
    attrs = sale_factory(rng)
    attrs.update(overrides)
    attrs.setdefault("invoice_number", generate_invoice_number())

    sale = Sale(restaurant_id=restaurant_id, user_id=user_id, **attrs)
    db.session.add(sale)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return sale


def _get_or_create_user(email: str, name: str, role: str, restaurant_id: int | None) -> tuple[User, bool]:
    user = db.session.query(User).filter(db.func.lower(User.email) == email).first()
    if user is not None:
        return user, False
    user = User(
        restaurant_id=restaurant_id,
        name=name,
        email=email,
        password_hash=hash_password(SEED_PASSWORD),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.flush()
    return user, True


def seed_demo_data() -> dict:
    """
    Seed the demo installation.

    Creates, when missing:
    - the super-admin (superadmin@juvisy.com)
    - the JUVISY restaurant with an open-ended premium subscription
    - its admin, caisse and stock users (password "password")
    - the beverage catalogue
    - the default JUVISY receipt printer

    Returns counts of the rows created by this run.
    """
    created = {"restaurants": 0, "users": 0, "products": 0, "subscriptions": 0, "printers": 0}

    restaurant = db.session.query(Restaurant).filter_by(slug=DEMO_RESTAURANT["slug"]).first()
    if restaurant is None:
        restaurant = Restaurant(is_active=True, **DEMO_RESTAURANT)
        db.session.add(restaurant)
        db.session.flush()
        created["restaurants"] += 1

    if get_current_subscription(restaurant.id) is None:
        create_subscription(
            restaurant_id=restaurant.id,
            plan=PLAN_PREMIUM,
            monthly_amount=Decimal("99.99"),
            commit=False,
        )
        created["subscriptions"] += 1

    for email, name, role in DEMO_USERS:
        restaurant_id = None if role == ROLE_SUPER_ADMIN else restaurant.id
        _, is_new = _get_or_create_user(email, name, role, restaurant_id)
        created["users"] += int(is_new)

    for name, code, category, per_crate, crates, bottles, minimum, crate_fc, bottle_fc, glass_fc in DEMO_CATALOGUE:
        if code_taken(restaurant.id, code):
            continue
        db.session.add(Product(
            restaurant_id=restaurant.id,
            name=name,
            code=code,
            category=category,
            unit_of_measure=UNIT_BOTTLE,
            bottles_per_crate=per_crate,
            quantity_crates=crates,
            quantity_bottles=bottles,
            quantity_glasses=0,
            stock_minimum=minimum,
            price_crate_fc=Decimal(crate_fc),
            price_bottle_fc=Decimal(bottle_fc),
            price_glass_fc=Decimal(glass_fc),
            is_active=True,
        ))
        created["products"] += 1

    db.session.commit()

    _, printer_created = configure_default_printer(name=restaurant.name, restaurant_id=restaurant.id)
    created["printers"] += int(printer_created)

    current_app.logger.info("Demo data seeded: %s", created)
    return created
