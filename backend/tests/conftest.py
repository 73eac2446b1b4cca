"""
Pytest fixtures for RestoPOS backend tests.

Provides the application on an in-memory database, two restaurants with
their users (tenant isolation), products, and authenticated headers.
"""

from decimal import Decimal

import pytest

from restopos import create_app
from restopos.extensions import db
from restopos.factories import create_product
from restopos.models import Restaurant, User
from restopos.models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_STOCK, ROLE_SUPER_ADMIN, ROLE_WAITER
from restopos.models.subscriptions import PLAN_PREMIUM
from restopos.services.auth_service import hash_password, hash_pin
from restopos.services.subscription_service import create_subscription


PASSWORD = "Password123!"

TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test",
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "SQLALCHEMY_TRACK_MODIFICATIONS": False,
    "BCRYPT_ROUNDS": 4,
    "EXCHANGE_RATE": "2500",
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_restaurant(name: str, slug: str, plan: str = PLAN_PREMIUM) -> Restaurant:
    restaurant = Restaurant(name=name, slug=slug, email=f"contact@{slug}.cd", phone="+243 990 000 000", is_active=True)
    db.session.add(restaurant)
    db.session.flush()
    create_subscription(restaurant_id=restaurant.id, plan=plan, commit=False)
    db.session.commit()
    return restaurant


def make_user(restaurant, email: str, role: str, *, name: str | None = None, pin: str | None = None) -> User:
    user = User(
        restaurant_id=restaurant.id if restaurant is not None else None,
        name=name or email.split("@")[0],
        email=email,
        password_hash=hash_password(PASSWORD),
        pin_hash=hash_pin(pin) if pin else None,
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def restaurant_a(db_session):
    """Restaurant A (first tenant), premium plan."""
    return make_restaurant("Chez Mama", "chez-mama")


@pytest.fixture(scope='function')
def restaurant_b(db_session):
    """Restaurant B (second tenant), premium plan."""
    return make_restaurant("Le Baobab", "le-baobab")


@pytest.fixture(scope='function')
def super_admin(db_session):
    return make_user(None, "root@restopos.cd", ROLE_SUPER_ADMIN, name="Super Admin")


@pytest.fixture(scope='function')
def admin_a(restaurant_a):
    return make_user(restaurant_a, "admin@chez-mama.cd", ROLE_ADMIN)


@pytest.fixture(scope='function')
def cashier_a(restaurant_a):
    return make_user(restaurant_a, "caisse@chez-mama.cd", ROLE_CASHIER)


@pytest.fixture(scope='function')
def stock_a(restaurant_a):
    return make_user(restaurant_a, "stock@chez-mama.cd", ROLE_STOCK)


@pytest.fixture(scope='function')
def waiter_a(restaurant_a):
    return make_user(restaurant_a, "serveur1@chez-mama.cd", ROLE_WAITER, name="Serveur 1", pin="1234")


@pytest.fixture(scope='function')
def admin_b(restaurant_b):
    return make_user(restaurant_b, "admin@le-baobab.cd", ROLE_ADMIN)


@pytest.fixture(scope='function')
def product_a(restaurant_a):
    """Primus in restaurant A: 2 crates + 5 bottles, 24 per crate."""
    return create_product(
        restaurant_id=restaurant_a.id,
        name="Primus",
        code="PRI001",
        category="biere",
        bottles_per_crate=24,
        quantity_crates=2,
        quantity_bottles=5,
        quantity_glasses=0,
        stock_minimum=1,
        price_crate_fc=Decimal("48000"),
        price_bottle_fc=Decimal("2200"),
        price_glass_fc=Decimal("700"),
    )


@pytest.fixture(scope='function')
def product_b(restaurant_b):
    """Heineken in restaurant B."""
    return create_product(
        restaurant_id=restaurant_b.id,
        name="Heineken",
        code="HEI001",
        category="biere",
        bottles_per_crate=24,
        quantity_crates=3,
        quantity_bottles=0,
        quantity_glasses=0,
        stock_minimum=1,
        price_crate_fc=Decimal("60000"),
        price_bottle_fc=Decimal("2800"),
        price_glass_fc=Decimal("900"),
    )


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_a):
    return auth_headers(get_auth_token(client, admin_a.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_a):
    return auth_headers(get_auth_token(client, cashier_a.email))


@pytest.fixture(scope='function')
def stock_headers(client, stock_a):
    return auth_headers(get_auth_token(client, stock_a.email))


@pytest.fixture(scope='function')
def waiter_headers(client, waiter_a):
    response = client.post('/api/auth/pin-login', json={'pin': '1234', 'restaurant_id': waiter_a.restaurant_id})
    return auth_headers(response.json['token'])


@pytest.fixture(scope='function')
def admin_b_headers(client, admin_b):
    return auth_headers(get_auth_token(client, admin_b.email))


@pytest.fixture(scope='function')
def super_admin_headers(client, super_admin):
    return auth_headers(get_auth_token(client, super_admin.email))


@pytest.fixture(scope='function')
def tenant_factory(client, db_session):
    """Build an extra restaurant with an admin; returns (restaurant, admin, headers)."""
    def _make(slug: str, plan: str = PLAN_PREMIUM, role: str = ROLE_ADMIN):
        restaurant = make_restaurant(slug.replace("-", " ").title(), slug, plan=plan)
        user = make_user(restaurant, f"{role}@{slug}.cd", role)
        return restaurant, user, auth_headers(get_auth_token(client, user.email))
    return _make
