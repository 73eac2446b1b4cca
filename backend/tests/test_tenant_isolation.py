# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-restaurant access is denied for core resources.

These tests use two restaurants (Chez Mama and Le Baobab), each with its own
users and products, then verify that:
1. A user of restaurant A cannot read or write data of restaurant B
2. Foreign ids are reported as 404 (existence is not revealed)
3. Listings only contain the caller's rows
4. Cross-tenant access attempts are logged as security events

Test Coverage:
- tenant_service helpers (require_owned, scoped_query, slugs)
- Products and stock: cross-tenant read/write blocked
- Sales: cross-tenant read, update and receipt blocked
- Sessions: the session carries the user's restaurant
"""

import pytest

from restopos.models import Product, SecurityEvent
from restopos.services.sales_service import create_sale
from restopos.services.session_service import create_session, validate_session
from restopos.services.tenant_service import (
    TenantAccessError,
    require_owned,
    scoped_query,
    slugify,
    unique_slug,
)
from restopos.time_utils import utcnow


@pytest.fixture
def sale_b(db_session, product_b, admin_b):
    return create_sale(
        restaurant_id=product_b.restaurant_id,
        user_id=admin_b.id,
        items=[{"product_id": product_b.id, "unit": "BOTTLE", "quantity": 1}],
        payment_mode="FC",
    )


# =============================================================================
# TENANT SERVICE HELPERS
# =============================================================================


class TestTenantServiceHelpers:

    def test_require_owned_valid(self, db_session, restaurant_a, product_a):
        assert require_owned(Product, product_a.id, restaurant_a.id).id == product_a.id

    def test_require_owned_cross_tenant(self, db_session, restaurant_a, product_b):
        with pytest.raises(TenantAccessError):
            require_owned(Product, product_b.id, restaurant_a.id)

    def test_require_owned_nonexistent(self, db_session, restaurant_a):
        with pytest.raises(TenantAccessError):
            require_owned(Product, 99999, restaurant_a.id)

    def test_require_owned_soft_deleted(self, db_session, restaurant_a, product_a):
        product_a.deleted_at = utcnow()
        db_session.commit()
        with pytest.raises(TenantAccessError):
            require_owned(Product, product_a.id, restaurant_a.id)
        assert require_owned(Product, product_a.id, restaurant_a.id, include_deleted=True) is product_a

    def test_unscoped_caller_sees_every_restaurant(self, db_session, product_b):
        assert require_owned(Product, product_b.id, None) is product_b

    def test_cross_tenant_access_logs_security_event(self, db_session, restaurant_a, product_b):
        with pytest.raises(TenantAccessError):
            require_owned(Product, product_b.id, restaurant_a.id)

        event = db_session.query(SecurityEvent).filter_by(event_type="CROSS_TENANT_ACCESS_DENIED").one()
        assert event.success is False
        assert event.restaurant_id == restaurant_a.id
        assert f"Product {product_b.id}" in event.reason

    def test_scoped_query(self, db_session, restaurant_a, restaurant_b, product_a, product_b):
        ids_a = [p.id for p in scoped_query(Product, restaurant_a.id).all()]
        ids_b = [p.id for p in scoped_query(Product, restaurant_b.id).all()]
        assert ids_a == [product_a.id]
        assert ids_b == [product_b.id]

    def test_scoped_query_needs_a_restaurant(self, app):
        with app.test_request_context():
            with pytest.raises(TenantAccessError):
                scoped_query(Product)

    @pytest.mark.parametrize(
        "name,slug",
        [
            ("Chez Léa & Fils", "chez-lea-fils"),
            ("  Le   Baobab ", "le-baobab"),
            ("!!!", "restaurant"),
        ],
    )
    def test_slugify(self, name, slug):
        assert slugify(name) == slug

    def test_unique_slug_suffixes(self, db_session, restaurant_a):
        assert unique_slug("Chez Mama") == "chez-mama-1"
        assert unique_slug("Chez Mama", exclude_id=restaurant_a.id) == "chez-mama"


# =============================================================================
# PRODUCTS AND STOCK
# =============================================================================


class TestProductIsolation:

    def test_listing_is_scoped(self, client, admin_headers, product_a, product_b):
        resp = client.get("/api/products", headers=admin_headers)
        assert [p["id"] for p in resp.json["items"]] == [product_a.id]

    @pytest.mark.parametrize(
        "method,suffix,payload",
        [
            ("get", "", None),
            ("put", "", {"name": "Volé"}),
            ("delete", "", None),
            ("get", "/stock", None),
            ("post", "/stock", {"movement_type": "IN", "quantity_crates": 1}),
        ],
    )
    def test_foreign_product_is_404(self, client, admin_headers, product_b, method, suffix, payload):
        kwargs = {"headers": admin_headers}
        if payload is not None:
            kwargs["json"] = payload
        resp = getattr(client, method)(f"/api/products/{product_b.id}{suffix}", **kwargs)
        assert resp.status_code == 404

    def test_foreign_product_is_untouched(self, client, admin_headers, db_session, product_b):
        client.put(f"/api/products/{product_b.id}", json={"name": "Volé"}, headers=admin_headers)
        client.post(
            f"/api/products/{product_b.id}/stock",
            json={"movement_type": "OUT", "quantity_crates": 1},
            headers=admin_headers,
        )
        db_session.refresh(product_b)
        assert product_b.name == "Heineken"
        assert product_b.deleted_at is None

    def test_restaurant_id_in_payload_is_refused(self, client, admin_headers, restaurant_b):
        resp = client.post(
            "/api/products",
            json={"name": "Intrus", "restaurant_id": restaurant_b.id},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_stock_movement_by_product_id(self, client, stock_headers, product_b):
        resp = client.post(
            "/api/stock/movements",
            json={"product_id": product_b.id, "movement_type": "IN", "quantity_bottles": 3},
            headers=stock_headers,
        )
        assert resp.status_code == 404

    def test_movement_listing_is_scoped(self, client, admin_headers, admin_b_headers, product_a, product_b):
        client.post(
            f"/api/products/{product_b.id}/stock",
            json={"movement_type": "IN", "quantity_bottles": 3},
            headers=admin_b_headers,
        )
        resp = client.get("/api/stock/movements", headers=admin_headers)
        assert resp.status_code == 200
        assert all(m["product_id"] != product_b.id for m in resp.json["items"])


# =============================================================================
# SALES
# =============================================================================


class TestSaleIsolation:

    def test_listing_is_scoped(self, client, admin_headers, sale_b):
        resp = client.get("/api/sales?period=day", headers=admin_headers)
        assert resp.status_code == 200
        assert sale_b.id not in [s["id"] for s in resp.json["items"]]

    @pytest.mark.parametrize(
        "method,suffix",
        [("get", ""), ("get", "/receipt"), ("post", "/print")],
    )
    def test_foreign_sale_is_404(self, client, admin_headers, sale_b, method, suffix):
        resp = getattr(client, method)(f"/api/sales/{sale_b.id}{suffix}", headers=admin_headers)
        assert resp.status_code == 404

    def test_foreign_sale_cannot_be_updated(self, client, admin_headers, product_a, sale_b):
        resp = client.put(
            f"/api/sales/{sale_b.id}",
            json={"items": [{"product_id": product_a.id, "unit": "BOTTLE", "quantity": 1}]},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_foreign_product_in_sale(self, client, cashier_headers, product_b):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product_b.id, "unit": "BOTTLE", "quantity": 1}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 404


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessionTenantContext:

    def test_session_carries_restaurant(self, db_session, cashier_a):
        _, token = create_session(cashier_a.id)
        context = validate_session(token)
        assert context.restaurant_id == cashier_a.restaurant_id

    def test_super_admin_session_has_no_restaurant(self, db_session, super_admin):
        _, token = create_session(super_admin.id)
        assert validate_session(token).restaurant_id is None

    def test_no_session_for_suspended_restaurant(self, db_session, restaurant_a, cashier_a):
        restaurant_a.is_active = False
        db_session.commit()
        with pytest.raises(ValueError):
            create_session(cashier_a.id)

    def test_suspension_ends_existing_sessions(self, db_session, restaurant_a, cashier_a):
        _, token = create_session(cashier_a.id)
        restaurant_a.is_active = False
        db_session.commit()
        assert validate_session(token) is None
