# Overview: Pytest coverage for stock movements.

"""
Stock movement tests.

Verifies:
- IN adds every granularity and renormalizes into crates + bottles
- OUT is all-or-nothing and reports the shortage
- ADJUSTMENT replaces on-hand with the count and records the delta
- Purchase prices get their USD counterpart at the configured rate
- Only stock managers and admins may record movements
"""

from decimal import Decimal

import pytest

from restopos.models import Product, StockMovement
from restopos.services.stock_service import StockError, record_movement
from restopos.services.tenant_service import TenantAccessError


class TestRecordMovement:

    def test_in_adds_and_normalizes(self, db_session, product_a, stock_a):
        movement = record_movement(
            restaurant_id=product_a.restaurant_id,
            user_id=stock_a.id,
            product_id=product_a.id,
            movement_type="IN",
            quantity_crates=1,
            quantity_bottles=30,
        )
        product = db_session.get(Product, product_a.id)
        assert movement.total_bottles == 54
        assert movement.delta_bottles == 54
        assert (product.quantity_crates, product.quantity_bottles) == (4, 11)

    def test_out_shortage_changes_nothing(self, db_session, product_a):
        with pytest.raises(StockError) as exc:
            record_movement(
                restaurant_id=product_a.restaurant_id,
                user_id=None,
                product_id=product_a.id,
                movement_type="OUT",
                quantity_crates=3,
            )
        assert exc.value.details == {
            "product_id": product_a.id,
            "requested_bottles": 72,
            "available_bottles": 53,
        }
        assert db_session.get(Product, product_a.id).total_bottles == 53
        assert db_session.query(StockMovement).count() == 0

    def test_adjustment_replaces_on_hand(self, db_session, product_a):
        movement = record_movement(
            restaurant_id=product_a.restaurant_id,
            user_id=None,
            product_id=product_a.id,
            movement_type="ADJUSTMENT",
            quantity_bottles=10,
            reason="Inventaire du soir",
        )
        assert movement.total_bottles == 10
        assert movement.delta_bottles == 10 - 53
        product = db_session.get(Product, product_a.id)
        assert (product.quantity_crates, product.quantity_bottles) == (0, 10)

    def test_adjustment_to_zero_is_allowed(self, db_session, product_a):
        movement = record_movement(
            restaurant_id=product_a.restaurant_id,
            user_id=None,
            product_id=product_a.id,
            movement_type="ADJUSTMENT",
        )
        assert movement.delta_bottles == -53
        assert db_session.get(Product, product_a.id).total_bottles == 0

    def test_in_requires_a_quantity(self, db_session, product_a):
        with pytest.raises(StockError):
            record_movement(
                restaurant_id=product_a.restaurant_id,
                user_id=None,
                product_id=product_a.id,
                movement_type="IN",
            )

    def test_purchase_price_usd_derived(self, db_session, product_a):
        movement = record_movement(
            restaurant_id=product_a.restaurant_id,
            user_id=None,
            product_id=product_a.id,
            movement_type="IN",
            quantity_crates=1,
            purchase_price_fc=Decimal("40000"),
        )
        assert movement.purchase_price_usd == Decimal("16.00")

    def test_foreign_product_is_not_found(self, db_session, product_a, restaurant_b):
        with pytest.raises(TenantAccessError):
            record_movement(
                restaurant_id=restaurant_b.id,
                user_id=None,
                product_id=product_a.id,
                movement_type="IN",
                quantity_bottles=1,
            )


class TestStockRoutes:

    def test_stock_manager_records_entry(self, client, stock_headers, product_a):
        resp = client.post(
            f"/api/products/{product_a.id}/stock",
            json={"movement_type": "in", "quantity_crates": 2, "supplier_reference": "BL-2026-001"},
            headers=stock_headers,
        )
        assert resp.status_code == 201, resp.json
        assert resp.json["movement"]["movement_type"] == "IN"
        assert resp.json["product"]["quantity_crates"] == 4

    def test_shortage_is_409_with_details(self, client, stock_headers, product_a):
        resp = client.post(
            "/api/stock/movements",
            json={"product_id": product_a.id, "movement_type": "OUT", "quantity_bottles": 60},
            headers=stock_headers,
        )
        assert resp.status_code == 409
        assert resp.json["details"]["available_bottles"] == 53

    def test_rejects_decimal_quantities(self, client, stock_headers, product_a):
        resp = client.post(
            "/api/stock/movements",
            json={"product_id": product_a.id, "movement_type": "IN", "quantity_bottles": 1.5},
            headers=stock_headers,
        )
        assert resp.status_code == 400

    def test_unknown_type(self, client, stock_headers, product_a):
        resp = client.post(
            "/api/stock/movements",
            json={"product_id": product_a.id, "movement_type": "LOSS", "quantity_bottles": 1},
            headers=stock_headers,
        )
        assert resp.status_code == 400

    def test_list_movements_filtered(self, client, stock_headers, product_a):
        client.post(
            "/api/stock/movements",
            json={"product_id": product_a.id, "movement_type": "IN", "quantity_bottles": 1},
            headers=stock_headers,
        )
        client.post(
            "/api/stock/movements",
            json={"product_id": product_a.id, "movement_type": "OUT", "quantity_bottles": 1},
            headers=stock_headers,
        )
        resp = client.get("/api/stock/movements?type=OUT", headers=stock_headers)
        assert resp.status_code == 200
        assert [m["movement_type"] for m in resp.json["items"]] == ["OUT"]

    def test_cashier_cannot_record(self, client, cashier_headers, product_a):
        resp = client.post(
            "/api/stock/movements",
            json={"product_id": product_a.id, "movement_type": "IN", "quantity_bottles": 1},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_foreign_product_404(self, client, admin_b_headers, product_a):
        resp = client.post(
            "/api/stock/movements",
            json={"product_id": product_a.id, "movement_type": "IN", "quantity_bottles": 1},
            headers=admin_b_headers,
        )
        assert resp.status_code == 404
