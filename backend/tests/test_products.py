# Overview: Pytest coverage for product catalogue and stock arithmetic.

"""
Product tests.

Verifies:
- Product CRUD through the API with generated codes and live USD prices
- Stock arithmetic: crates/bottles normalization, glasses drawn from bottles
- Code generation from names and collision counters
"""

from decimal import Decimal

import pytest

from restopos.factories import create_product
from restopos.models import Product
from restopos.models.inventory import UNIT_BOTTLE, UNIT_CRATE, UNIT_GLASS
from restopos.services.products_service import (
    add_stock,
    code_base,
    generate_product_code,
    remove_stock,
)


# =============================================================================
# STOCK ARITHMETIC
# =============================================================================


class TestStockArithmetic:

    def test_total_bottles(self, product_a):
        assert product_a.total_bottles == 2 * 24 + 5

    def test_remove_bottles_borrows_from_crates(self, db_session, product_a):
        assert remove_stock(product_a, UNIT_BOTTLE, 7) is True
        assert (product_a.quantity_crates, product_a.quantity_bottles) == (1, 22)

    def test_remove_crate(self, db_session, product_a):
        assert remove_stock(product_a, UNIT_CRATE, 1) is True
        assert (product_a.quantity_crates, product_a.quantity_bottles) == (1, 5)

    def test_glass_draws_one_bottle(self, db_session, product_a):
        assert remove_stock(product_a, UNIT_GLASS, 1) is True
        assert product_a.total_bottles == 52

    def test_remove_more_than_on_hand_leaves_product_untouched(self, db_session, product_a):
        assert remove_stock(product_a, UNIT_CRATE, 3) is False
        assert (product_a.quantity_crates, product_a.quantity_bottles) == (2, 5)

    def test_add_renormalizes(self, db_session, product_a):
        add_stock(product_a, UNIT_BOTTLE, 20)
        assert (product_a.quantity_crates, product_a.quantity_bottles) == (3, 1)

    def test_twelve_bottle_crates(self, db_session, restaurant_a):
        product = create_product(
            restaurant_id=restaurant_a.id,
            name="Turbo King",
            code="TUR001",
            bottles_per_crate=12,
            quantity_crates=1,
            quantity_bottles=0,
        )
        assert remove_stock(product, UNIT_BOTTLE, 1) is True
        assert (product.quantity_crates, product.quantity_bottles) == (0, 11)


# =============================================================================
# CODE GENERATION
# =============================================================================


class TestProductCodes:

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Coca Cola", "COCO"),
            ("Primus", "PRX"),
            ("33 Export", "33EX"),
            ("A", "AXX"),
        ],
    )
    def test_code_base(self, name, expected):
        assert code_base(name) == expected

    def test_collision_uses_counter(self, db_session, restaurant_a):
        create_product(restaurant_id=restaurant_a.id, name="Coca Cola", code="COCO")
        assert generate_product_code("Coca Cola", restaurant_a.id) == "COC001"

    def test_codes_are_per_restaurant(self, db_session, restaurant_a, restaurant_b):
        create_product(restaurant_id=restaurant_a.id, name="Coca Cola", code="COCO")
        assert generate_product_code("Coca Cola", restaurant_b.id) == "COCO"


# =============================================================================
# API
# =============================================================================


class TestProductRoutes:

    def test_create_generates_code_and_usd_prices(self, client, admin_headers):
        resp = client.post(
            "/api/products",
            json={
                "name": "Coca Cola",
                "category": "soda",
                "price_crate_fc": "36000",
                "price_bottle_fc": "1800",
                "price_glass_fc": "600",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.json
        body = resp.json
        assert body["code"] == "COCO"
        assert body["price_bottle_fc"] == "1800.00"
        assert body["price_bottle_usd"] == "0.72"
        assert body["price_crate_usd"] == "14.40"
        assert body["exchange_rate"] == "2500.0000"

    def test_duplicate_code_conflicts(self, client, admin_headers, product_a):
        resp = client.post(
            "/api/products",
            json={"name": "Autre", "code": "PRI001"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_name_required(self, client, admin_headers):
        resp = client.post("/api/products", json={"category": "soda"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_invalid_bottles_per_crate(self, client, admin_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Mutzig", "bottles_per_crate": 18},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_list_with_search_and_categories(self, client, admin_headers, product_a, restaurant_a):
        create_product(restaurant_id=restaurant_a.id, name="Fanta", code="FAN001", category="soda")

        resp = client.get("/api/products?search=pri", headers=admin_headers)
        assert resp.status_code == 200
        assert [p["code"] for p in resp.json["items"]] == ["PRI001"]
        assert resp.json["categories"] == ["biere", "soda"]

    def test_low_stock_filter(self, client, admin_headers, product_a, restaurant_a):
        create_product(
            restaurant_id=restaurant_a.id,
            name="Fanta",
            code="FAN001",
            quantity_crates=0,
            quantity_bottles=3,
            stock_minimum=1,
        )
        resp = client.get("/api/products?low_stock=true", headers=admin_headers)
        assert [p["code"] for p in resp.json["items"]] == ["FAN001"]

    def test_update_crate_size_keeps_bottle_count(self, client, admin_headers, product_a):
        resp = client.put(
            f"/api/products/{product_a.id}",
            json={"bottles_per_crate": 12},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["total_bottles"] == 53
        assert (resp.json["quantity_crates"], resp.json["quantity_bottles"]) == (4, 5)

    def test_delete_is_soft(self, client, admin_headers, product_a, db_session):
        resp = client.delete(f"/api/products/{product_a.id}", headers=admin_headers)
        assert resp.status_code == 200

        product = db_session.get(Product, product_a.id)
        assert product.deleted_at is not None
        assert product.is_active is False

        listing = client.get("/api/products", headers=admin_headers)
        assert listing.json["count"] == 0

    def test_cashier_can_view_but_not_create(self, client, cashier_headers, product_a):
        assert client.get("/api/products", headers=cashier_headers).status_code == 200
        resp = client.post("/api/products", json={"name": "X"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_usd_prices_follow_configured_rate(self, app, client, admin_headers, product_a):
        app.config["EXCHANGE_RATE"] = "2000"
        try:
            resp = client.get(f"/api/products/{product_a.id}", headers=admin_headers)
        finally:
            app.config["EXCHANGE_RATE"] = "2500"
        assert resp.json["price_bottle_usd"] == "1.10"
        assert Decimal(resp.json["exchange_rate"]) == Decimal("2000")
