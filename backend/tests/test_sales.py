# Overview: Pytest coverage for dual-currency sales.

"""
Sales tests.

Verifies:
- Totals in FC and USD at the sale's exchange rate, change per currency
- Stock removal per line, atomic rollback when any line is short
- Editing a sale restores the previous lines' stock first
- Waiters only see their own sales
- Invoice numbers follow FACT-YYYYMMDD-XXXXXX
"""

import re
from datetime import datetime
from decimal import Decimal

import pytest

from restopos.factories import create_product
from restopos.models import Product, Sale, SaleItem
from restopos.services import sales_service
from restopos.services.sales_service import (
    SaleError,
    create_sale,
    generate_invoice_number,
    update_sale,
)


def _line(product, unit="BOTTLE", quantity=1, **extra):
    return {"product_id": product.id, "unit": unit, "quantity": quantity, **extra}


class TestCreateSale:

    def test_totals_and_change(self, db_session, product_a, cashier_a):
        sale = create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a, "CRATE", 1), _line(product_a, "BOTTLE", 2)],
            payment_mode="FC",
            paid_fc="60000",
        )
        assert sale.total_fc == Decimal("52400")
        assert sale.total_usd == Decimal("20.96")
        assert sale.change_fc == Decimal("7600")
        assert sale.change_usd == Decimal("0")
        assert sale.exchange_rate == Decimal("2500")
        assert len(sale.items) == 2

    def test_single_line_sale_is_stored(self, db_session, product_a, cashier_a):
        sale = create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a)],
            payment_mode="FC",
            paid_fc=5000,
        )
        sale_id = sale.id
        db_session.expire_all()

        stored = db_session.get(Sale, sale_id)
        assert stored.exchange_rate == Decimal("2500")
        assert stored.paid_fc == Decimal("5000")
        assert stored.change_fc == Decimal("2800")
        assert len(stored.items) == 1

    def test_unexpected_error_rolls_back(self, db_session, product_a, cashier_a, monkeypatch):
        def _fail(*args, **kwargs):
            raise RuntimeError("totals failed")

        monkeypatch.setattr(sales_service, "_apply_totals", _fail)
        with pytest.raises(RuntimeError):
            create_sale(
                restaurant_id=product_a.restaurant_id,
                user_id=cashier_a.id,
                items=[_line(product_a, "CRATE", 1)],
            )
        assert db_session.get(Product, product_a.id).total_bottles == 53
        assert db_session.query(Sale).count() == 0

    def test_stock_is_removed(self, db_session, product_a, cashier_a):
        create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a, "CRATE", 1), _line(product_a, "BOTTLE", 2)],
            paid_fc="52400",
        )
        product = db_session.get(Product, product_a.id)
        assert (product.quantity_crates, product.quantity_bottles) == (1, 3)

    def test_explicit_rate_drives_usd(self, db_session, product_a, cashier_a):
        sale = create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a)],
            payment_mode="USD",
            paid_usd="2",
            exchange_rate="2000",
        )
        assert sale.items[0].unit_price_usd == Decimal("1.10")
        assert sale.total_usd == Decimal("1.10")
        assert sale.change_usd == Decimal("0.90")

    def test_custom_unit_price(self, db_session, product_a, cashier_a):
        sale = create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a, quantity=3, unit_price_fc="2000")],
        )
        assert sale.total_fc == Decimal("6000")

    def test_shortage_rolls_back_every_line(self, db_session, product_a, restaurant_a, cashier_a):
        empty = create_product(
            restaurant_id=restaurant_a.id,
            name="Fanta",
            code="FAN001",
            quantity_crates=0,
            quantity_bottles=0,
        )
        with pytest.raises(SaleError) as exc:
            create_sale(
                restaurant_id=restaurant_a.id,
                user_id=cashier_a.id,
                items=[_line(product_a, "CRATE", 1), _line(empty)],
            )
        assert exc.value.status_code == 409
        assert exc.value.details["product_id"] == empty.id
        assert db_session.get(Product, product_a.id).total_bottles == 53
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0

    def test_foreign_product_is_404(self, db_session, product_b, restaurant_a, cashier_a):
        with pytest.raises(SaleError) as exc:
            create_sale(
                restaurant_id=restaurant_a.id,
                user_id=cashier_a.id,
                items=[_line(product_b)],
            )
        assert exc.value.status_code == 404

    def test_foreign_line_leaves_nothing_behind(self, db_session, product_a, product_b, restaurant_a, cashier_a):
        with pytest.raises(SaleError):
            create_sale(
                restaurant_id=restaurant_a.id,
                user_id=cashier_a.id,
                items=[_line(product_a, "CRATE", 1), _line(product_b)],
            )
        assert db_session.get(Product, product_a.id).total_bottles == 53
        assert db_session.query(Sale).count() == 0

    def test_inactive_product_is_refused(self, db_session, product_a, cashier_a):
        product_a.is_active = False
        db_session.commit()
        with pytest.raises(SaleError) as exc:
            create_sale(
                restaurant_id=product_a.restaurant_id,
                user_id=cashier_a.id,
                items=[_line(product_a)],
            )
        assert exc.value.status_code == 409

    @pytest.mark.parametrize(
        "items",
        [
            [],
            [{"product_id": 1, "unit": "BOTTLE", "quantity": 0}],
            [{"product_id": 1, "unit": "BOTTLE", "quantity": True}],
            [{"product_id": 1, "unit": "PACK", "quantity": 1}],
            [{"product_id": "1", "unit": "BOTTLE", "quantity": 1}],
        ],
    )
    def test_invalid_items(self, db_session, restaurant_a, items):
        with pytest.raises(SaleError) as exc:
            create_sale(restaurant_id=restaurant_a.id, user_id=None, items=items)
        assert exc.value.status_code == 400

    def test_invoice_number_format(self, db_session):
        number = generate_invoice_number(datetime(2026, 3, 9, 12, 0))
        assert re.fullmatch(r"FACT-20260309-[A-Z0-9]{6}", number)


class TestUpdateSale:

    def test_replaces_lines_and_restores_stock(self, db_session, product_a, cashier_a):
        sale = create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a, "CRATE", 1)],
        )
        updated = update_sale(
            sale_id=sale.id,
            restaurant_id=product_a.restaurant_id,
            items=[_line(product_a, "BOTTLE", 2)],
            paid_fc="5000",
        )
        assert updated.total_fc == Decimal("4400")
        assert len(updated.items) == 1
        assert db_session.get(Product, product_a.id).total_bottles == 51

    def test_keeps_recorded_rate(self, db_session, product_a, cashier_a):
        sale = create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a)],
            exchange_rate="2000",
        )
        updated = update_sale(
            sale_id=sale.id,
            restaurant_id=product_a.restaurant_id,
            items=[_line(product_a, quantity=2)],
        )
        assert updated.exchange_rate == Decimal("2000")
        assert updated.total_usd == Decimal("2.20")

    def test_failed_update_leaves_sale_intact(self, db_session, product_a, cashier_a):
        sale = create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a, "CRATE", 1)],
        )
        with pytest.raises(SaleError):
            update_sale(
                sale_id=sale.id,
                restaurant_id=product_a.restaurant_id,
                items=[_line(product_a, "CRATE", 5)],
            )
        sale = db_session.get(Sale, sale.id)
        assert sale.total_fc == Decimal("48000")
        assert db_session.get(Product, product_a.id).total_bottles == 29

    def test_foreign_product_update_leaves_stock(self, db_session, product_a, product_b, cashier_a):
        sale = create_sale(
            restaurant_id=product_a.restaurant_id,
            user_id=cashier_a.id,
            items=[_line(product_a, "CRATE", 1)],
        )
        with pytest.raises(SaleError) as exc:
            update_sale(
                sale_id=sale.id,
                restaurant_id=product_a.restaurant_id,
                items=[_line(product_b)],
            )
        assert exc.value.status_code == 404
        assert db_session.get(Product, product_a.id).total_bottles == 29
        assert len(db_session.get(Sale, sale.id).items) == 1


class TestSaleRoutes:

    def test_create_via_api(self, client, cashier_headers, product_a):
        resp = client.post(
            "/api/sales",
            json={
                "items": [{"product_id": product_a.id, "unit": "BOTTLE", "quantity": 2}],
                "payment_mode": "mixed",
                "paid_fc": "2000",
                "paid_usd": "1",
            },
            headers=cashier_headers,
        )
        assert resp.status_code == 201, resp.json
        body = resp.json
        assert body["payment_mode"] == "MIXED"
        assert body["total_fc"] == "4400.00"
        assert body["total_usd"] == "1.76"
        assert body["items"][0]["product_name"] == "Primus"

    def test_shortage_via_api(self, client, cashier_headers, product_a):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product_a.id, "unit": "CRATE", "quantity": 10}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 409
        assert resp.json["details"]["available_bottles"] == 53

    def test_list_today_with_statistics(self, client, cashier_headers, product_a):
        for _ in range(2):
            client.post(
                "/api/sales",
                json={"items": [{"product_id": product_a.id, "unit": "BOTTLE", "quantity": 1}]},
                headers=cashier_headers,
            )
        resp = client.get("/api/sales?period=day", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["statistics"]["sales_count"] == 2
        assert resp.json["statistics"]["total_sales_fc"] == "4400.00"

    def test_bad_period(self, client, cashier_headers):
        resp = client.get("/api/sales?period=decade", headers=cashier_headers)
        assert resp.status_code == 400

    def test_waiter_sees_only_own_sales(self, client, waiter_headers, cashier_headers, product_a):
        other = client.post(
            "/api/sales",
            json={"items": [{"product_id": product_a.id, "unit": "BOTTLE", "quantity": 1}]},
            headers=cashier_headers,
        ).json
        own = client.post(
            "/api/sales",
            json={"items": [{"product_id": product_a.id, "unit": "BOTTLE", "quantity": 1}]},
            headers=waiter_headers,
        ).json

        listing = client.get("/api/sales", headers=waiter_headers)
        assert [s["id"] for s in listing.json["items"]] == [own["id"]]
        assert client.get(f"/api/sales/{other['id']}", headers=waiter_headers).status_code == 404

    def test_waiter_cannot_edit(self, client, waiter_headers, product_a):
        own = client.post(
            "/api/sales",
            json={"items": [{"product_id": product_a.id, "unit": "BOTTLE", "quantity": 1}]},
            headers=waiter_headers,
        ).json
        resp = client.put(
            f"/api/sales/{own['id']}",
            json={"items": [{"product_id": product_a.id, "unit": "BOTTLE", "quantity": 2}]},
            headers=waiter_headers,
        )
        assert resp.status_code == 403

    def test_stock_role_cannot_sell(self, client, stock_headers, product_a):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product_a.id, "unit": "BOTTLE", "quantity": 1}]},
            headers=stock_headers,
        )
        assert resp.status_code == 403

    def test_super_admin_needs_restaurant_context(self, client, super_admin_headers):
        resp = client.get("/api/sales", headers=super_admin_headers)
        assert resp.status_code == 400
