# RestoPOS API Tests - Multi-Tenant Isolation
#
# SECURITY TESTS: a second restaurant, created through the super-admin API,
# must never see or touch the JUVISY demo restaurant's data.

from typing import Dict

import pytest

from tests.conftest import APIClient, TestFailure, assert_response


class TestSecondRestaurant:

    @pytest.mark.smoke
    @pytest.mark.tenant
    def test_new_restaurant_starts_empty(self, beta_client: APIClient, second_restaurant: Dict):
        assert beta_client.restaurant_id == second_restaurant["restaurant"]["id"]

        response = beta_client.get("/api/products")
        assert_response(
            response, 200,
            scenario="Second restaurant lists its products",
            code_location="backend/restopos/routes/products.py:list_products"
        )
        if response.json()["items"]:
            raise TestFailure(
                scenario="A new restaurant has no products",
                expected="empty list",
                actual=f"{len(response.json()['items'])} products",
                likely_cause="Product listing not filtered by restaurant_id",
                code_location="backend/restopos/services/products_service.py:list_products",
                response=response
            )

    @pytest.mark.tenant
    @pytest.mark.parametrize("code", ["PRI001", "HEI001"])
    def test_foreign_product_is_404(self, beta_client: APIClient, juvisy_products: Dict[str, Dict], code: str):
        product_id = juvisy_products[code]["id"]
        for method, kwargs in (
            ("get", {}),
            ("put", {"json": {"name": "Volé"}}),
            ("delete", {}),
        ):
            response = getattr(beta_client, method)(f"/api/products/{product_id}", **kwargs)
            assert_response(
                response, 404,
                scenario=f"{method.upper()} another restaurant's product",
                code_location="backend/restopos/services/tenant_service.py:require_owned"
            )

    @pytest.mark.tenant
    def test_foreign_product_in_sale(self, beta_client: APIClient, juvisy_products: Dict[str, Dict]):
        response = beta_client.post("/api/sales", json={
            "items": [{"product_id": juvisy_products["PRI001"]["id"], "unit": "BOTTLE", "quantity": 1}],
        })
        assert_response(
            response, 404,
            scenario="Sell another restaurant's product",
            code_location="backend/restopos/services/sales_service.py:_resolve_products"
        )

    @pytest.mark.tenant
    def test_foreign_sale_is_404(self, admin_client: APIClient, beta_client: APIClient, juvisy_products: Dict[str, Dict]):
        created = admin_client.post("/api/sales", json={
            "items": [{"product_id": juvisy_products["COC001"]["id"], "unit": "BOTTLE", "quantity": 1}],
        })
        assert_response(
            created, 201,
            scenario="JUVISY sale",
            code_location="backend/restopos/routes/sales.py:create_sale_route"
        )
        sale_id = created.json()["id"]

        for path in (f"/api/sales/{sale_id}", f"/api/sales/{sale_id}/receipt"):
            assert_response(
                beta_client.get(path), 404,
                scenario=f"GET {path} from another restaurant",
                code_location="backend/restopos/routes/sales.py:_load_visible_sale"
            )

    @pytest.mark.tenant
    def test_users_are_scoped(self, beta_client: APIClient):
        response = beta_client.get("/api/users")
        assert_response(
            response, 200,
            scenario="Second restaurant lists users",
            code_location="backend/restopos/routes/users.py:list_users_route"
        )
        emails = [u["email"] for u in response.json()["items"]]
        assert not any(email.endswith("@juvisy.com") for email in emails)

    @pytest.mark.tenant
    def test_printer_fallback_is_not_the_other_restaurants(self, beta_client: APIClient):
        response = beta_client.get("/api/printers")
        assert_response(
            response, 200,
            scenario="Second restaurant lists printers",
            code_location="backend/restopos/routes/printers.py"
        )
        assert all(p["name"] != "Imprimante POS JUVISY" for p in response.json()["items"])
