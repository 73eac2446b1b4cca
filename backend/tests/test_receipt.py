# Overview: Pytest coverage for receipt rendering and printing.

"""
Receipt tests.

Verifies:
- Fixed column layout and centred header/footer at the paper width
- Currency visibility per payment mode (USD only for amounts > 0)
- Header values from the customization, falling back to the printer
- Printing marks the sale printed, previewing does not
"""

from restopos.models import Printer, RestaurantCustomization, Sale
from restopos.services.receipt_service import (
    DEFAULT_FOOTER,
    DEFAULT_RESTAURANT_NAME,
    center,
    format_receipt,
    pad_left,
    pad_right,
)
from restopos.services.sales_service import create_sale


def _sale(product, *, unit="BOTTLE", quantity=1, **kwargs):
    return create_sale(
        restaurant_id=product.restaurant_id,
        user_id=None,
        items=[{"product_id": product.id, "unit": unit, "quantity": quantity}],
        **kwargs,
    )


def _totals(label, value):
    return label.ljust(50) + value.rjust(30)


class TestCenter:

    def test_odd_padding_goes_right(self):
        assert center("abc", 8) == "  abc   "

    def test_longer_than_width_is_unchanged(self):
        assert center("abcdef", 4) == "abcdef"


class TestPadding:

    def test_pads_to_width(self):
        assert pad_right("Total", 8) == "Total   "
        assert pad_left("42", 5) == "   42"

    def test_cuts_to_width(self):
        assert pad_right("Reste à payer FC:", 5) == "Reste"
        assert pad_left("1 234 567 FC", 5) == "1 234"


class TestFormatReceipt:

    def test_fc_layout_without_printer(self, db_session, product_a):
        sale = _sale(product_a, unit="CRATE", payment_mode="FC", paid_fc="50000")
        lines = format_receipt(sale).split("\n")

        assert lines[0] == center(DEFAULT_RESTAURANT_NAME, 80)
        assert lines[1] == "=" * 80
        assert f"Facture: {sale.invoice_number}" in lines
        assert "Article".ljust(30) + "Qté".rjust(10) + "Prix".rjust(20) + "Total".rjust(20) in lines
        assert "Primus".ljust(30) + "1".rjust(10) + "48 000 FC".rjust(20) + "48 000 FC".rjust(20) in lines
        assert _totals("Total FC:", "48 000 FC") in lines
        assert _totals("Payé FC:", "50 000 FC") in lines
        assert _totals("Rendu FC:", "2 000 FC") in lines
        assert center(DEFAULT_FOOTER, 80) in lines
        assert not any("USD" in line for line in lines)

    def test_usd_mode_hides_fc(self, db_session, product_a):
        sale = _sale(product_a, payment_mode="USD", paid_usd="1")
        text = format_receipt(sale)

        assert "Primus".ljust(30) + "$0.88" in text.split("\n")
        assert _totals("Total USD:", "$0.88") in text
        assert _totals("Rendu USD:", "$0.12") in text
        assert "Total FC" not in text
        assert "FC:" not in text

    def test_mixed_hides_zero_usd_payment(self, db_session, product_a):
        sale = _sale(product_a, payment_mode="MIXED", paid_fc="1000")
        text = format_receipt(sale)

        assert _totals("Total FC:", "2 200 FC") in text
        assert _totals("Total USD:", "$0.88") in text
        assert "Payé USD" not in text
        assert _totals("Reste à payer FC:", "1 200 FC") in text
        assert " / $0.88" in text

    def test_long_names_are_truncated(self, db_session, product_a):
        product_a.name = "Bière artisanale du Katanga extra forte"
        db_session.commit()
        sale = _sale(product_a, payment_mode="FC")
        text = format_receipt(sale)
        assert "Bière artisanale du Katanga " in text
        assert "extra forte" not in text

    def test_printer_width_and_header(self, db_session, product_a):
        printer = Printer(
            restaurant_id=product_a.restaurant_id,
            name="Imprimante POS Test",
            connection_type="usb",
            paper_width=58,
            restaurant_name="Chez Mama",
            restaurant_address="12 Avenue Kasa-Vubu",
            restaurant_phone="+243 990 000 001",
            receipt_message="A bientôt !",
        )
        db_session.add(printer)
        db_session.commit()

        lines = format_receipt(_sale(product_a), printer).split("\n")
        assert lines[0] == center("Chez Mama", 58)
        assert lines[1] == center("12 Avenue Kasa-Vubu", 58)
        assert lines[2] == center("Tél: +243 990 000 001", 58)
        assert lines[3] == "=" * 58
        assert center("A bientôt !", 58) in lines

    def test_customization_wins_over_printer(self, db_session, product_a, restaurant_a):
        customization = RestaurantCustomization(
            restaurant_id=restaurant_a.id,
            address="5 Rue du Marché",
            city="Lubumbashi",
            country="RDC",
            website="www.chezmama.cd",
        )
        printer = Printer(
            restaurant_id=restaurant_a.id,
            name="P",
            connection_type="wifi",
            restaurant_name="Ancien nom",
            restaurant_address="Ancienne adresse",
        )
        db_session.add_all([customization, printer])
        db_session.commit()

        lines = format_receipt(_sale(product_a), printer, customization).split("\n")
        assert lines[0] == center("Chez Mama", 80)
        assert lines[1] == center("5 Rue du Marché Lubumbashi, RDC", 80)
        assert center("www.chezmama.cd", 80) in lines
        assert "Ancienne adresse" not in "\n".join(lines)

    def test_printer_street_takes_customization_suffixes(self, db_session, product_a, restaurant_a):
        customization = RestaurantCustomization(
            restaurant_id=restaurant_a.id,
            postal_code="0000",
            city="Lubumbashi",
            country="RDC",
        )
        printer = Printer(
            restaurant_id=restaurant_a.id,
            name="P",
            connection_type="wifi",
            restaurant_address="12 Avenue Kasa-Vubu",
        )
        db_session.add_all([customization, printer])
        db_session.commit()

        lines = format_receipt(_sale(product_a), printer, customization).split("\n")
        assert lines[1] == center("12 Avenue Kasa-Vubu, 0000 Lubumbashi, RDC", 80)

    def test_suffixes_alone_make_no_address(self, db_session, product_a, restaurant_a):
        customization = RestaurantCustomization(restaurant_id=restaurant_a.id, city="Lubumbashi")
        db_session.add(customization)
        db_session.commit()

        lines = format_receipt(_sale(product_a), None, customization).split("\n")
        assert lines[1] == center("Tél: +243 990 000 000", 80)
        assert "Lubumbashi" not in "\n".join(lines)


class TestReceiptRoutes:

    def test_preview_does_not_mark_printed(self, client, cashier_headers, db_session, product_a):
        sale = _sale(product_a)
        resp = client.get(f"/api/sales/{sale.id}/receipt", headers=cashier_headers)
        assert resp.status_code == 200
        assert sale.invoice_number in resp.json["receipt"]
        assert db_session.get(Sale, sale.id).is_printed is False

    def test_print_marks_printed_with_default_printer(self, client, cashier_headers, db_session, product_a):
        db_session.add(Printer(
            restaurant_id=product_a.restaurant_id,
            name="Imprimante POS Caisse",
            connection_type="bluetooth",
            is_default=True,
            receipt_message="Merci et à bientôt",
        ))
        db_session.commit()
        sale = _sale(product_a)

        resp = client.post(f"/api/sales/{sale.id}/print", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["printer"]["name"] == "Imprimante POS Caisse"
        assert "Merci et à bientôt" in resp.json["receipt"]
        assert resp.json["sale"]["is_printed"] is True

        sale = db_session.get(Sale, sale.id)
        assert sale.is_printed is True
        assert sale.printed_at is not None

    def test_foreign_sale_is_404(self, client, admin_b_headers, product_a):
        sale = _sale(product_a)
        resp = client.post(f"/api/sales/{sale.id}/print", headers=admin_b_headers)
        assert resp.status_code == 404

    def test_stock_role_cannot_print(self, client, stock_headers, product_a):
        sale = _sale(product_a)
        resp = client.post(f"/api/sales/{sale.id}/print", headers=stock_headers)
        assert resp.status_code == 403
