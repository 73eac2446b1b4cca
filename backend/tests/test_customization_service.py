import unittest
from flask import Flask

from restopos.extensions import db
from restopos.models import Restaurant, RestaurantCustomization
from restopos.services import customization_service
from restopos.services.tenant_service import TenantAccessError
from restopos.typography import STORAGE_KEY
from restopos.validation import ValidationError


class CustomizationServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from restopos import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(RestaurantCustomization).delete()
        db.session.query(Restaurant).delete()
        db.session.commit()

        self.restaurant = Restaurant(name="Chez Mama", slug="chez-mama", is_active=True)
        self.other = Restaurant(name="Le Baobab", slug="le-baobab", is_active=True)
        db.session.add_all([self.restaurant, self.other])
        db.session.commit()

    def test_first_update_creates_row(self):
        self.assertIsNone(customization_service.get_customization(self.restaurant.id))

        customization = customization_service.update_customization(
            restaurant_id=self.restaurant.id,
            payload={"city": "Kinshasa", "primary_color": "#AA3300"},
        )

        self.assertEqual(customization.city, "Kinshasa")
        self.assertEqual(customization.primary_color, "#AA3300")
        self.assertEqual(customization.social_links, {})

    def test_restaurant_id_in_payload_is_ignored(self):
        customization = customization_service.update_customization(
            restaurant_id=self.restaurant.id,
            payload={"restaurant_id": self.other.id, "city": "Goma"},
        )
        self.assertEqual(customization.restaurant_id, self.restaurant.id)
        self.assertIsNone(customization_service.get_customization(self.other.id))

    def test_blank_text_clears_field(self):
        customization_service.update_customization(
            restaurant_id=self.restaurant.id,
            payload={"website": "https://chez-mama.cd"},
        )
        customization = customization_service.update_customization(
            restaurant_id=self.restaurant.id,
            payload={"website": "   "},
        )
        self.assertIsNone(customization.website)

    def test_invalid_values_rejected(self):
        for payload in ({"primary_color": "red"}, {"font_size": "huge"}, {"website": "chez-mama"}):
            with self.assertRaises(ValidationError):
                customization_service.update_customization(restaurant_id=self.restaurant.id, payload=payload)

    def test_unknown_field_rejected(self):
        with self.assertRaises(ValidationError):
            customization_service.update_customization(
                restaurant_id=self.restaurant.id,
                payload={"slug": "pirate"},
            )

    def test_missing_restaurant(self):
        with self.assertRaises(TenantAccessError):
            customization_service.get_or_create_customization(99999)

    def test_typography_layers(self):
        storage = {STORAGE_KEY: '{"font_size": "large"}'}

        local = customization_service.resolve_restaurant_typography(self.restaurant.id, storage)
        self.assertEqual(local["source"], "local")
        self.assertEqual(local["font_size"], "large")
        self.assertEqual(local["font_family"], "Instrument Sans")

        customization_service.update_customization(
            restaurant_id=self.restaurant.id,
            payload={"font_family": "Poppins", "font_size": "small"},
        )
        server = customization_service.resolve_restaurant_typography(self.restaurant.id, storage)
        self.assertEqual(server["source"], "server")
        self.assertEqual(server["font_family"], "Poppins")
        self.assertEqual(server["font_size"], "small")

    def test_typography_default(self):
        result = customization_service.resolve_restaurant_typography(None, {})
        self.assertEqual(result["source"], "default")

    def test_malformed_preference_reports_default(self):
        result = customization_service.resolve_restaurant_typography(None, {STORAGE_KEY: "{not json"})
        self.assertEqual(result["source"], "default")
        self.assertEqual(result["font_family"], "Instrument Sans")
        self.assertEqual(result["font_size"], "normal")

    def test_preference_update_merges_stored_value(self):
        storage = {STORAGE_KEY: '{"font_family": "Poppins"}'}
        settings, stored = customization_service.update_typography_preference(storage, {"font_size": "large"})
        self.assertEqual(settings.font_family, "Poppins")
        self.assertEqual(settings.font_size, "large")
        self.assertIn('"large"', stored)


if __name__ == "__main__":
    unittest.main()
