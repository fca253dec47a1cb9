"""
Model-level tests: generated identifiers, variant defaults, display helpers,
shipping quotes and cached review aggregates.
"""

import re
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import ValidationError

from store.factories import (
    CouponFactory,
    OrderFactory,
    ProducerFactory,
    ProductFactory,
    ProductVariantFactory,
    ReviewFactory,
    ShippingZoneFactory,
)
from store.models import localized, validate_localized_text
from store.shipping import ShippingCalculator
from store.utils import generate_order_number, generate_referral_code, quantize_money, to_cents


class TestUtils:
    def test_order_number_format(self):
        assert re.fullmatch(r"ORD-[0-9A-Z]+-[0-9A-Z]{5}", generate_order_number())

    def test_referral_code_prefix(self):
        assert generate_referral_code("Huerta del Sol").startswith("HUERTA")
        assert generate_referral_code("¡¡!!").startswith("PROD")

    def test_money_helpers(self):
        assert quantize_money(Decimal("2.675")) == Decimal("2.68")
        assert to_cents(Decimal("23.00")) == 2300
        assert to_cents(Decimal("0.105")) == 11

    def test_localized_falls_back_to_default_language(self):
        assert localized({"es": "Tomate", "en": "Tomato"}, "en") == "Tomato"
        assert localized({"es": "Tomate"}, "fr") == "Tomate"

    def test_localized_text_requires_spanish(self):
        with pytest.raises(DjangoValidationError):
            validate_localized_text({"en": "Tomato"})


@pytest.mark.django_db
class TestCatalogModels:
    def test_order_number_generated_on_save(self):
        order = OrderFactory()

        assert order.order_number.startswith("ORD-")

    def test_only_one_default_variant(self):
        first = ProductVariantFactory(is_default=True)
        second = ProductVariantFactory(product=first.product, is_default=True)

        first.refresh_from_db()
        assert first.is_default is False
        assert second.is_default is True

    def test_display_price_and_total_stock_follow_variants(self):
        first = ProductVariantFactory(price=Decimal("4.00"), stock=2)
        ProductVariantFactory(
            product=first.product, price=Decimal("7.00"), stock=3, is_default=True
        )
        product = first.product

        assert product.display_price == Decimal("7.00")
        assert product.total_stock == 5

    def test_display_price_without_variants(self):
        product = ProductFactory(price=Decimal("3.20"))

        assert product.display_price == Decimal("3.20")
        assert product.display_name.startswith("Producto")

    def test_coupon_code_is_upper_cased(self):
        assert CouponFactory(code=" summer ").code == "SUMMER"


@pytest.mark.django_db
class TestShippingCalculator:
    def test_default_cost_without_zones(self, settings):
        settings.MARKETPLACE = {**settings.MARKETPLACE, "DEFAULT_SHIPPING_COST": Decimal("2.5")}

        quote = ShippingCalculator.quote(ProducerFactory(), "28013", None, Decimal("10"))

        assert quote == {"cost": Decimal("2.50"), "zone": None, "estimated_days": None}

    def test_zone_matched_by_postal_code_or_city(self):
        zone = ShippingZoneFactory(postal_codes=[" 28001 "], cities=["Alcalá de Henares"])

        assert ShippingCalculator.quote(zone.producer, "28001", None, Decimal("1"))["zone"] == zone
        assert (
            ShippingCalculator.quote(zone.producer, None, "alcalá de henares", Decimal("1"))["zone"]
            == zone
        )

    def test_minimum_order_enforced(self):
        zone = ShippingZoneFactory(min_order_amount=Decimal("25"))

        with pytest.raises(ValidationError):
            ShippingCalculator.quote(zone.producer, "28001", None, Decimal("24.99"))

    def test_inactive_zones_are_ignored(self):
        zone = ShippingZoneFactory(is_active=False)

        quote = ShippingCalculator.quote(zone.producer, "99999", None, Decimal("5"))

        assert quote["zone"] is None

    def test_quote_order_sums_each_producer(self):
        first = ShippingZoneFactory(cost=Decimal("3.00"))
        second = ShippingZoneFactory(cost=Decimal("4.50"))

        total = ShippingCalculator.quote_order(
            {first.producer: Decimal("10"), second.producer: Decimal("10")}, "28013"
        )

        assert total == Decimal("7.50")


@pytest.mark.django_db
class TestReviewAggregates:
    def test_rating_and_count_refresh_on_save_and_delete(self):
        product = ProductFactory()
        ReviewFactory(product=product, rating=5)
        second = ReviewFactory(product=product, rating=4)
        ReviewFactory(product=product, rating=4)

        product.refresh_from_db()
        product.producer.refresh_from_db()
        assert product.rating == Decimal("4.3")
        assert product.total_reviews == 3
        assert product.producer.rating == Decimal("4.3")

        second.delete()

        product.refresh_from_db()
        assert product.rating == Decimal("4.5")
        assert product.total_reviews == 2
