from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core.factories import UserFactory
from store.constants import DiscountType, OrderStatus, ProductCategory
from store.coupons import CouponService
from store.factories import CouponFactory, OrderFactory, ProducerFactory, ProductFactory
from store.models import Coupon


class TestCalculateDiscount:
    """Pure arithmetic on unsaved coupons."""

    def test_percentage_is_capped(self):
        coupon = Coupon(
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
            max_discount_amount=Decimal("5"),
        )

        assert coupon.calculate_discount(Decimal("100")) == Decimal("5.00")

    def test_below_minimum_gives_nothing(self):
        coupon = Coupon(
            discount_type=DiscountType.FIXED,
            discount_value=Decimal("5"),
            min_order_amount=Decimal("30"),
        )

        assert coupon.calculate_discount(Decimal("29.99")) == Decimal("0.00")

    def test_fixed_discount_never_exceeds_subtotal(self):
        coupon = Coupon(discount_type=DiscountType.FIXED, discount_value=Decimal("50"))

        assert coupon.calculate_discount(Decimal("12.40")) == Decimal("12.40")

    def test_percentage_rounds_half_up_to_cents(self):
        coupon = Coupon(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("15"))

        assert coupon.calculate_discount(Decimal("10.10")) == Decimal("1.52")


@pytest.mark.django_db
class TestCouponService:
    def test_unknown_code(self):
        with pytest.raises(ValidationError) as exc_info:
            CouponService.evaluate("MISSING", UserFactory(), Decimal("50"))

        assert "coupon_code" in exc_info.value.detail

    def test_expired_coupon(self):
        CouponFactory(code="OLD", valid_until=timezone.now() - timedelta(days=1),
                      valid_from=timezone.now() - timedelta(days=10))

        with pytest.raises(ValidationError):
            CouponService.evaluate("old", UserFactory(), Decimal("50"))

    def test_per_user_limit(self):
        coupon = CouponFactory(code="ONCE")
        user = UserFactory()
        CouponService.redeem(coupon, user, OrderFactory(customer=user))

        with pytest.raises(ValidationError):
            CouponService.evaluate("ONCE", user, Decimal("50"))

    def test_first_order_only_ignores_cancelled_orders(self):
        CouponFactory(code="FIRST", first_order_only=True)
        user = UserFactory()
        OrderFactory(customer=user, status=OrderStatus.CANCELLED)

        coupon, discount = CouponService.evaluate("FIRST", user, Decimal("50"))
        assert discount == Decimal("5.00")

        OrderFactory(customer=user)
        with pytest.raises(ValidationError):
            CouponService.evaluate("FIRST", user, Decimal("50"))

    def test_discount_only_on_eligible_lines(self):
        CouponFactory(code="HONEY", applicable_categories=[ProductCategory.HONEY])
        honey = ProductFactory(category=ProductCategory.HONEY)
        eggs = ProductFactory(category=ProductCategory.EGGS)

        _, discount = CouponService.evaluate(
            "HONEY",
            UserFactory(),
            Decimal("100"),
            lines=[(honey, Decimal("40")), (eggs, Decimal("60"))],
        )

        assert discount == Decimal("4.00")

    def test_no_eligible_lines_is_rejected(self):
        coupon = CouponFactory(code="LOCAL")
        coupon.applicable_producers.add(ProducerFactory())
        product = ProductFactory()

        with pytest.raises(ValidationError):
            CouponService.evaluate(
                "LOCAL", UserFactory(), Decimal("20"), lines=[(product, Decimal("20"))]
            )

    def test_redeem_respects_global_cap(self):
        coupon = CouponFactory(code="LAST", max_uses=1, max_uses_per_user=5)
        user = UserFactory()

        CouponService.redeem(coupon, user, OrderFactory(customer=user))
        with pytest.raises(ValidationError):
            CouponService.redeem(coupon, user, OrderFactory(customer=user))

        coupon.refresh_from_db()
        assert coupon.used_count == 1
