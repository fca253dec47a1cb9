"""
Coupon validation and redemption.

`evaluate` is read-only and backs both `POST /coupons/validate/` and order
creation. `redeem` runs inside the order transaction: it increments
`used_count` with a conditional update that refuses to exceed `max_uses`
and appends a `CouponUsage` row.
"""

import logging
from decimal import Decimal

from django.db.models import F
from django.utils.translation import gettext as _
from rest_framework.exceptions import ValidationError

from .constants import OrderStatus
from .models import Coupon, CouponUsage, Order

logger = logging.getLogger(__name__)


def _reject(message):
    raise ValidationError({"coupon_code": message})


class CouponService:
    @staticmethod
    def evaluate(code, user, subtotal, lines=None):
        """
        Check that `user` may apply `code` to an order and compute the discount.

        Args:
            code (str): Coupon code, case-insensitive.
            user: The customer.
            subtotal (Decimal): Order subtotal.
            lines (iterable[tuple[Product, Decimal]], optional): Products and
                line totals, used to restrict the discount to eligible lines.

        Returns:
            tuple[Coupon, Decimal]: The coupon and the discount amount.

        Raises:
            ValidationError: Under `coupon_code`, describing why it cannot be used.
        """
        coupon = Coupon.objects.filter(code=(code or "").strip().upper()).first()
        if coupon is None:
            _reject(_("Invalid coupon code."))
        if not coupon.is_valid():
            _reject(_("This coupon is expired or no longer available."))
        if not coupon.can_be_used_by(user):
            _reject(_("You have already used this coupon."))
        if (
            coupon.first_order_only
            and Order.objects.filter(customer=user)
            .exclude(status=OrderStatus.CANCELLED)
            .exists()
        ):
            _reject(_("This coupon is only valid on your first order."))

        subtotal = Decimal(subtotal)
        if subtotal < coupon.min_order_amount:
            _reject(
                _("The minimum order for this coupon is %(amount)s.")
                % {"amount": coupon.min_order_amount}
            )

        eligible = subtotal
        if lines is not None:
            eligible = sum(
                (amount for product, amount in lines if coupon.applies_to(product)),
                Decimal("0"),
            )
            if eligible <= 0:
                _reject(_("This coupon does not apply to the products in your order."))

        return coupon, coupon.calculate_discount(subtotal, eligible)

    @staticmethod
    def redeem(coupon, user, order):
        """
        Record one use of `coupon`. Must run inside the order's transaction.

        Raises:
            ValidationError: The global cap was reached by a concurrent order.
        """
        queryset = Coupon.objects.filter(pk=coupon.pk)
        if coupon.max_uses is not None:
            queryset = queryset.filter(used_count__lt=F("max_uses"))
        if not queryset.update(used_count=F("used_count") + 1):
            _reject(_("This coupon has reached its usage limit."))

        CouponUsage.objects.create(coupon=coupon, user=user, order=order)
        logger.info("Coupon %s redeemed on order %s", coupon.code, order.order_number)
