"""
Order lifecycle and producer moderation.

`OrderService` owns every transition of an order:

    create_order            → pending (card, bank transfer) or confirmed (cash on delivery)
    confirm_payment         → paid + confirmed, stock committed once
    mark_payment_failed     → failed, only from pending
    refund_payment          → refunded + cancelled, stock restored once
    confirm_bank_transfer   → confirm_payment for bank transfer orders (admin)
    update_status           → fulfilment transitions by producers and admins

Payment transitions are conditional updates on the current payment status,
so replaying the same provider event is a no-op. Notifications are queued
with `transaction.on_commit` and never influence the outcome.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext as _
from rest_framework.exceptions import ValidationError

from core.constants import UserRole
from core.exceptions import (
    AuthorizationError,
    ConcurrencyConflictError,
    InsufficientStockError,
    NotFoundError,
    PaymentStateError,
)

from .constants import (
    DEFERRED_PAYMENT_METHODS,
    ORDER_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from .coupons import CouponService
from .models import Order, OrderItem, Producer, Product
from .notifications import OrderNotifier, ProducerNotifier
from .referrals import ReferralService
from .shipping import ShippingCalculator
from .stock import StockLedger
from .utils import quantize_money

logger = logging.getLogger(__name__)


class OrderLine:
    """A resolved cart line: catalog objects plus the current unit price."""

    def __init__(self, product, variant, quantity):
        self.product = product
        self.variant = variant
        self.quantity = quantity
        self.unit_price = variant.price if variant is not None else product.price

    @property
    def total(self):
        return quantize_money(self.unit_price * self.quantity)

    @property
    def name(self):
        if self.variant is not None:
            return f"{self.product.display_name} ({self.variant.display_name})"
        return self.product.display_name


class OrderService:
    @staticmethod
    def resolve_lines(items):
        """
        Turn ``[{"product_id", "quantity", "variant_id"?}, ...]`` into `OrderLine`s.

        Repeated product/variant pairs are merged; products with variants and
        no `variant_id` use their default variant. Stock is checked on the
        merged quantities.

        Raises:
            ValidationError: Empty cart or unknown variant.
            NotFoundError: Product missing, unavailable or from an inactive producer.
            InsufficientStockError: Not enough stock for a line.
        """
        if not items:
            raise ValidationError({"items": _("The order must contain at least one product.")})

        product_ids = {item["product_id"] for item in items}
        products = {
            product.pk: product
            for product in Product.objects.select_related("producer")
            .prefetch_related("variants")
            .filter(pk__in=product_ids)
        }

        merged = {}
        for item in items:
            product = products.get(item["product_id"])
            if product is None or not product.is_available or not product.producer.can_sell:
                raise NotFoundError(
                    _("Product %(id)s not found or not available.") % {"id": item["product_id"]}
                )

            variant = None
            variant_id = item.get("variant_id")
            if variant_id:
                variant = next(
                    (v for v in product.variants.all() if v.pk == variant_id), None
                )
                if variant is None:
                    raise ValidationError(
                        {"items": _("Variant %(id)s does not belong to %(name)s.")
                         % {"id": variant_id, "name": product.display_name}}
                    )
            elif product.has_variants:
                variant = product.get_default_variant()
                if variant is None:
                    raise NotFoundError(
                        _("%(name)s has no variant available.") % {"name": product.display_name}
                    )

            key = (product.pk, variant.pk if variant is not None else None)
            if key in merged:
                merged[key].quantity += item["quantity"]
            else:
                merged[key] = OrderLine(product, variant, item["quantity"])

        lines = list(merged.values())
        for line in lines:
            if not StockLedger.has_stock(line.product, line.quantity, line.variant):
                raise InsufficientStockError(
                    line.name,
                    available=StockLedger.available_quantity(line.product, line.variant),
                )
        return lines

    @staticmethod
    def create_order(
        customer,
        items,
        shipping_address,
        payment_method,
        coupon_code=None,
        notes="",
    ):
        """
        Validate a cart and persist the order with its line snapshots.

        Cash on delivery orders are confirmed and their stock deducted in
        the same transaction as the insert; a shortfall rolls everything
        back. Card and bank transfer orders stay pending until paid.

        Returns:
            Order
        """
        if not customer.is_email_verified:
            raise AuthorizationError(_("Verify your email address before placing orders."))

        with transaction.atomic():
            lines = OrderService.resolve_lines(items)
            subtotal = quantize_money(sum((line.total for line in lines), Decimal("0")))

            amounts_by_producer = {}
            for line in lines:
                producer = line.product.producer
                amounts_by_producer[producer] = (
                    amounts_by_producer.get(producer, Decimal("0")) + line.total
                )
            shipping_cost = ShippingCalculator.quote_order(
                amounts_by_producer,
                postal_code=shipping_address.get("postal_code"),
                city=shipping_address.get("city"),
            )

            coupon, discount = None, Decimal("0.00")
            if coupon_code:
                coupon, discount = CouponService.evaluate(
                    coupon_code,
                    customer,
                    subtotal,
                    lines=[(line.product, line.total) for line in lines],
                )

            cash_on_delivery = payment_method == PaymentMethod.CASH_ON_DELIVERY
            order = Order.objects.create(
                customer=customer,
                subtotal=subtotal,
                shipping_cost=shipping_cost,
                discount=discount,
                coupon=coupon,
                coupon_code=coupon.code if coupon else "",
                total=quantize_money(subtotal + shipping_cost - discount),
                status=OrderStatus.CONFIRMED if cash_on_delivery else OrderStatus.PENDING,
                payment_method=payment_method,
                payment_status=PaymentStatus.PENDING,
                shipping_address=shipping_address,
                notes=notes or "",
            )

            OrderItem.objects.bulk_create(
                [
                    OrderItem(
                        order=order,
                        product=line.product,
                        variant=line.variant,
                        producer=line.product.producer,
                        quantity=line.quantity,
                        price_at_purchase=line.unit_price,
                        product_name=line.product.display_name,
                        variant_name=line.variant.display_name if line.variant else "",
                        commission_rate=line.product.producer.get_current_commission_rate(),
                    )
                    for line in lines
                ]
            )

            if coupon is not None:
                CouponService.redeem(coupon, customer, order)

            if cash_on_delivery:
                StockLedger.commit_order(order)

            order_id = order.pk
            transaction.on_commit(lambda: OrderNotifier.order_created(order_id))

        order.refresh_from_db()
        logger.info(
            "Order %s created by %s: %s lines, total %s, %s",
            order.order_number,
            customer.pk,
            len(lines),
            order.total,
            payment_method,
        )
        return order

    @staticmethod
    def confirm_payment(order, payment_intent_id="") -> bool:
        """
        Record a successful payment. Idempotent.

        Moves the payment to paid (never from paid or refunded), the order
        from pending to confirmed, and commits the stock once. If the stock
        can no longer cover the lines, the payment is still recorded and
        the shortfall is logged for manual follow-up.

        Returns:
            bool: True if this call applied the transition.
        """
        now = timezone.now()
        with transaction.atomic():
            updates = {
                "payment_status": PaymentStatus.PAID,
                "paid_at": now,
                "version": F("version") + 1,
                "updated_at": now,
            }
            if payment_intent_id:
                updates["stripe_payment_intent_id"] = payment_intent_id
            applied = (
                Order.objects.filter(pk=order.pk)
                .exclude(payment_status__in=[PaymentStatus.PAID, PaymentStatus.REFUNDED])
                .update(**updates)
            )
            if not applied:
                logger.info("Payment for order %s already recorded", order.order_number)
                return False

            Order.objects.filter(pk=order.pk, status=OrderStatus.PENDING).update(
                status=OrderStatus.CONFIRMED
            )
            order.refresh_from_db()

            if order.status == OrderStatus.CANCELLED:
                logger.warning(
                    "Payment received for cancelled order %s, refund it manually",
                    order.order_number,
                )
            else:
                try:
                    StockLedger.commit_order(order)
                except InsufficientStockError as exc:
                    logger.error(
                        "Order %s paid but stock could not be committed: %s",
                        order.order_number,
                        exc.detail,
                    )

            order_id = order.pk
            transaction.on_commit(lambda: OrderNotifier.payment_received(order_id))

        order.refresh_from_db()
        logger.info("Payment confirmed for order %s", order.order_number)
        return True

    @staticmethod
    def mark_payment_failed(order) -> bool:
        applied = Order.objects.filter(
            pk=order.pk, payment_status=PaymentStatus.PENDING
        ).update(
            payment_status=PaymentStatus.FAILED,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        order.refresh_from_db()
        if applied:
            logger.info("Payment failed for order %s", order.order_number)
        return bool(applied)

    @staticmethod
    def refund_payment(order) -> bool:
        """Mark refunded, cancel, and give back committed stock once."""
        now = timezone.now()
        with transaction.atomic():
            applied = (
                Order.objects.filter(pk=order.pk)
                .exclude(payment_status=PaymentStatus.REFUNDED)
                .update(
                    payment_status=PaymentStatus.REFUNDED,
                    status=OrderStatus.CANCELLED,
                    cancelled_at=now,
                    version=F("version") + 1,
                    updated_at=now,
                )
            )
            if not applied:
                return False
            StockLedger.restore_order(order)
            order_id = order.pk
            transaction.on_commit(lambda: OrderNotifier.status_changed(order_id))

        order.refresh_from_db()
        logger.info("Order %s refunded and cancelled", order.order_number)
        return True

    @staticmethod
    def confirm_bank_transfer(order) -> bool:
        if order.payment_method != PaymentMethod.BANK_TRANSFER:
            raise PaymentStateError(_("This order is not paid by bank transfer."))
        if order.status == OrderStatus.CANCELLED:
            raise PaymentStateError(_("This order is cancelled."))
        return OrderService.confirm_payment(order)

    @staticmethod
    def can_manage(user, order) -> bool:
        if user.is_admin:
            return True
        producer = getattr(user, "producer_profile", None) if user.is_producer else None
        return producer is not None and order.items.filter(producer=producer).exists()

    @staticmethod
    def update_status(order, user, new_status, tracking_number=None, version=None):
        """
        Advance the fulfilment status of `order`.

        Raises:
            AuthorizationError: `user` is neither an admin nor a producer of a line.
            ConcurrencyConflictError: `version` is stale or the order changed meanwhile.
            ValidationError: The transition is not allowed.
            PaymentStateError: Manual confirmation of an unpaid card/bank order.
        """
        if not OrderService.can_manage(user, order):
            raise AuthorizationError(_("You cannot update this order."))
        if version is not None and version != order.version:
            raise ConcurrencyConflictError()

        current = order.status
        if new_status != current and new_status not in ORDER_TRANSITIONS[current]:
            raise ValidationError(
                {"status": _("Cannot change status from %(from)s to %(to)s.")
                 % {"from": current, "to": new_status}}
            )
        if (
            new_status == OrderStatus.CONFIRMED
            and current != OrderStatus.CONFIRMED
            and order.payment_method in DEFERRED_PAYMENT_METHODS
            and not order.is_paid
        ):
            raise PaymentStateError(
                _("This order can only be confirmed once its payment is received.")
            )

        now = timezone.now()
        updates = {"status": new_status, "version": F("version") + 1, "updated_at": now}
        if tracking_number is not None:
            updates["tracking_number"] = tracking_number
        if new_status != current:
            if new_status == OrderStatus.SHIPPED:
                updates["shipped_at"] = now
            elif new_status == OrderStatus.DELIVERED:
                updates["delivered_at"] = now
            elif new_status == OrderStatus.CANCELLED:
                updates["cancelled_at"] = now

        with transaction.atomic():
            updated = Order.objects.filter(
                pk=order.pk, version=order.version, status=current
            ).update(**updates)
            if not updated:
                raise ConcurrencyConflictError()
            if new_status == OrderStatus.CANCELLED and current != OrderStatus.CANCELLED:
                StockLedger.restore_order(order)
                if order.payment_status == PaymentStatus.PAID:
                    logger.warning(
                        "Paid order %s cancelled, refund it manually", order.order_number
                    )
            if new_status != current:
                order_id = order.pk
                transaction.on_commit(lambda: OrderNotifier.status_changed(order_id))

        order.refresh_from_db()
        logger.info(
            "Order %s status %s -> %s by %s", order.order_number, current, new_status, user.pk
        )
        return order


class ProducerService:
    """Admin moderation of producer profiles."""

    @staticmethod
    def register(user, referral_code=None, **fields):
        """
        Create an unapproved producer profile for `user`.

        Raises:
            ValidationError: The user already has a profile or the referral
                code does not belong to an active producer.
        """
        if Producer.objects.filter(user=user).exists():
            raise ValidationError(_("You already have a producer profile."))

        referrer = None
        if referral_code:
            referrer = ReferralService.find_referrer(referral_code)
            if referrer is None:
                raise ValidationError({"referral_code": _("Invalid referral code.")})

        with transaction.atomic():
            producer = Producer.objects.create(user=user, referred_by=referrer, **fields)
            if user.role != UserRole.PRODUCER and not user.is_admin:
                user.role = UserRole.PRODUCER
                user.save(update_fields=["role"])
        logger.info("Producer %s registered (referred by %s)", producer.pk, referrer)
        return producer

    @staticmethod
    def approve(producer):
        """Approve the producer and apply its referral bonus, once."""
        with transaction.atomic():
            approved = Producer.objects.filter(pk=producer.pk, is_approved=False).update(
                is_approved=True, approved_at=timezone.now()
            )
            ReferralService.apply_bonus(producer)
            if approved:
                email, name = producer.user.email, producer.business_name
                transaction.on_commit(lambda: ProducerNotifier.decision(email, name, True))
        producer.refresh_from_db()
        logger.info("Producer %s approved", producer.pk)
        return producer

    @staticmethod
    def reject(producer, reason=""):
        """Reject a pending application by deleting the profile."""
        if producer.is_approved:
            raise ValidationError(_("Approved producers can be suspended, not rejected."))
        email, name = producer.user.email, producer.business_name
        with transaction.atomic():
            producer.delete()
            transaction.on_commit(lambda: ProducerNotifier.decision(email, name, False, reason))
        logger.info("Producer application %s rejected", name)

    @staticmethod
    def suspend(producer, reason=""):
        producer.is_suspended = True
        producer.suspended_at = timezone.now()
        producer.suspend_reason = reason
        producer.save(update_fields=["is_suspended", "suspended_at", "suspend_reason", "updated_at"])
        logger.info("Producer %s suspended: %s", producer.pk, reason)
        return producer

    @staticmethod
    def reinstate(producer):
        producer.is_suspended = False
        producer.suspended_at = None
        producer.suspend_reason = ""
        producer.save(update_fields=["is_suspended", "suspended_at", "suspend_reason", "updated_at"])
        logger.info("Producer %s reinstated", producer.pk)
        return producer
