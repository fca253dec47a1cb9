"""
Stripe Checkout adapter.

`get_payment_gateway()` builds the gateway from settings on every call. When
no secret key is configured an `UnconfiguredGateway` is returned instead and
every card operation answers 503.
"""

import json
import logging

import stripe
from django.conf import settings

from core.exceptions import ExternalServiceError, PaymentGatewayUnavailable, PaymentStateError
from store.constants import OrderStatus, PaymentMethod, PaymentStatus
from store.models import Order
from store.services import OrderService
from store.utils import to_cents

logger = logging.getLogger(__name__)


def ensure_payable_by_card(order):
    if order.payment_status == PaymentStatus.PAID:
        raise PaymentStateError("Order is already paid.")
    if order.payment_method != PaymentMethod.CARD:
        raise PaymentStateError("Order is not paid by card.")
    if order.status == OrderStatus.CANCELLED or order.payment_status == PaymentStatus.REFUNDED:
        raise PaymentStateError("Order is cancelled.")


class StripeGateway:
    def __init__(self, secret_key, webhook_secret, frontend_url, currency="eur"):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.frontend_url = frontend_url.rstrip("/")
        self.currency = currency

    def _line(self, name, amount, quantity=1, images=None):
        product_data = {"name": name}
        if images:
            product_data["images"] = images
        return {
            "price_data": {
                "currency": self.currency,
                "product_data": product_data,
                "unit_amount": to_cents(amount),
            },
            "quantity": quantity,
        }

    def build_line_items(self, order):
        """
        Line items from the order snapshot.

        Stripe rejects negative amounts, so a discounted order is sent as a
        single line for its total.
        """
        if order.discount > 0:
            return [self._line(f"Order {order.order_number}", order.total)]

        lines = []
        for item in order.items.select_related("product"):
            name = item.product_name
            if item.variant_name:
                name = f"{name} ({item.variant_name})"
            images = item.product.images[:1] or None
            lines.append(self._line(name, item.price_at_purchase, item.quantity, images))
        if order.shipping_cost > 0:
            lines.append(self._line("Shipping", order.shipping_cost))
        return lines

    def create_checkout_session(self, order):
        ensure_payable_by_card(order)
        metadata = {"order_id": str(order.pk), "order_number": order.order_number}
        try:
            session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=self.build_line_items(order),
                customer_email=order.customer.email,
                client_reference_id=order.order_number,
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
                success_url=(
                    f"{self.frontend_url}/order-confirmation"
                    f"?session_id={{CHECKOUT_SESSION_ID}}&order_id={order.pk}"
                ),
                cancel_url=f"{self.frontend_url}/checkout?cancelled=true",
            )
        except stripe.StripeError as exc:
            logger.error("Checkout session failed for order %s: %s", order.order_number, exc)
            raise ExternalServiceError("The payment provider rejected the request.")

        Order.objects.filter(pk=order.pk).update(stripe_checkout_session_id=session.id)
        order.stripe_checkout_session_id = session.id
        logger.info("Checkout session %s created for order %s", session.id, order.order_number)
        return {"session_id": session.id, "url": session.url}

    def retrieve_session(self, session_id):
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.secret_key)
        except stripe.InvalidRequestError:
            return None
        except stripe.StripeError as exc:
            logger.error("Could not retrieve checkout session %s: %s", session_id, exc)
            raise ExternalServiceError("The payment provider could not be reached.")
        return session

    def verify_payment(self, session, order):
        """
        Apply a paid session to its order when the webhook has not arrived yet.

        Returns:
            dict: ``payment_status`` as reported by the provider and ``order_id``.
        """
        if session.payment_status == "paid":
            OrderService.confirm_payment(order, session.payment_intent or "")
        return {"payment_status": session.payment_status, "order_id": str(order.pk)}

    def construct_event(self, payload, signature):
        """
        Verify the signature and return the event as a plain dict.

        Raises:
            ValueError: The payload is not valid JSON.
            stripe.SignatureVerificationError: The signature does not match.
        """
        stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        return json.loads(payload)


class UnconfiguredGateway:
    """Stands in when card payments are not configured."""

    def _unavailable(self, *args, **kwargs):
        raise PaymentGatewayUnavailable()

    create_checkout_session = _unavailable
    retrieve_session = _unavailable
    verify_payment = _unavailable
    construct_event = _unavailable


def get_payment_gateway():
    if not settings.STRIPE_SECRET_KEY:
        return UnconfiguredGateway()
    return StripeGateway(
        secret_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        frontend_url=settings.FRONTEND_URL,
        currency=settings.STRIPE_CURRENCY,
    )


def session_order_id(session):
    metadata = getattr(session, "metadata", None)
    if metadata is None:
        return None
    try:
        return metadata["order_id"] or None
    except KeyError:
        return None
