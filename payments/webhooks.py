"""
Maps verified Stripe events onto order payment transitions.

Every event runs in its own transaction. The order transitions are
conditional updates, so a redelivered event that slips past the
`WebhookEvent` record is still a no-op.
"""

import logging
import uuid

from django.db import IntegrityError, transaction

from store.models import Order
from store.services import OrderService

from .models import WebhookEvent

logger = logging.getLogger(__name__)


class WebhookReconciler:
    handlers = {
        "checkout.session.completed": "session_completed",
        "checkout.session.async_payment_succeeded": "session_completed",
        "checkout.session.async_payment_failed": "payment_failed",
        "payment_intent.succeeded": "payment_succeeded",
        "payment_intent.payment_failed": "payment_failed",
        "charge.refunded": "charge_refunded",
    }

    def handle(self, event):
        """
        Reconcile one event and record it.

        Returns:
            str: the outcome stored on the `WebhookEvent`, or "duplicate".
        """
        event_id = event["id"]
        event_type = event["type"]
        if WebhookEvent.objects.filter(event_id=event_id).exists():
            logger.info("Webhook event %s already processed", event_id)
            return "duplicate"

        handler_name = self.handlers.get(event_type)
        if handler_name is None:
            logger.debug("Ignoring webhook event %s of type %s", event_id, event_type)
            return self._record(event_id, event_type, WebhookEvent.OUTCOME_IGNORED)

        obj = event["data"]["object"]
        try:
            with transaction.atomic():
                order = self.find_order(obj, event_type)
                if order is None:
                    logger.warning("Webhook %s (%s) matches no order", event_id, event_type)
                    outcome = WebhookEvent.OUTCOME_ORDER_NOT_FOUND
                else:
                    outcome = getattr(self, handler_name)(order, obj)
                WebhookEvent.objects.create(
                    event_id=event_id,
                    type=event_type,
                    outcome=outcome,
                    order_id=order.pk if order else None,
                )
        except IntegrityError:
            # A concurrent delivery of the same event won the insert.
            logger.info("Webhook event %s processed concurrently", event_id)
            return "duplicate"

        logger.info("Webhook %s (%s): %s", event_id, event_type, outcome)
        return outcome

    def _record(self, event_id, event_type, outcome):
        WebhookEvent.objects.get_or_create(
            event_id=event_id, defaults={"type": event_type, "outcome": outcome}
        )
        return outcome

    @staticmethod
    def _order_by_pk(value):
        try:
            pk = uuid.UUID(str(value))
        except ValueError:
            return None
        return Order.objects.filter(pk=pk).first()

    def find_order(self, obj, event_type):
        """Order referenced by the metadata, else by a stored provider id."""
        metadata = obj.get("metadata") or {}
        if metadata.get("order_id"):
            order = self._order_by_pk(metadata["order_id"])
            if order is not None:
                return order

        if event_type.startswith("checkout.session."):
            return Order.objects.filter(stripe_checkout_session_id=obj["id"]).first()
        if event_type.startswith("payment_intent."):
            return Order.objects.filter(stripe_payment_intent_id=obj["id"]).first()
        if obj.get("payment_intent"):
            return Order.objects.filter(stripe_payment_intent_id=obj["payment_intent"]).first()
        return None

    @staticmethod
    def _applied(changed):
        return WebhookEvent.OUTCOME_APPLIED if changed else WebhookEvent.OUTCOME_ALREADY_APPLIED

    def session_completed(self, order, session):
        # Delayed methods complete the session before the money arrives.
        if session.get("payment_status") not in ("paid", "no_payment_required"):
            return WebhookEvent.OUTCOME_IGNORED
        return self._applied(
            OrderService.confirm_payment(order, session.get("payment_intent") or "")
        )

    def payment_succeeded(self, order, intent):
        return self._applied(OrderService.confirm_payment(order, intent["id"]))

    def payment_failed(self, order, obj):
        return self._applied(OrderService.mark_payment_failed(order))

    def charge_refunded(self, order, charge):
        if charge.get("refunded") is False:
            logger.warning(
                "Partial refund on order %s left for manual handling", order.order_number
            )
            return WebhookEvent.OUTCOME_IGNORED
        return self._applied(OrderService.refund_payment(order))
