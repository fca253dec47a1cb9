"""
Order and producer notifications.

Every entry point takes primary keys, reloads what it needs and swallows
(after logging) anything that goes wrong, because it runs from
`transaction.on_commit` after the response-defining work is done.
"""

import logging

from django.conf import settings

from core.notifications import EmailSender, PushSender

from .constants import PaymentMethod
from .models import Order, Producer

logger = logging.getLogger(__name__)


def _order_url(order):
    return f"{settings.FRONTEND_URL}/orders/{order.pk}"


def _items_html(items):
    rows = "".join(
        f"<li>{item.quantity} × {item.product_name}"
        f"{f' ({item.variant_name})' if item.variant_name else ''}"
        f" = {item.line_total} €</li>"
        for item in items
    )
    return f"<ul>{rows}</ul>"


def bank_transfer_instructions(order):
    details = settings.MARKETPLACE["BANK_TRANSFER"]
    return {
        "beneficiary": details["BENEFICIARY"],
        "iban": details["IBAN"],
        "bic": details["BIC"],
        "amount": str(order.total),
        "reference": order.order_number,
    }


class OrderNotifier:
    @staticmethod
    def order_created(order_id):
        try:
            order = Order.objects.select_related("customer").get(pk=order_id)
            items = list(order.items.select_related("producer__user"))

            html = (
                f"<h2>Thank you for your order {order.order_number}</h2>"
                f"{_items_html(items)}"
                f"<p>Shipping: {order.shipping_cost} €<br>"
                f"Discount: {order.discount} €<br>"
                f"<strong>Total: {order.total} €</strong></p>"
            )
            if order.payment_method == PaymentMethod.BANK_TRANSFER:
                bank = bank_transfer_instructions(order)
                html += (
                    f"<p>Please transfer {bank['amount']} € to {bank['beneficiary']}, "
                    f"IBAN {bank['iban']} (BIC {bank['bic']}), "
                    f"reference <strong>{bank['reference']}</strong>.</p>"
                )
            EmailSender.send(
                order.customer.email, f"Order {order.order_number} received", html
            )

            producers = {}
            for item in items:
                producers.setdefault(item.producer, []).append(item)
            for producer, producer_items in producers.items():
                EmailSender.send(
                    producer.user.email,
                    f"New order {order.order_number}",
                    f"<h2>New order {order.order_number}</h2>{_items_html(producer_items)}",
                )
                PushSender.send_to_user(
                    producer.user_id,
                    "New order",
                    f"Order {order.order_number}: {len(producer_items)} product(s)",
                    url=_order_url(order),
                )
        except Exception:
            logger.exception("Could not send order-created notifications for %s", order_id)

    @staticmethod
    def status_changed(order_id):
        try:
            order = Order.objects.select_related("customer").get(pk=order_id)
            status_label = order.get_status_display()
            body = f"Your order {order.order_number} is now {status_label.lower()}."
            if order.tracking_number:
                body += f" Tracking number: {order.tracking_number}."
            EmailSender.send(
                order.customer.email,
                f"Order {order.order_number}: {status_label}",
                f"<p>{body}</p>",
            )
            PushSender.send_to_user(
                order.customer_id, "Order update", body, url=_order_url(order)
            )
        except Exception:
            logger.exception("Could not send status notification for %s", order_id)

    @staticmethod
    def payment_received(order_id):
        try:
            order = Order.objects.select_related("customer").get(pk=order_id)
            EmailSender.send(
                order.customer.email,
                f"Payment received for {order.order_number}",
                f"<p>We received your payment of {order.total} €. "
                f"Your order is confirmed.</p>",
            )
            PushSender.send_to_user(
                order.customer_id,
                "Payment received",
                f"Order {order.order_number} is confirmed.",
                url=_order_url(order),
            )
            for producer in Producer.objects.filter(
                pk__in=order.producer_ids()
            ).select_related("user"):
                PushSender.send_to_user(
                    producer.user_id,
                    "Order paid",
                    f"Order {order.order_number} has been paid, you can prepare it.",
                    url=_order_url(order),
                )
        except Exception:
            logger.exception("Could not send payment notification for %s", order_id)


class ProducerNotifier:
    @staticmethod
    def decision(email, business_name, approved, reason=""):
        try:
            if approved:
                subject = "Your producer account is approved"
                html = f"<p>{business_name} can now publish products on the marketplace.</p>"
            else:
                subject = "Your producer application"
                html = f"<p>We could not approve {business_name}.</p>"
                if reason:
                    html += f"<p>{reason}</p>"
            EmailSender.send(email, subject, html)
        except Exception:
            logger.exception("Could not notify producer %s", business_name)
