import hashlib
import hmac
import json
import time
from decimal import Decimal

import pytest
import stripe

from core.exceptions import ExternalServiceError, PaymentGatewayUnavailable, PaymentStateError
from store.constants import OrderStatus, PaymentMethod, PaymentStatus
from store.factories import OrderFactory, OrderItemFactory, ProductFactory
from payments.gateway import (
    StripeGateway,
    UnconfiguredGateway,
    get_payment_gateway,
    session_order_id,
)


@pytest.fixture
def gateway():
    return StripeGateway(
        secret_key="sk_test_123",
        webhook_secret="whsec_test",
        frontend_url="http://shop.example.com/",
        currency="eur",
    )


@pytest.mark.django_db
class TestLineItems:
    def test_lines_follow_the_order_snapshot(self, gateway):
        order = OrderFactory(shipping_cost=Decimal("4.50"))
        product = ProductFactory(price=Decimal("3.25"), images=["https://img.example.com/a.jpg"])
        OrderItemFactory(order=order, product=product, quantity=3, variant_name="1 kg")

        lines = gateway.build_line_items(order)

        assert lines[0]["quantity"] == 3
        assert lines[0]["price_data"]["unit_amount"] == 325
        assert lines[0]["price_data"]["currency"] == "eur"
        assert lines[0]["price_data"]["product_data"]["name"].endswith("(1 kg)")
        assert lines[0]["price_data"]["product_data"]["images"] == [
            "https://img.example.com/a.jpg"
        ]
        assert lines[1]["price_data"]["product_data"]["name"] == "Shipping"
        assert lines[1]["price_data"]["unit_amount"] == 450

    def test_discounted_order_is_sent_as_one_line(self, gateway):
        order = OrderFactory(
            subtotal=Decimal("20.00"), discount=Decimal("2.00"), total=Decimal("18.00")
        )
        OrderItemFactory(order=order)

        lines = gateway.build_line_items(order)

        assert len(lines) == 1
        assert lines[0]["price_data"]["product_data"]["name"] == f"Order {order.order_number}"
        assert lines[0]["price_data"]["unit_amount"] == 1800


@pytest.mark.django_db
class TestCheckoutSession:
    def test_session_is_created_and_stored(self, gateway, mocker):
        create = mocker.patch(
            "payments.gateway.stripe.checkout.Session.create",
            return_value=mocker.Mock(id="cs_test_1", url="https://checkout.stripe.com/cs_test_1"),
        )
        order = OrderFactory()
        OrderItemFactory(order=order)

        result = gateway.create_checkout_session(order)

        assert result == {"session_id": "cs_test_1", "url": "https://checkout.stripe.com/cs_test_1"}
        order.refresh_from_db()
        assert order.stripe_checkout_session_id == "cs_test_1"
        kwargs = create.call_args.kwargs
        assert kwargs["metadata"]["order_id"] == str(order.pk)
        assert kwargs["payment_intent_data"]["metadata"]["order_id"] == str(order.pk)
        assert kwargs["customer_email"] == order.customer.email
        assert kwargs["success_url"].startswith(
            "http://shop.example.com/order-confirmation?session_id={CHECKOUT_SESSION_ID}"
        )
        assert kwargs["cancel_url"] == "http://shop.example.com/checkout?cancelled=true"

    @pytest.mark.parametrize(
        "attrs",
        [
            {"payment_status": PaymentStatus.PAID},
            {"payment_method": PaymentMethod.BANK_TRANSFER},
            {"status": OrderStatus.CANCELLED},
        ],
    )
    def test_unpayable_orders_are_rejected(self, gateway, mocker, attrs):
        create = mocker.patch("payments.gateway.stripe.checkout.Session.create")

        with pytest.raises(PaymentStateError):
            gateway.create_checkout_session(OrderFactory(**attrs))

        create.assert_not_called()

    def test_provider_error_is_wrapped(self, gateway, mocker):
        mocker.patch(
            "payments.gateway.stripe.checkout.Session.create",
            side_effect=stripe.APIConnectionError("network down"),
        )

        with pytest.raises(ExternalServiceError):
            gateway.create_checkout_session(OrderFactory())


@pytest.mark.django_db
class TestVerifyPayment:
    def test_paid_session_confirms_the_order(self, gateway):
        order = OrderFactory()
        session = stripe.checkout.Session.construct_from(
            {"id": "cs_1", "payment_status": "paid", "payment_intent": "pi_1"}, "sk_test_123"
        )

        result = gateway.verify_payment(session, order)

        order.refresh_from_db()
        assert result == {"payment_status": "paid", "order_id": str(order.pk)}
        assert order.payment_status == PaymentStatus.PAID
        assert order.status == OrderStatus.CONFIRMED
        assert order.stripe_payment_intent_id == "pi_1"

    def test_unpaid_session_changes_nothing(self, gateway):
        order = OrderFactory()
        session = stripe.checkout.Session.construct_from(
            {"id": "cs_2", "payment_status": "unpaid", "payment_intent": None}, "sk_test_123"
        )

        assert gateway.verify_payment(session, order)["payment_status"] == "unpaid"

        order.refresh_from_db()
        assert order.payment_status == PaymentStatus.PENDING

    def test_unknown_session_returns_none(self, gateway, mocker):
        mocker.patch(
            "payments.gateway.stripe.checkout.Session.retrieve",
            side_effect=stripe.InvalidRequestError("No such checkout session", "id"),
        )

        assert gateway.retrieve_session("cs_missing") is None


class TestConfiguration:
    def test_missing_secret_key_disables_card_payments(self, settings):
        settings.STRIPE_SECRET_KEY = ""

        gateway = get_payment_gateway()

        assert isinstance(gateway, UnconfiguredGateway)
        with pytest.raises(PaymentGatewayUnavailable):
            gateway.create_checkout_session(None)

    def test_gateway_is_built_from_settings(self, settings):
        settings.STRIPE_SECRET_KEY = "sk_test_abc"
        settings.STRIPE_WEBHOOK_SECRET = "whsec_abc"
        settings.STRIPE_CURRENCY = "usd"

        gateway = get_payment_gateway()

        assert gateway.secret_key == "sk_test_abc"
        assert gateway.webhook_secret == "whsec_abc"
        assert gateway.currency == "usd"


class TestSessionOrderId:
    def test_reads_metadata_from_a_stripe_session(self):
        session = stripe.checkout.Session.construct_from(
            {"id": "cs_1", "metadata": {"order_id": "8b1d7c1e-5f7c-4bde-9b7b-6a0f4d6e2a10"}},
            "sk_test_123",
        )

        assert session_order_id(session) == "8b1d7c1e-5f7c-4bde-9b7b-6a0f4d6e2a10"

    def test_missing_order_id_is_none(self):
        session = stripe.checkout.Session.construct_from(
            {"id": "cs_1", "metadata": {}}, "sk_test_123"
        )

        assert session_order_id(session) is None


class TestConstructEvent:
    def _signed(self, payload, secret):
        timestamp = int(time.time())
        digest = hmac.new(
            secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
        ).hexdigest()
        return f"t={timestamp},v1={digest}"

    def test_signed_payload_becomes_a_plain_dict(self, gateway):
        payload = json.dumps(
            {
                "id": "evt_1",
                "object": "event",
                "type": "checkout.session.completed",
                "data": {"object": {"id": "cs_1", "metadata": {}}},
            }
        )

        event = gateway.construct_event(payload.encode(), self._signed(payload, "whsec_test"))

        assert isinstance(event, dict)
        assert event["data"]["object"].get("payment_intent") is None
        assert event["data"]["object"].get("metadata") == {}

    def test_wrong_secret_is_rejected(self, gateway):
        payload = json.dumps({"id": "evt_1", "object": "event", "type": "charge.refunded"})

        with pytest.raises(stripe.SignatureVerificationError):
            gateway.construct_event(payload.encode(), self._signed(payload, "whsec_other"))
