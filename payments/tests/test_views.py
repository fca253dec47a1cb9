import pytest
import stripe
from django.urls import reverse
from rest_framework import status

from core.factories import AdminFactory, UserFactory
from store.constants import OrderStatus, PaymentMethod, PaymentStatus
from store.factories import OrderFactory, OrderItemFactory


@pytest.fixture
def stripe_settings(settings):
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    settings.STRIPE_WEBHOOK_SECRET = "whsec_test_secret"
    settings.FRONTEND_URL = "http://shop.example.com"
    return settings


def paid_session(order, **fields):
    data = {
        "id": "cs_test_9",
        "object": "checkout.session",
        "payment_status": "paid",
        "payment_intent": "pi_9",
        "metadata": {"order_id": str(order.pk)},
        **fields,
    }
    return stripe.checkout.Session.construct_from(data, "sk_test_123")


@pytest.mark.django_db
class TestCheckoutSessionEndpoint:
    def test_owner_starts_checkout(self, api_client, stripe_settings, mocker):
        mocker.patch(
            "payments.gateway.stripe.checkout.Session.create",
            return_value=mocker.Mock(id="cs_test_9", url="https://checkout.stripe.com/cs_test_9"),
        )
        order = OrderFactory()
        OrderItemFactory(order=order)
        api_client.force_authenticate(order.customer)

        response = api_client.post(
            reverse("payment-checkout-session"), {"order_id": str(order.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["success"] is True
        assert response.data["data"]["session_id"] == "cs_test_9"

    def test_other_customers_order_is_not_found(self, api_client, stripe_settings):
        order = OrderFactory()
        api_client.force_authenticate(UserFactory())

        response = api_client.post(
            reverse("payment-checkout-session"), {"order_id": str(order.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_bank_transfer_order_is_rejected(self, api_client, stripe_settings):
        order = OrderFactory(payment_method=PaymentMethod.BANK_TRANSFER)
        api_client.force_authenticate(order.customer)

        response = api_client.post(
            reverse("payment-checkout-session"), {"order_id": str(order.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["success"] is False

    def test_unconfigured_stripe_answers_503(self, api_client, settings):
        settings.STRIPE_SECRET_KEY = ""
        order = OrderFactory()
        api_client.force_authenticate(order.customer)

        response = api_client.post(
            reverse("payment-checkout-session"), {"order_id": str(order.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_anonymous_is_rejected(self, api_client, stripe_settings):
        response = api_client.post(
            reverse("payment-checkout-session"), {"order_id": str(OrderFactory().pk)}, format="json"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestVerifyEndpoint:
    def test_paid_session_confirms_before_webhook(self, api_client, stripe_settings, mocker):
        order = OrderFactory()
        mocker.patch(
            "payments.gateway.stripe.checkout.Session.retrieve",
            return_value=paid_session(order),
        )
        api_client.force_authenticate(order.customer)

        response = api_client.get(reverse("payment-verify", kwargs={"session_id": "cs_test_9"}))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["data"] == {"payment_status": "paid", "order_id": str(order.pk)}
        order.refresh_from_db()
        assert order.payment_status == PaymentStatus.PAID
        assert order.status == OrderStatus.CONFIRMED

    def test_session_of_another_customer_is_hidden(self, api_client, stripe_settings, mocker):
        order = OrderFactory()
        mocker.patch(
            "payments.gateway.stripe.checkout.Session.retrieve",
            return_value=paid_session(order),
        )
        api_client.force_authenticate(UserFactory())

        response = api_client.get(reverse("payment-verify", kwargs={"session_id": "cs_test_9"}))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        order.refresh_from_db()
        assert order.payment_status == PaymentStatus.PENDING

    def test_session_without_order_metadata_is_not_found(
        self, api_client, stripe_settings, mocker
    ):
        order = OrderFactory()
        mocker.patch(
            "payments.gateway.stripe.checkout.Session.retrieve",
            return_value=paid_session(order, metadata={}),
        )
        api_client.force_authenticate(order.customer)

        response = api_client.get(reverse("payment-verify", kwargs={"session_id": "cs_test_9"}))

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestOrderPaymentStatusEndpoint:
    def test_owner_polls_status(self, api_client):
        order = OrderFactory()
        api_client.force_authenticate(order.customer)

        response = api_client.get(
            reverse("payment-order-status", kwargs={"order_id": str(order.pk)})
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["data"]["payment_status"] == PaymentStatus.PENDING
        assert response.data["data"]["order_number"] == order.order_number

    def test_admin_sees_any_order(self, api_client):
        order = OrderFactory()
        api_client.force_authenticate(AdminFactory())

        response = api_client.get(
            reverse("payment-order-status", kwargs={"order_id": str(order.pk)})
        )

        assert response.status_code == status.HTTP_200_OK

    def test_stranger_gets_404(self, api_client):
        api_client.force_authenticate(UserFactory())

        response = api_client.get(
            reverse("payment-order-status", kwargs={"order_id": str(OrderFactory().pk)})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
