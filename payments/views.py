import logging
import uuid

import stripe
from django.http import HttpResponse
from django.utils.translation import gettext as _
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from core.exceptions import NotFoundError
from core.utils import envelope_response
from store.models import Order

from .gateway import get_payment_gateway, session_order_id
from .serializers import (
    CheckoutSessionResponseSerializer,
    CheckoutSessionSerializer,
    OrderPaymentStatusSerializer,
    PaymentVerificationSerializer,
)
from .webhooks import WebhookReconciler

logger = logging.getLogger(__name__)


def _customer_order(user, order_id):
    """The order if it belongs to `user` (any order for admins)."""
    try:
        pk = uuid.UUID(str(order_id))
    except ValueError:
        raise NotFoundError(_("Order not found."))
    queryset = Order.objects.select_related("customer")
    if not user.is_admin:
        queryset = queryset.filter(customer=user)
    order = queryset.filter(pk=pk).first()
    if order is None:
        raise NotFoundError(_("Order not found."))
    return order


@extend_schema(tags=["Payments"])
class PaymentViewSet(ViewSet):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        request=CheckoutSessionSerializer,
        responses={
            200: CheckoutSessionResponseSerializer,
            400: OpenApiResponse(description="Order cannot be paid by card"),
            503: OpenApiResponse(description="Card payments not configured"),
        },
    )
    @action(detail=False, methods=["post"], url_path="checkout-session")
    def checkout_session(self, request):
        serializer = CheckoutSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = _customer_order(request.user, serializer.validated_data["order_id"])
        session = get_payment_gateway().create_checkout_session(order)
        return envelope_response(session, _("Checkout session created."))

    @extend_schema(responses={200: PaymentVerificationSerializer})
    @action(detail=False, methods=["get"], url_path=r"verify/(?P<session_id>[^/]+)")
    def verify(self, request, session_id=None):
        gateway = get_payment_gateway()
        session = gateway.retrieve_session(session_id)
        if session is None:
            raise NotFoundError(_("Checkout session not found."))
        order = _customer_order(request.user, session_order_id(session))
        return envelope_response(gateway.verify_payment(session, order))

    @extend_schema(
        request=None,
        responses={
            200: OpenApiResponse(description='{"received": true}'),
            400: OpenApiResponse(description="Webhook Error: <reason>"),
        },
    )
    @action(
        detail=False,
        methods=["post"],
        permission_classes=[AllowAny],
        authentication_classes=[],
    )
    def webhook(self, request):
        gateway = get_payment_gateway()
        signature = request.META.get("HTTP_STRIPE_SIGNATURE", "")
        try:
            event = gateway.construct_event(request.body, signature)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Rejected webhook: %s", exc)
            return HttpResponse(
                f"Webhook Error: {exc}",
                status=status.HTTP_400_BAD_REQUEST,
                content_type="text/plain",
            )

        logger.info("Webhook received: %s %s", event["type"], event["id"])
        WebhookReconciler().handle(event)
        return Response({"received": True})

    @extend_schema(responses={200: OrderPaymentStatusSerializer})
    @action(
        detail=False,
        methods=["get"],
        url_path=r"order/(?P<order_id>[^/]+)/status",
        url_name="order-status",
    )
    def order_status(self, request, order_id=None):
        order = _customer_order(request.user, order_id)
        return envelope_response(OrderPaymentStatusSerializer(order).data)
