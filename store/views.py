"""
Marketplace API viewsets.

Catalog
    - /products/                       ProductViewSet
    - /products/{id}/variants/         ProductVariantViewSet
    - /products/{id}/reviews/          ProductReviewViewSet
    - /producers/                      ProducerViewSet (onboarding, moderation, stats)
    - /referrals/                      ReferralViewSet
Commerce
    - /shipping-zones/                 ShippingZoneViewSet (+ calculate)
    - /coupons/                        CouponViewSet (+ validate)
    - /reviews/                        ReviewViewSet
    - /orders/                         OrderViewSet (+ status, confirm-bank-transfer)
    - /reports/sales/                  ReportViewSet

Order endpoints answer with the ``{success, message, data}`` envelope; the
catalog endpoints return plain resources.
"""

import logging

from django.db.models import F, ProtectedError
from django.shortcuts import get_object_or_404
from django.utils.translation import gettext as _
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet, ModelViewSet, ReadOnlyModelViewSet, ViewSet

from core.exceptions import AuthorizationError, ConcurrencyConflictError, NotFoundError
from core.permissions import IsEmailVerified, IsMarketplaceAdmin, IsProducerUser
from core.utils import envelope_response

from .constants import PaymentMethod
from .coupons import CouponService
from .filter import OrderFilter, ProducerFilter, ProductFilter, ReviewFilter
from .models import Coupon, Order, Producer, Product, ProductVariant, Review, ShippingZone
from .notifications import bank_transfer_instructions
from .permissions import IsProfileOwnerOrReadOnly, IsSellerOrReadOnly, ReviewPermission
from .reports import CommissionCalculator, producer_stats
from .referrals import ReferralService
from .serializers import (
    CouponSerializer,
    CouponValidateSerializer,
    DateRangeSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    ProducerCreateSerializer,
    ProducerModerationSerializer,
    ProducerPrivateSerializer,
    ProducerSerializer,
    ProductDetailsSerializer,
    ProductListSerializer,
    ProductVariantSerializer,
    ReviewSerializer,
    ShippingQuoteSerializer,
    ShippingZoneSerializer,
)
from .services import OrderService, ProducerService
from .shipping import ShippingCalculator

logger = logging.getLogger(__name__)


def _own_producer(user):
    producer = getattr(user, "producer_profile", None) if user.is_authenticated else None
    if producer is None:
        raise NotFoundError(_("You do not have a producer profile."))
    return producer


@extend_schema(tags=["Products"])
class ProductViewSet(ModelViewSet):
    """
    Product catalog.

    Endpoints:
    ---------
    - GET /products/
        Available products of active producers. Producers also see their own
        hidden products; admins see everything.
        Filters: ?category=&producer=&price_min=&price_max=&rating=&in_stock=

    - POST /products/ (approved producer)
        Example Request:
        {"name": {"es": "Miel de romero"}, "category": "honey", "unit": "unit",
         "price": "8.50", "stock": 30}

    - PATCH /products/{id}/ (owner or admin)
        Optional "version" in the body; a stale value answers 409.

    - DELETE /products/{id}/
        Hides the product (is_available=false). Admins delete products that
        were never ordered.
    """

    permission_classes = [IsSellerOrReadOnly]
    filterset_class = ProductFilter
    http_method_names = ["get", "post", "patch", "delete", "options", "head"]
    serializer_action_classes = {
        "list": ProductListSerializer,
    }

    def get_serializer_class(self):
        return self.serializer_action_classes.get(self.action, ProductDetailsSerializer)

    def get_queryset(self):
        queryset = Product.objects.select_related("producer").prefetch_related("variants")
        user = self.request.user
        if user.is_authenticated and user.is_admin:
            return queryset.with_annotations()
        visible = queryset.visible()
        producer = getattr(user, "producer_profile", None) if user.is_authenticated else None
        if producer is not None:
            visible = visible | queryset.filter(producer=producer)
        return visible.with_annotations()

    def perform_update(self, serializer):
        version = self.request.data.get("version")
        instance = serializer.instance
        if version is not None and str(version) != str(instance.version):
            raise ConcurrencyConflictError()
        product = serializer.save()
        Product.objects.filter(pk=product.pk).update(version=F("version") + 1)
        product.refresh_from_db(fields=["version"])

    def perform_destroy(self, instance):
        if self.request.user.is_admin:
            try:
                instance.delete()
                return
            except ProtectedError:
                logger.info("Product %s has orders, hiding instead of deleting", instance.pk)
        Product.objects.filter(pk=instance.pk).update(
            is_available=False, version=F("version") + 1
        )


@extend_schema(tags=["Products"])
class ProductVariantViewSet(ModelViewSet):
    """
    Variants of one product: /products/{product_pk}/variants/.

    Creating the first variant switches the product to variant-based price and stock.
    """

    serializer_class = ProductVariantSerializer
    permission_classes = [IsSellerOrReadOnly]
    http_method_names = ["get", "post", "patch", "delete", "options", "head"]

    def get_product(self):
        return get_object_or_404(Product, pk=self.kwargs["product_pk"])

    def get_queryset(self):
        return ProductVariant.objects.select_related("product").filter(
            product_id=self.kwargs["product_pk"]
        )

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if "product_pk" in self.kwargs:
            context["product"] = self.get_product()
        return context

    def perform_create(self, serializer):
        product = serializer.context["product"]
        self.check_object_permissions(self.request, product)
        serializer.save()


@extend_schema(tags=["Reviews"])
class ProductReviewViewSet(ReadOnlyModelViewSet):
    """Reviews of one product: /products/{product_pk}/reviews/."""

    serializer_class = ReviewSerializer
    permission_classes = [AllowAny]
    filterset_class = ReviewFilter

    def get_queryset(self):
        return Review.objects.select_related("user").filter(product_id=self.kwargs["product_pk"])


@extend_schema(tags=["Producers"])
class ProducerViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    GenericViewSet,
):
    """
    Producer onboarding, profiles and moderation.

    Endpoints:
    ---------
    - GET /producers/                 Active producers (admins: all, filterable).
    - POST /producers/                Create own profile, optionally with "referral_code".
    - GET /producers/me/              Own profile with commission and referral data.
    - GET/PATCH /producers/{id}/      Public profile / owner update.
    - GET /producers/{id}/stats/      Owner or admin statistics.
    - POST /producers/{id}/approve/   Admin; applies the referral bonus once.
    - POST /producers/{id}/reject/    Admin; deletes a pending profile.
    - POST /producers/{id}/suspend/   Admin; {"reason": "..."}.
    - POST /producers/{id}/reinstate/ Admin.
    """

    permission_classes = [IsProfileOwnerOrReadOnly]
    filterset_class = ProducerFilter
    http_method_names = ["get", "post", "patch", "options", "head"]

    def get_queryset(self):
        queryset = Producer.objects.select_related("user")
        user = self.request.user
        if user.is_authenticated and user.is_admin:
            return queryset
        if self.action in ("list",):
            return queryset.active()
        own = queryset.filter(user_id=user.pk) if user.is_authenticated else queryset.none()
        return (queryset.active() | own).distinct()

    def get_serializer_class(self):
        if self.action == "create":
            return ProducerCreateSerializer
        if self.action in ("suspend", "reject"):
            return ProducerModerationSerializer
        user = self.request.user
        if self.action in ("partial_update", "update", "me"):
            return ProducerPrivateSerializer
        if self.action == "retrieve" and user.is_authenticated:
            obj = self.get_object()
            if user.is_admin or obj.user_id == user.pk:
                return ProducerPrivateSerializer
        if self.action == "list" and user.is_authenticated and user.is_admin:
            return ProducerPrivateSerializer
        return ProducerSerializer

    def create(self, request, *args, **kwargs):
        serializer = ProducerCreateSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        producer = serializer.save()
        return Response(ProducerPrivateSerializer(producer).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], permission_classes=[IsProducerUser])
    def me(self, request):
        return Response(ProducerPrivateSerializer(_own_producer(request.user)).data)

    @action(detail=True, methods=["get"], permission_classes=[IsAuthenticated])
    def stats(self, request, pk=None):
        producer = self.get_object()
        if not (request.user.is_admin or producer.user_id == request.user.pk):
            raise AuthorizationError()
        return Response(producer_stats(producer))

    @action(detail=True, methods=["post"], permission_classes=[IsMarketplaceAdmin])
    def approve(self, request, pk=None):
        producer = ProducerService.approve(self.get_object())
        return envelope_response(ProducerPrivateSerializer(producer).data, _("Producer approved."))

    @action(detail=True, methods=["post"], permission_classes=[IsMarketplaceAdmin])
    def reject(self, request, pk=None):
        serializer = ProducerModerationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ProducerService.reject(self.get_object(), serializer.validated_data.get("reason", ""))
        return envelope_response(None, _("Producer application rejected."))

    @action(detail=True, methods=["post"], permission_classes=[IsMarketplaceAdmin])
    def suspend(self, request, pk=None):
        serializer = ProducerModerationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        producer = ProducerService.suspend(
            self.get_object(), serializer.validated_data.get("reason", "")
        )
        return envelope_response(ProducerPrivateSerializer(producer).data, _("Producer suspended."))

    @action(detail=True, methods=["post"], permission_classes=[IsMarketplaceAdmin])
    def reinstate(self, request, pk=None):
        producer = ProducerService.reinstate(self.get_object())
        return envelope_response(ProducerPrivateSerializer(producer).data, _("Producer reinstated."))


@extend_schema(tags=["Producers"])
class ReferralViewSet(ViewSet):
    """
    - GET /referrals/validate/{code}/  Public check of a referral code.
    - GET /referrals/mine/             Own code, referral count and bonus window.
    """

    permission_classes = [AllowAny]

    @action(
        detail=False,
        methods=["get"],
        url_path=r"validate/(?P<code>[A-Za-z0-9]+)",
        url_name="validate",
    )
    def validate_code(self, request, code=None):
        referrer = ReferralService.find_referrer(code)
        if referrer is None:
            return Response(
                {"valid": False, "detail": _("Invalid referral code.")},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({"valid": True, "business_name": referrer.business_name})

    @action(detail=False, methods=["get"], permission_classes=[IsProducerUser])
    def mine(self, request):
        producer = _own_producer(request.user)
        return Response(
            {
                "referral_code": producer.referral_code,
                "referral_count": producer.referral_count,
                "referral_bonus_applied": producer.referral_bonus_applied,
                "special_commission_rate": producer.special_commission_rate,
                "special_commission_until": producer.special_commission_until,
                "current_commission_rate": producer.get_current_commission_rate(),
                "referred_producers": [
                    {"id": str(p.pk), "business_name": p.business_name, "is_approved": p.is_approved}
                    for p in producer.referrals.all()
                ],
            }
        )


@extend_schema(tags=["Shipping"])
class ShippingZoneViewSet(ModelViewSet):
    """
    Shipping zones of the authenticated producer (admins see all).

    - POST /shipping-zones/calculate/
        Public quote: {"producer_id": "...", "postal_code": "28001", "amount": "25.00"}
    """

    serializer_class = ShippingZoneSerializer
    permission_classes = [IsSellerOrReadOnly, IsAuthenticated]
    http_method_names = ["get", "post", "patch", "delete", "options", "head"]

    def get_queryset(self):
        user = self.request.user
        queryset = ShippingZone.objects.select_related("producer")
        if user.is_admin:
            return queryset
        return queryset.filter(producer__user=user)

    @extend_schema(
        request=ShippingQuoteSerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(
                description="Quote.",
                examples={
                    "quote": OpenApiExample(
                        "Quote",
                        value={"cost": "4.50", "zone": "Madrid capital", "estimated_days": 2},
                    )
                },
            )
        },
    )
    @action(detail=False, methods=["post"], permission_classes=[AllowAny])
    def calculate(self, request):
        serializer = ShippingQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        producer = Producer.objects.active().filter(pk=data["producer_id"]).first()
        if producer is None:
            raise NotFoundError(_("Producer not found."))
        quote = ShippingCalculator.quote(
            producer, data.get("postal_code"), data.get("city"), data["amount"]
        )
        return Response(
            {
                "cost": quote["cost"],
                "zone": quote["zone"].name if quote["zone"] else None,
                "estimated_days": quote["estimated_days"],
            }
        )


@extend_schema(tags=["Coupons"])
class CouponViewSet(ModelViewSet):
    """
    Admin coupon management, plus:

    - POST /coupons/validate/ (authenticated)
        {"code": "WELCOME10", "subtotal": "40.00"} → discount preview.
    """

    queryset = Coupon.objects.prefetch_related("applicable_producers")
    serializer_class = CouponSerializer
    permission_classes = [IsMarketplaceAdmin]
    filterset_fields = ["is_active", "discount_type"]

    @extend_schema(request=CouponValidateSerializer)
    @action(detail=False, methods=["post"], permission_classes=[IsAuthenticated])
    def validate(self, request):
        serializer = CouponValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        coupon, discount = CouponService.evaluate(
            serializer.validated_data["code"],
            request.user,
            serializer.validated_data["subtotal"],
        )
        return envelope_response(
            {
                "code": coupon.code,
                "discount_type": coupon.discount_type,
                "discount_value": coupon.discount_value,
                "discount": discount,
            },
            _("Coupon applied."),
        )


@extend_schema(tags=["Reviews"])
class ReviewViewSet(ModelViewSet):
    """
    - GET /reviews/?product=&producer=&rating=
    - POST /reviews/ {"order": "...", "product": "...", "rating": 5, "comment": "..."}
    - PATCH/DELETE /reviews/{id}/ (author or admin)
    """

    serializer_class = ReviewSerializer
    permission_classes = [ReviewPermission]
    filterset_class = ReviewFilter
    http_method_names = ["get", "post", "patch", "delete", "options", "head"]
    queryset = Review.objects.select_related("user")


@extend_schema(tags=["Orders"])
class OrderViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    GenericViewSet,
):
    """
    Orders API.

    Permissions:
    - Customers with a verified email create orders and read their own.
    - Producers read orders containing their products and advance them.
    - Admins read everything, advance any order and record bank transfers.

    Endpoints:
    ---------
    - POST /orders/
        Example Request:
        {
            "items": [{"product_id": "uuid", "quantity": 2}],
            "shipping_address": {"first_name": "Ana", "last_name": "García",
                                 "street": "Calle Mayor 1", "city": "Madrid",
                                 "postal_code": "28013", "country": "ES"},
            "payment_method": "cash_on_delivery",
            "coupon_code": "WELCOME10"
        }

    - PUT /orders/{id}/status/
        {"status": "shipped", "tracking_number": "1Z999", "version": 3}

    - POST /orders/{id}/confirm-bank-transfer/ (admin)
    """

    serializer_class = OrderSerializer
    filterset_class = OrderFilter

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticated(), IsEmailVerified()]
        if self.action == "confirm_bank_transfer":
            return [IsMarketplaceAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return (
            Order.objects.visible_to(self.request.user)
            .select_related("customer")
            .prefetch_related("items")
        )

    @extend_schema(request=OrderCreateSerializer, responses={status.HTTP_201_CREATED: OrderSerializer})
    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        order = serializer.save()

        data = OrderSerializer(order).data
        if order.payment_method == PaymentMethod.BANK_TRANSFER:
            data["bank_transfer"] = bank_transfer_instructions(order)
        return envelope_response(data, _("Order created."), status=status.HTTP_201_CREATED)

    @extend_schema(request=OrderStatusUpdateSerializer, responses={status.HTTP_200_OK: OrderSerializer})
    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request, pk=None):
        order = self.get_object()
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = OrderService.update_status(
            order,
            request.user,
            data["status"],
            tracking_number=data.get("tracking_number"),
            version=data.get("version"),
        )
        return envelope_response(OrderSerializer(order).data, _("Order status updated."))

    @action(detail=True, methods=["post"], url_path="confirm-bank-transfer")
    def confirm_bank_transfer(self, request, pk=None):
        order = self.get_object()
        applied = OrderService.confirm_bank_transfer(order)
        message = _("Payment recorded.") if applied else _("Payment was already recorded.")
        return envelope_response(OrderSerializer(order).data, message)


@extend_schema(tags=["Reports"])
class ReportViewSet(ViewSet):
    """
    - GET /reports/sales/?start=2025-01-01T00:00:00Z&end=2025-02-01T00:00:00Z
    """

    permission_classes = [IsMarketplaceAdmin]

    @extend_schema(parameters=[DateRangeSerializer])
    @action(detail=False, methods=["get"])
    def sales(self, request):
        serializer = DateRangeSerializer(data=request.query_params)
        if not serializer.is_valid():
            raise ValidationError(serializer.errors)
        report = CommissionCalculator.sales_report(
            serializer.validated_data.get("start"), serializer.validated_data.get("end")
        )
        return envelope_response(report)
