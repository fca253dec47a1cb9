"""
Serializers for the catalog, producers, shipping, coupons, reviews and orders.

Request serializers validate shape only; business rules (stock, prices,
coupons, shipping coverage) are enforced by the services they hand off to.
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import serializers
from rest_framework.exceptions import ValidationError

from .constants import OrderStatus, PaymentMethod
from .models import (
    Coupon,
    Order,
    OrderItem,
    Producer,
    Product,
    ProductVariant,
    Review,
    ShippingZone,
)
from .services import OrderService, ProducerService


class ProducerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Producer
        fields = ["id", "business_name", "city", "region", "rating"]


class ProducerSerializer(serializers.ModelSerializer):
    """Public producer profile."""

    class Meta:
        model = Producer
        fields = [
            "id",
            "business_name",
            "description",
            "city",
            "region",
            "rating",
            "total_reviews",
            "is_approved",
            "created_at",
        ]
        read_only_fields = ["rating", "total_reviews", "is_approved", "created_at"]


class ProducerPrivateSerializer(ProducerSerializer):
    """Profile as seen by its owner and by admins: commission and referral data."""

    current_commission_rate = serializers.SerializerMethodField()
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta(ProducerSerializer.Meta):
        fields = ProducerSerializer.Meta.fields + [
            "email",
            "phone",
            "is_suspended",
            "suspended_at",
            "suspend_reason",
            "approved_at",
            "commission_rate",
            "special_commission_rate",
            "special_commission_until",
            "current_commission_rate",
            "referral_code",
            "referral_count",
            "referral_bonus_applied",
        ]
        read_only_fields = [
            field
            for field in fields
            if field not in ("business_name", "description", "city", "region", "phone")
        ]

    def get_current_commission_rate(self, obj):
        return str(obj.get_current_commission_rate())


class ProducerCreateSerializer(serializers.ModelSerializer):
    referral_code = serializers.CharField(
        write_only=True, required=False, allow_blank=True, max_length=20
    )

    class Meta:
        model = Producer
        fields = ["id", "business_name", "description", "city", "region", "phone", "referral_code"]
        read_only_fields = ["id"]

    def create(self, validated_data):
        referral_code = validated_data.pop("referral_code", None)
        return ProducerService.register(
            self.context["request"].user, referral_code=referral_code, **validated_data
        )


class ProducerModerationSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class ProductVariantSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            "id",
            "name",
            "display_name",
            "price",
            "compare_at_price",
            "stock",
            "weight",
            "weight_unit",
            "sku",
            "is_default",
            "is_available",
            "position",
        ]

    def create(self, validated_data):
        product = self.context["product"]
        if not product.has_variants:
            Product.objects.filter(pk=product.pk).update(has_variants=True)
        return ProductVariant.objects.create(product=product, **validated_data)


class ProductListSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)
    display_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    total_stock = serializers.IntegerField(read_only=True)
    producer = ProducerSummarySerializer(read_only=True)
    cover_image = serializers.SerializerMethodField()
    sales_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Product
        fields = [
            "id",
            "producer",
            "name",
            "display_name",
            "category",
            "unit",
            "display_price",
            "currency",
            "total_stock",
            "has_variants",
            "is_available",
            "cover_image",
            "rating",
            "total_reviews",
            "sales_count",
        ]

    def get_cover_image(self, obj):
        return obj.images[0] if obj.images else None


class ProductDetailsSerializer(serializers.ModelSerializer):
    """
    Full product representation, also used for create and update.

    The producer is taken from the authenticated user's profile on create.
    Variants are managed through ``/products/{id}/variants/``.
    """

    display_name = serializers.CharField(read_only=True)
    display_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    total_stock = serializers.IntegerField(read_only=True)
    producer = ProducerSummarySerializer(read_only=True)
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "producer",
            "name",
            "display_name",
            "description",
            "category",
            "unit",
            "price",
            "display_price",
            "currency",
            "stock",
            "total_stock",
            "has_variants",
            "variants",
            "is_available",
            "images",
            "rating",
            "total_reviews",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["rating", "total_reviews", "version", "created_at", "updated_at"]

    def validate_images(self, value):
        if not isinstance(value, list) or not all(isinstance(url, str) for url in value):
            raise ValidationError(_("Images must be a list of URLs."))
        return value

    def create(self, validated_data):
        producer = self.context["request"].user.producer_profile
        return Product.objects.create(producer=producer, **validated_data)


class ShippingZoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShippingZone
        fields = [
            "id",
            "producer",
            "name",
            "postal_codes",
            "cities",
            "cost",
            "min_order_amount",
            "estimated_days",
            "is_active",
            "created_at",
        ]
        read_only_fields = ["producer", "created_at"]

    def validate(self, attrs):
        postal_codes = attrs.get("postal_codes", getattr(self.instance, "postal_codes", []))
        cities = attrs.get("cities", getattr(self.instance, "cities", []))
        if not postal_codes and not cities:
            raise ValidationError(_("A zone needs at least one postal code or city."))
        return attrs

    def create(self, validated_data):
        producer = self.context["request"].user.producer_profile
        return ShippingZone.objects.create(producer=producer, **validated_data)


class ShippingQuoteSerializer(serializers.Serializer):
    producer_id = serializers.UUIDField()
    postal_code = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(required=False, allow_blank=True)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)

    def validate(self, attrs):
        if not attrs.get("postal_code") and not attrs.get("city"):
            raise ValidationError(_("Provide a postal code or a city."))
        return attrs


class CouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "description",
            "discount_type",
            "discount_value",
            "min_order_amount",
            "max_discount_amount",
            "first_order_only",
            "is_active",
            "valid_from",
            "valid_until",
            "max_uses",
            "used_count",
            "max_uses_per_user",
            "applicable_categories",
            "applicable_producers",
            "created_at",
        ]
        read_only_fields = ["used_count", "created_at"]

    def validate_code(self, value):
        return value.strip().upper()

    def validate(self, attrs):
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        value = attrs.get("discount_value", getattr(self.instance, "discount_value", None))
        if discount_type == "percentage" and value is not None and value > 100:
            raise ValidationError({"discount_value": _("A percentage cannot exceed 100.")})
        valid_from = attrs.get("valid_from", getattr(self.instance, "valid_from", None))
        valid_until = attrs.get("valid_until", getattr(self.instance, "valid_until", None))
        if valid_from and valid_until and valid_until <= valid_from:
            raise ValidationError({"valid_until": _("Must be after valid_from.")})
        return attrs


class CouponValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=30)
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class ReviewSerializer(serializers.ModelSerializer):
    """
    Create and display reviews.

    On create the order must belong to the author, contain the product and
    be delivered, and the author must not have reviewed the product yet.
    Only `rating` and `comment` can change afterwards.
    """

    user_name = serializers.CharField(source="user.full_name", read_only=True)

    class Meta:
        model = Review
        fields = [
            "id",
            "user_name",
            "product",
            "producer",
            "order",
            "rating",
            "comment",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["producer", "created_at", "updated_at"]
        # Duplicate reviews are reported by validate() with a clearer message
        validators = []

    def validate(self, attrs):
        if self.instance is not None:
            if "product" in attrs or "order" in attrs:
                raise ValidationError(_("Only rating and comment can be changed."))
            return attrs

        user = self.context["request"].user
        order, product = attrs["order"], attrs["product"]
        if order.customer_id != user.pk:
            raise ValidationError({"order": _("This order does not belong to you.")})
        if not order.items.filter(product=product).exists():
            raise ValidationError({"product": _("This product is not part of the order.")})
        if order.status != OrderStatus.DELIVERED:
            raise ValidationError({"order": _("You can review products once delivered.")})
        if Review.objects.filter(user=user, product=product).exists():
            raise ValidationError({"product": _("You have already reviewed this product.")})
        return attrs

    def create(self, validated_data):
        product = validated_data["product"]
        return Review.objects.create(
            user=self.context["request"].user,
            producer_id=product.producer_id,
            **validated_data,
        )


class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "variant",
            "producer",
            "product_name",
            "variant_name",
            "quantity",
            "price_at_purchase",
            "line_total",
            "commission_rate",
        ]


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    customer_email = serializers.EmailField(source="customer.email", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "customer_email",
            "items",
            "subtotal",
            "shipping_cost",
            "discount",
            "coupon_code",
            "total",
            "status",
            "payment_method",
            "payment_status",
            "shipping_address",
            "notes",
            "tracking_number",
            "paid_at",
            "shipped_at",
            "delivered_at",
            "cancelled_at",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, max_value=1000)


class ShippingAddressSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=60, default="ES")
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)


class OrderCreateSerializer(serializers.Serializer):
    """
    Validates the checkout payload and places the order through `OrderService`.

    Prices, shipping and discounts are always computed server side; the
    client only sends what it wants to buy and where.
    """

    items = OrderLineSerializer(many=True, allow_empty=False)
    shipping_address = ShippingAddressSerializer()
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    coupon_code = serializers.CharField(
        max_length=30, required=False, allow_blank=True, allow_null=True
    )
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)

    def save(self, **kwargs):
        data = self.validated_data
        return OrderService.create_order(
            customer=self.context["request"].user,
            items=data["items"],
            shipping_address=dict(data["shipping_address"]),
            payment_method=data["payment_method"],
            coupon_code=data.get("coupon_code") or None,
            notes=data.get("notes", ""),
        )


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    version = serializers.IntegerField(required=False, min_value=1)


class DateRangeSerializer(serializers.Serializer):
    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        if attrs.get("start") and attrs.get("end") and attrs["end"] < attrs["start"]:
            raise ValidationError({"end": _("Must not be before start.")})
        return attrs
