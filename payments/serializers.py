from rest_framework import serializers

from store.models import Order


class CheckoutSessionSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class CheckoutSessionResponseSerializer(serializers.Serializer):
    session_id = serializers.CharField()
    url = serializers.URLField()


class PaymentVerificationSerializer(serializers.Serializer):
    payment_status = serializers.CharField()
    order_id = serializers.UUIDField()


class OrderPaymentStatusSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(source="id", read_only=True)

    class Meta:
        model = Order
        fields = [
            "order_id",
            "order_number",
            "status",
            "payment_status",
            "payment_method",
            "total",
            "paid_at",
        ]
        read_only_fields = fields
