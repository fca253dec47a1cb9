"""
Serializers for registration, login, email verification and push subscriptions.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.utils.translation import gettext_lazy as _
from drf_spectacular.utils import OpenApiExample, extend_schema_serializer
from rest_framework import serializers
from rest_framework.exceptions import ValidationError

from .constants import UserRole
from .models import PushSubscription

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """
    Read-only view of an account, returned by `me`, login and registration.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "phone_number",
            "role",
            "is_email_verified",
            "date_joined",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["first_name", "last_name", "phone_number"]


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Customer registration",
            value={
                "email": "ana@example.com",
                "password": "s3cure-Passw0rd",
                "first_name": "Ana",
                "last_name": "García",
            },
        ),
        OpenApiExample(
            "Producer registration",
            value={
                "email": "huerta@example.com",
                "password": "s3cure-Passw0rd",
                "role": "producer",
            },
            description="The producer profile is created afterwards with POST /producers/.",
        ),
    ],
)
class RegisterSerializer(serializers.ModelSerializer):
    """
    Create an account. Only the customer and producer roles can self-register.
    """

    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    role = serializers.ChoiceField(
        choices=[UserRole.CUSTOMER, UserRole.PRODUCER], default=UserRole.CUSTOMER
    )

    class Meta:
        model = User
        fields = ["email", "password", "first_name", "last_name", "phone_number", "role"]

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email=value).exists():
            raise ValidationError(_("An account with this email already exists."))
        return value

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)


class LoginSerializer(serializers.Serializer):
    """
    Check email and password and attach the matching `user` to validated data.

    Failed logins return one generic message so account existence is not revealed.
    """

    email = serializers.EmailField(write_only=True)
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        email = attrs["email"].strip().lower()
        user = User.objects.filter(email=email).first()

        if user is None or not user.check_password(attrs["password"]):
            raise ValidationError(_("The login information was incorrect."))
        if not user.is_active:
            raise ValidationError(_("This account is disabled."))

        attrs["user"] = user
        return attrs


class EmailSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, value):
        return value.strip().lower()


class VerifyEmailSerializer(EmailSerializer):
    code = serializers.CharField(min_length=6, max_length=6)


class PasswordResetConfirmSerializer(VerifyEmailSerializer):
    new_password = serializers.CharField(write_only=True)

    def validate_new_password(self, value):
        validate_password(value)
        return value


class PushSubscriptionSerializer(serializers.ModelSerializer):
    """
    Accepts the browser's `PushSubscription.toJSON()` shape:
    ``{"endpoint": "...", "keys": {"p256dh": "...", "auth": "..."}}``.
    """

    keys = serializers.DictField(child=serializers.CharField(), write_only=True)

    class Meta:
        model = PushSubscription
        fields = ["id", "endpoint", "keys", "is_active", "created_at"]
        read_only_fields = ["id", "is_active", "created_at"]
        # Re-subscribing an existing endpoint is handled in create()
        extra_kwargs = {"endpoint": {"validators": []}}

    def validate_keys(self, value):
        if not value.get("p256dh") or not value.get("auth"):
            raise ValidationError(_("Both p256dh and auth keys are required."))
        return value

    def create(self, validated_data):
        keys = validated_data.pop("keys")
        subscription, _created = PushSubscription.objects.update_or_create(
            endpoint=validated_data["endpoint"],
            defaults={
                "user": self.context["request"].user,
                "p256dh": keys["p256dh"],
                "auth": keys["auth"],
                "is_active": True,
            },
        )
        return subscription
