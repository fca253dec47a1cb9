"""
Tests for the account serializers: registration, login, verification
payloads and push subscriptions.
"""

import pytest
from rest_framework.test import APIRequestFactory

from core.constants import UserRole
from core.factories import PushSubscriptionFactory, UserFactory
from core.models import PushSubscription
from core.serializers import (
    LoginSerializer,
    PasswordResetConfirmSerializer,
    PushSubscriptionSerializer,
    RegisterSerializer,
    UserSerializer,
    VerifyEmailSerializer,
)

pytestmark = pytest.mark.django_db

STRONG_PASSWORD = "s3cure-Passw0rd"


class TestUserSerializer:
    def test_serializer_contains_expected_fields(self):
        user = UserFactory(first_name="Ana", last_name="García")

        data = UserSerializer(user).data

        assert set(data) == {
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "phone_number",
            "role",
            "is_email_verified",
            "date_joined",
        }
        assert data["full_name"] == "Ana García"


class TestRegisterSerializer:
    def test_register_creates_user(self):
        serializer = RegisterSerializer(
            data={"email": " New@Example.com ", "password": STRONG_PASSWORD}
        )

        assert serializer.is_valid(), serializer.errors
        user = serializer.save()
        assert user.email == "new@example.com"
        assert user.role == UserRole.CUSTOMER
        assert user.check_password(STRONG_PASSWORD)
        assert user.is_email_verified is False

    def test_producer_role_can_self_register(self):
        serializer = RegisterSerializer(
            data={"email": "farm@example.com", "password": STRONG_PASSWORD, "role": "producer"}
        )

        assert serializer.is_valid(), serializer.errors
        assert serializer.save().role == UserRole.PRODUCER

    def test_admin_role_cannot_self_register(self):
        serializer = RegisterSerializer(
            data={"email": "boss@example.com", "password": STRONG_PASSWORD, "role": "admin"}
        )

        assert not serializer.is_valid()
        assert "role" in serializer.errors

    def test_existing_email_is_invalid(self):
        UserFactory(email="taken@example.com")

        serializer = RegisterSerializer(
            data={"email": "TAKEN@example.com", "password": STRONG_PASSWORD}
        )

        assert not serializer.is_valid()
        assert "email" in serializer.errors

    def test_weak_password_is_invalid(self):
        serializer = RegisterSerializer(data={"email": "weak@example.com", "password": "123"})

        assert not serializer.is_valid()
        assert "password" in serializer.errors


class TestLoginSerializer:
    def test_correct_credentials_attach_user(self):
        user = UserFactory(email="ana@example.com", password="correct-horse")

        serializer = LoginSerializer(
            data={"email": "ANA@example.com", "password": "correct-horse"}
        )

        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["user"] == user

    @pytest.mark.parametrize(
        "email, password",
        [("ana@example.com", "wrong"), ("nobody@example.com", "correct-horse")],
    )
    def test_wrong_credentials_share_one_message(self, email, password):
        UserFactory(email="ana@example.com", password="correct-horse")

        serializer = LoginSerializer(data={"email": email, "password": password})

        assert not serializer.is_valid()
        assert str(serializer.errors["non_field_errors"][0]) == (
            "The login information was incorrect."
        )

    def test_inactive_account_is_rejected(self):
        UserFactory(email="off@example.com", password="correct-horse", is_active=False)

        serializer = LoginSerializer(data={"email": "off@example.com", "password": "correct-horse"})

        assert not serializer.is_valid()


class TestVerificationPayloads:
    def test_code_must_have_six_characters(self):
        assert not VerifyEmailSerializer(data={"email": "a@example.com", "code": "123"}).is_valid()
        assert VerifyEmailSerializer(data={"email": "a@example.com", "code": "123456"}).is_valid()

    def test_reset_confirm_validates_new_password(self):
        serializer = PasswordResetConfirmSerializer(
            data={"email": "a@example.com", "code": "123456", "new_password": "short"}
        )

        assert not serializer.is_valid()
        assert "new_password" in serializer.errors


class TestPushSubscriptionSerializer:
    def _context(self, user):
        request = APIRequestFactory().post("/")
        request.user = user
        return {"request": request}

    def test_keys_are_required(self):
        serializer = PushSubscriptionSerializer(
            data={"endpoint": "https://push.example.com/a", "keys": {"p256dh": "k"}},
            context=self._context(UserFactory()),
        )

        assert not serializer.is_valid()
        assert "keys" in serializer.errors

    def test_existing_endpoint_is_reassigned_and_reactivated(self):
        existing = PushSubscriptionFactory(is_active=False)
        user = UserFactory()

        serializer = PushSubscriptionSerializer(
            data={"endpoint": existing.endpoint, "keys": {"p256dh": "new", "auth": "new"}},
            context=self._context(user),
        )

        assert serializer.is_valid(), serializer.errors
        subscription = serializer.save()
        assert subscription.pk == existing.pk
        assert subscription.user == user
        assert subscription.is_active is True
        assert PushSubscription.objects.count() == 1
