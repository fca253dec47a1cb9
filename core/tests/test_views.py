import re

import pytest
from django.urls import reverse
from rest_framework import status

from core.factories import AdminFactory, PushSubscriptionFactory, UserFactory
from core.models import CustomUser as User
from core.models import PushSubscription

STRONG_PASSWORD = "s3cure-Passw0rd"


def code_from(message):
    return re.search(r"\d{6}", message.body).group()


@pytest.mark.django_db
class TestAuthViewSet:
    """
    Registration, verification, login, password reset and the profile endpoint.
    """

    def test_register_returns_tokens_and_sends_code(self, api_client, mailoutbox):
        response = api_client.post(
            reverse("auth-register"),
            {"email": "new@example.com", "password": STRONG_PASSWORD, "first_name": "Ana"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert set(response.data["tokens"]) == {"refresh", "access"}
        assert response.data["user"]["is_email_verified"] is False
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == ["new@example.com"]

    def test_register_duplicate_email_uses_error_envelope(self, api_client):
        UserFactory(email="taken@example.com")

        response = api_client.post(
            reverse("auth-register"),
            {"email": "taken@example.com", "password": STRONG_PASSWORD},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["success"] is False
        assert response.data["status_code"] == 400
        assert "email" in response.data["errors"]

    def test_verify_email_flow(self, api_client, mailoutbox):
        api_client.post(
            reverse("auth-register"), {"email": "new@example.com", "password": STRONG_PASSWORD}
        )

        response = api_client.post(
            reverse("auth-verify-email"),
            {"email": "new@example.com", "code": code_from(mailoutbox[0])},
        )

        assert response.status_code == status.HTTP_200_OK
        assert User.objects.get(email="new@example.com").is_email_verified is True

    def test_verify_email_wrong_code(self, api_client):
        UserFactory(email="ana@example.com", is_email_verified=False)

        response = api_client.post(
            reverse("auth-verify-email"), {"email": "ana@example.com", "code": "000000"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == "Invalid or expired code."

    def test_resend_only_for_unverified_accounts(self, api_client, mailoutbox):
        UserFactory(email="verified@example.com")
        UserFactory(email="pending@example.com", is_email_verified=False)

        first = api_client.post(
            reverse("auth-resend-verification"), {"email": "verified@example.com"}
        )
        second = api_client.post(
            reverse("auth-resend-verification"), {"email": "pending@example.com"}
        )

        assert first.status_code == second.status_code == status.HTTP_200_OK
        assert [message.to for message in mailoutbox] == [["pending@example.com"]]

    def test_resend_is_throttled(self, api_client, mocker):
        mocker.patch("core.views.VerificationCodeService.send_code", return_value=True)
        url = reverse("auth-resend-verification")

        for _ in range(5):
            api_client.post(url, {"email": "ana@example.com"})
        response = api_client.post(url, {"email": "ana@example.com"})

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS

    def test_login_success(self, api_client):
        UserFactory(email="ana@example.com", password="correct-horse")

        response = api_client.post(
            reverse("auth-login"), {"email": "ana@example.com", "password": "correct-horse"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert "access" in response.data["tokens"]
        assert response.data["user"]["email"] == "ana@example.com"

    def test_login_failure_wrong_password(self, api_client):
        UserFactory(email="ana@example.com", password="correct-horse")

        response = api_client.post(
            reverse("auth-login"), {"email": "ana@example.com", "password": "nope"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["message"] == "The login information was incorrect."

    def test_password_reset_full_flow(self, api_client, mailoutbox):
        user = UserFactory(email="ana@example.com", password="old-password")

        request_response = api_client.post(
            reverse("auth-password-reset-request"), {"email": "ana@example.com"}
        )
        confirm_response = api_client.post(
            reverse("auth-password-reset-confirm"),
            {
                "email": "ana@example.com",
                "code": code_from(mailoutbox[0]),
                "new_password": STRONG_PASSWORD,
            },
        )

        assert request_response.status_code == status.HTTP_200_OK
        assert confirm_response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.check_password(STRONG_PASSWORD)

    def test_password_reset_request_for_unknown_email_sends_nothing(self, api_client, mailoutbox):
        response = api_client.post(
            reverse("auth-password-reset-request"), {"email": "ghost@example.com"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert mailoutbox == []

    def test_me_get_and_patch(self, api_client):
        user = UserFactory()
        api_client.force_authenticate(user)

        get_response = api_client.get(reverse("auth-me"))
        patch_response = api_client.patch(
            reverse("auth-me"), {"first_name": "Lucía", "role": "admin"}, format="json"
        )

        assert get_response.data["email"] == user.email
        assert patch_response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.first_name == "Lucía"
        assert user.role == "customer"

    def test_me_requires_authentication(self, api_client):
        assert api_client.get(reverse("auth-me")).status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestPushSubscriptionViewSet:
    def test_register_and_list_own_subscriptions(self, api_client):
        user = UserFactory()
        PushSubscriptionFactory()
        api_client.force_authenticate(user)

        create_response = api_client.post(
            reverse("push-subscriptions-list"),
            {
                "endpoint": "https://push.example.com/send/mine",
                "keys": {"p256dh": "key", "auth": "secret"},
            },
            format="json",
        )
        list_response = api_client.get(reverse("push-subscriptions-list"))

        assert create_response.status_code == status.HTTP_201_CREATED
        assert [row["endpoint"] for row in list_response.data["results"]] == [
            "https://push.example.com/send/mine"
        ]

    def test_cannot_delete_someone_elses_subscription(self, api_client):
        other = PushSubscriptionFactory()
        api_client.force_authenticate(UserFactory())

        response = api_client.delete(
            reverse("push-subscriptions-detail", kwargs={"pk": other.pk})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert PushSubscription.objects.filter(pk=other.pk).exists()


@pytest.mark.django_db
class TestUserViewSet:
    def test_admin_can_list_users(self, api_client):
        UserFactory.create_batch(2)
        api_client.force_authenticate(AdminFactory())

        response = api_client.get(reverse("users-list"), {"role": "customer"})

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 2

    def test_regular_user_cannot_list_users(self, api_client):
        api_client.force_authenticate(UserFactory())

        response = api_client.get(reverse("users-list"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_anonymous_user_cannot_list_users(self, api_client):
        response = api_client.get(reverse("users-list"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
