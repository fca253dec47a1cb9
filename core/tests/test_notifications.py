import pytest
from pywebpush import WebPushException

from core.factories import PushSubscriptionFactory, UserFactory
from core.notifications import EmailSender, PushSender


@pytest.fixture
def vapid(settings):
    settings.VAPID_PRIVATE_KEY = "private-key"
    settings.VAPID_SUBJECT = "mailto:ops@example.com"
    return settings


class TestEmailSender:
    def test_send_html_with_text_alternative(self, mailoutbox):
        assert EmailSender.send("ana@example.com", "Hola", "<p>Your <b>order</b></p>") is True

        message = mailoutbox[0]
        assert message.body == "Your order"
        assert message.alternatives[0][0] == "<p>Your <b>order</b></p>"

    def test_missing_recipient_is_skipped(self, mailoutbox):
        assert EmailSender.send("", "Hola", "<p>x</p>") is False
        assert mailoutbox == []

    def test_backend_failure_is_reported_not_raised(self, mocker):
        mocker.patch("core.notifications.send_mail", side_effect=OSError("smtp down"))

        assert EmailSender.send("ana@example.com", "Hola", "<p>x</p>") is False


@pytest.mark.django_db
class TestPushSender:
    def test_disabled_without_vapid_key(self, settings, mocker):
        settings.VAPID_PRIVATE_KEY = ""
        webpush = mocker.patch("core.notifications.webpush")
        subscription = PushSubscriptionFactory()

        assert PushSender.send_to_user(subscription.user_id, "Title", "Body") == 0
        webpush.assert_not_called()

    def test_delivers_to_active_subscriptions_only(self, vapid, mocker):
        webpush = mocker.patch("core.notifications.webpush")
        user = UserFactory()
        active = PushSubscriptionFactory(user=user)
        PushSubscriptionFactory(user=user, is_active=False)

        delivered = PushSender.send_to_user(user.pk, "Order shipped", "On its way", "/orders/1")

        assert delivered == 1
        kwargs = webpush.call_args.kwargs
        assert kwargs["subscription_info"]["endpoint"] == active.endpoint
        assert kwargs["vapid_claims"] == {"sub": "mailto:ops@example.com"}
        assert '"url": "/orders/1"' in kwargs["data"]

    def test_gone_subscription_is_deactivated(self, vapid, mocker):
        response = mocker.Mock(status_code=410)
        mocker.patch(
            "core.notifications.webpush",
            side_effect=WebPushException("Gone", response=response),
        )
        subscription = PushSubscriptionFactory()

        assert PushSender.send_to_user(subscription.user_id, "Title", "Body") == 0

        subscription.refresh_from_db()
        assert subscription.is_active is False

    def test_transient_failure_keeps_subscription(self, vapid, mocker):
        response = mocker.Mock(status_code=500)
        mocker.patch(
            "core.notifications.webpush",
            side_effect=WebPushException("Server error", response=response),
        )
        subscription = PushSubscriptionFactory()

        PushSender.send_to_user(subscription.user_id, "Title", "Body")

        subscription.refresh_from_db()
        assert subscription.is_active is True
