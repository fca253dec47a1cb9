"""
Outbound notification channels: email and web push.

Both senders are best effort. A delivery failure is logged and reported as
`False`; it never propagates into the business operation that triggered it.
Callers schedule sends with `transaction.on_commit` so nothing goes out for
a transaction that rolls back.
"""

import json
import logging

from django.conf import settings
from django.core.mail import send_mail
from django.utils.html import strip_tags
from pywebpush import WebPushException, webpush

from .models import PushSubscription

logger = logging.getLogger(__name__)

# Push services answer 404/410 for subscriptions the browser dropped
EXPIRED_SUBSCRIPTION_STATUSES = {404, 410}


class EmailSender:
    """Send transactional HTML emails through Django's configured backend."""

    @staticmethod
    def send(to, subject, html):
        """
        Deliver one HTML email with a plain-text alternative.

        Returns:
            bool: True when the backend accepted the message.
        """
        if not to:
            return False
        try:
            send_mail(
                subject=subject,
                message=strip_tags(html),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[to],
                html_message=html,
            )
        except Exception:
            logger.exception("Email delivery to %s failed (%s)", to, subject)
            return False
        logger.info("Email sent to %s: %s", to, subject)
        return True


class PushSender:
    """
    Deliver web push payloads to every active subscription of a user.

    Delivery is skipped entirely when `VAPID_PRIVATE_KEY` is not configured.
    Subscriptions rejected as gone by the push service are deactivated.
    """

    @staticmethod
    def is_configured():
        return bool(settings.VAPID_PRIVATE_KEY)

    @classmethod
    def send_to_user(cls, user_id, title, body, url=None):
        """
        Push a notification to all of the user's active subscriptions.

        Returns:
            int: Number of subscriptions the payload was delivered to.
        """
        if not cls.is_configured():
            return 0

        payload = json.dumps({"title": title, "body": body, "url": url})
        delivered = 0
        for subscription in PushSubscription.objects.filter(
            user_id=user_id, is_active=True
        ):
            if cls._send_one(subscription, payload):
                delivered += 1
        return delivered

    @staticmethod
    def _send_one(subscription, payload):
        try:
            webpush(
                subscription_info=subscription.as_subscription_info(),
                data=payload,
                vapid_private_key=settings.VAPID_PRIVATE_KEY,
                vapid_claims={"sub": settings.VAPID_SUBJECT},
            )
        except WebPushException as exc:
            status_code = getattr(exc.response, "status_code", None)
            if status_code in EXPIRED_SUBSCRIPTION_STATUSES:
                PushSubscription.objects.filter(pk=subscription.pk).update(
                    is_active=False
                )
                logger.info("Push subscription %s expired, deactivated", subscription.pk)
            else:
                logger.warning("Push delivery to %s failed: %s", subscription.pk, exc)
            return False
        return True
