"""
Producer referral bonus.

A producer that signs up with another producer's referral code starts in
the *referred, pending approval* state. When an admin approves it, both the
new producer and its referrer get `REFERRAL_BONUS_COMMISSION` as a special
commission rate for `REFERRAL_BONUS_DURATION_DAYS`. The bonus is applied at
most once, guarded by a conditional update on `referral_bonus_applied`.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .models import Producer

logger = logging.getLogger(__name__)


class ReferralService:
    @staticmethod
    def find_referrer(code):
        """Approved, non-suspended producer owning `code`, or None."""
        if not code:
            return None
        return Producer.objects.active().filter(referral_code=code.strip().upper()).first()

    @staticmethod
    def apply_bonus(producer, now=None) -> bool:
        """
        Grant the referral bonus to `producer` and its referrer.

        The referrer's window is extended to whichever ends later: its current
        active window or the new one. Its `referral_count` is incremented.

        Returns:
            bool: True if the bonus was applied by this call.
        """
        if not producer.referred_by_id:
            return False

        now = now or timezone.now()
        config = settings.MARKETPLACE
        rate = config["REFERRAL_BONUS_COMMISSION"]
        until = now + timedelta(days=config["REFERRAL_BONUS_DURATION_DAYS"])

        with transaction.atomic():
            claimed = Producer.objects.filter(
                pk=producer.pk, referral_bonus_applied=False
            ).update(
                referral_bonus_applied=True,
                special_commission_rate=rate,
                special_commission_until=until,
            )
            if not claimed:
                return False

            referrer = Producer.objects.select_for_update().get(pk=producer.referred_by_id)
            referrer_until = until
            if (
                referrer.special_commission_rate is not None
                and referrer.special_commission_until
                and referrer.special_commission_until > now
            ):
                referrer_until = max(referrer.special_commission_until, until)

            Producer.objects.filter(pk=referrer.pk).update(
                referral_count=F("referral_count") + 1,
                special_commission_rate=rate,
                special_commission_until=referrer_until,
            )

        producer.refresh_from_db()
        logger.info(
            "Referral bonus applied: producer %s referred by %s, rate %s%% until %s",
            producer.pk,
            producer.referred_by_id,
            rate,
            until.date(),
        )
        return True
