"""
Tests for the producer referral bonus.

A referred producer and its referrer share a special commission rate for a
fixed window once the referred producer is approved; approval is the only
trigger and it fires once.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from store.factories import ProducerFactory
from store.referrals import ReferralService
from store.services import ProducerService


@pytest.mark.django_db
class TestReferralBonus:
    def test_find_referrer_ignores_case_and_inactive_producers(self):
        active = ProducerFactory(referral_code="HUERTA1234")
        ProducerFactory(referral_code="SUSPEN1234", is_suspended=True)

        assert ReferralService.find_referrer("huerta1234") == active
        assert ReferralService.find_referrer("SUSPEN1234") is None
        assert ReferralService.find_referrer("") is None

    def test_bonus_applied_once_even_when_approved_twice(self):
        referrer = ProducerFactory()
        producer = ProducerFactory(is_approved=False, referred_by=referrer)

        ProducerService.approve(producer)
        first_until = producer.special_commission_until
        ProducerService.approve(producer)

        referrer.refresh_from_db()
        producer.refresh_from_db()
        assert producer.referral_bonus_applied is True
        assert producer.special_commission_rate == Decimal("10")
        assert producer.special_commission_until == first_until
        assert referrer.referral_count == 1
        assert referrer.special_commission_rate == Decimal("10")

    def test_no_referrer_means_no_bonus(self):
        producer = ProducerFactory(is_approved=False)

        assert ReferralService.apply_bonus(producer) is False

        producer.refresh_from_db()
        assert producer.special_commission_rate is None

    def test_referrer_window_is_extended_not_shortened(self):
        later = timezone.now() + timedelta(days=365)
        referrer = ProducerFactory(
            special_commission_rate=Decimal("10"), special_commission_until=later
        )
        producer = ProducerFactory(is_approved=False, referred_by=referrer)

        ReferralService.apply_bonus(producer)

        referrer.refresh_from_db()
        assert referrer.special_commission_until == later

    def test_effective_rate_falls_back_after_window(self):
        producer = ProducerFactory(
            commission_rate=Decimal("15"),
            special_commission_rate=Decimal("10"),
            special_commission_until=timezone.now() + timedelta(days=1),
        )

        assert producer.get_current_commission_rate() == Decimal("10")
        assert producer.get_current_commission_rate(
            now=timezone.now() + timedelta(days=2)
        ) == Decimal("15")
