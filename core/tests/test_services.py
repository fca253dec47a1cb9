"""
Unit tests for `VerificationCodeService`.

The cache is cleared around every test by the root `clear_cache` fixture;
emails land in pytest-django's `mailoutbox`.
"""

import re

import pytest
from django.core.cache import cache

from core.constants import VerificationPurpose
from core.services import VerificationCodeService

EMAIL = "ana@example.com"
PURPOSE = VerificationPurpose.EMAIL_VERIFICATION


def cached(email=EMAIL, purpose=PURPOSE):
    return cache.get(f"verification:{purpose}:{email}")


class TestVerificationCodeService:
    def test_generate_code(self):
        code = VerificationCodeService._generate_code()

        assert len(code) == 6
        assert code.isdigit()

    def test_send_code_caches_and_emails(self, mailoutbox):
        assert VerificationCodeService.send_code(EMAIL, PURPOSE) is True

        data = cached()
        assert data["attempts"] == 0
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [EMAIL]
        assert mailoutbox[0].subject == "Verify your email address"
        assert data["code"] in mailoutbox[0].body

    def test_resend_replaces_previous_code(self, mocker):
        mocker.patch("core.services.EmailSender.send", return_value=True)
        mocker.patch.object(
            VerificationCodeService, "_generate_code", side_effect=["111111", "222222"]
        )

        VerificationCodeService.send_code(EMAIL, PURPOSE)
        VerificationCodeService.send_code(EMAIL, PURPOSE)

        assert VerificationCodeService.verify_code(EMAIL, "111111", PURPOSE) is False
        assert VerificationCodeService.verify_code(EMAIL, "222222", PURPOSE) is True

    def test_verify_code_success_consumes_code(self, mailoutbox):
        VerificationCodeService.send_code(EMAIL, PURPOSE)
        code = re.search(r"\d{6}", mailoutbox[0].body).group()

        assert VerificationCodeService.verify_code(" ANA@example.com", code, PURPOSE) is True
        assert cached() is None
        assert VerificationCodeService.verify_code(EMAIL, code, PURPOSE) is False

    def test_verify_code_without_code_in_cache(self):
        assert VerificationCodeService.verify_code(EMAIL, "123456", PURPOSE) is False

    def test_codes_are_scoped_by_purpose(self, mocker):
        mocker.patch("core.services.EmailSender.send", return_value=True)
        mocker.patch.object(VerificationCodeService, "_generate_code", return_value="123456")
        VerificationCodeService.send_code(EMAIL, PURPOSE)

        assert (
            VerificationCodeService.verify_code(
                EMAIL, "123456", VerificationPurpose.PASSWORD_RESET
            )
            is False
        )

    def test_wrong_code_increments_attempts(self, mocker):
        mocker.patch("core.services.EmailSender.send", return_value=True)
        mocker.patch.object(VerificationCodeService, "_generate_code", return_value="123456")
        VerificationCodeService.send_code(EMAIL, PURPOSE)

        assert VerificationCodeService.verify_code(EMAIL, "000000", PURPOSE) is False

        assert cached()["attempts"] == 1

    def test_max_attempts_discards_code(self, mocker, settings):
        settings.MARKETPLACE = {**settings.MARKETPLACE, "VERIFICATION_CODE_MAX_ATTEMPTS": 2}
        mocker.patch("core.services.EmailSender.send", return_value=True)
        mocker.patch.object(VerificationCodeService, "_generate_code", return_value="123456")
        VerificationCodeService.send_code(EMAIL, PURPOSE)

        VerificationCodeService.verify_code(EMAIL, "000000", PURPOSE)
        VerificationCodeService.verify_code(EMAIL, "000000", PURPOSE)

        assert VerificationCodeService.verify_code(EMAIL, "123456", PURPOSE) is False
        assert cached() is None
