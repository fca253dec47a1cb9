"""
Emailed verification codes backed by Django's cache.

Codes confirm email ownership after registration and authorize password
resets. Each code lives in the cache under ``verification:{purpose}:{email}``
with a TTL and an attempt counter guarding against brute force.

Settings (``settings.MARKETPLACE``):
    VERIFICATION_CODE_TTL_SECONDS (int): Lifetime of a code.
    VERIFICATION_CODE_MAX_ATTEMPTS (int): Wrong guesses allowed before the code is discarded.

Example:
    >>> VerificationCodeService.send_code("ana@example.com", "email_verification")
    True
    >>> VerificationCodeService.verify_code("ana@example.com", "493027", "email_verification")
    True
"""

import logging
import secrets
import string

from django.conf import settings
from django.core.cache import cache

from .constants import VerificationPurpose
from .notifications import EmailSender

logger = logging.getLogger(__name__)

SUBJECTS = {
    VerificationPurpose.EMAIL_VERIFICATION: "Verify your email address",
    VerificationPurpose.PASSWORD_RESET: "Reset your password",
}


class VerificationCodeService:
    """
    Generate, deliver and check short numeric codes sent by email.

    Methods:
        send_code(email, purpose): Store a fresh code and email it.
        verify_code(email, code, purpose): Check a code and consume it on success.
    """

    @staticmethod
    def _key(email, purpose):
        return f"verification:{purpose}:{email.strip().lower()}"

    @staticmethod
    def _generate_code(length: int = 6) -> str:
        return "".join(secrets.choice(string.digits) for _ in range(length))

    @staticmethod
    def send_code(email: str, purpose: str) -> bool:
        """
        Generate a code, cache it and email it.

        An existing unexpired code is replaced, so a resend always
        invalidates the previous one.

        Returns:
            bool: Whether the email backend accepted the message.
        """
        config = settings.MARKETPLACE
        code = VerificationCodeService._generate_code()
        cache.set(
            VerificationCodeService._key(email, purpose),
            {"code": code, "attempts": 0},
            timeout=config["VERIFICATION_CODE_TTL_SECONDS"],
        )
        minutes = config["VERIFICATION_CODE_TTL_SECONDS"] // 60
        html = (
            f"<p>Your code is <strong>{code}</strong>.</p>"
            f"<p>It expires in {minutes} minutes.</p>"
        )
        return EmailSender.send(email, SUBJECTS.get(purpose, "Your code"), html)

    @staticmethod
    def verify_code(email: str, code: str, purpose: str) -> bool:
        """
        Check `code` against the cached value.

        Rules:
            - Missing or expired code: False.
            - Attempt budget exhausted: the code is discarded, False.
            - Match: the code is consumed, True.
            - Mismatch: the attempt counter is incremented, False.
        """
        key = VerificationCodeService._key(email, purpose)
        data = cache.get(key)
        if not data:
            return False

        if data["attempts"] >= settings.MARKETPLACE["VERIFICATION_CODE_MAX_ATTEMPTS"]:
            cache.delete(key)
            return False

        if secrets.compare_digest(data["code"], str(code)):
            cache.delete(key)
            return True

        data["attempts"] += 1
        cache.set(key, data, timeout=settings.MARKETPLACE["VERIFICATION_CODE_TTL_SECONDS"])
        logger.info("Wrong %s code for %s (attempt %s)", purpose, email, data["attempts"])
        return False
