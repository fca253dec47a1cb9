"""
Small helpers for the store app: money rounding and generated identifiers.
"""

import re
import secrets
import string
import time
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
BASE36_ALPHABET = string.digits + string.ascii_uppercase


def quantize_money(value):
    """
    Round a money amount to cents, half up.

    Example:
        >>> quantize_money(Decimal("2.675"))
        Decimal('2.68')
    """
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value):
    """Integer minor units, as payment providers expect them."""
    return int((quantize_money(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def _base36(number):
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def _random_base36(length):
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def generate_order_number():
    """
    Human-friendly unique order reference.

    Format: ``ORD-<milliseconds in base36>-<5 random base36 chars>``.

    Example:
        >>> generate_order_number()
        'ORD-LX2K9F3A-7QZ1M'
    """
    millis = int(time.time() * 1000)
    return f"ORD-{_base36(millis)}-{_random_base36(5)}"


def generate_referral_code(business_name):
    """
    Referral code from the first letters of the business name plus a random suffix.

    Example:
        >>> generate_referral_code("Huerta del Sol")
        'HUERTA4K7Q'
    """
    prefix = re.sub(r"[^A-Za-z0-9]", "", business_name or "").upper()[:6] or "PROD"
    return f"{prefix}{_random_base36(4)}"
