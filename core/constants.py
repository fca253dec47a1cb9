"""
Enumerations shared by the account layer.

Using Django's `models.TextChoices` keeps database values readable and lets
serializers, the admin panel and model fields reuse the same set of choices.
"""

from django.db import models


class UserRole(models.TextChoices):
    """
    Role of an account on the marketplace.

    Attributes:
        CUSTOMER (str): Buys products and places orders.
        PRODUCER (str): Owns a producer profile and sells products.
        ADMIN (str): Operates the marketplace (approvals, bank transfers, reports).
    """

    CUSTOMER = "customer", "Customer"
    PRODUCER = "producer", "Producer"
    ADMIN = "admin", "Admin"


class VerificationPurpose(models.TextChoices):
    """
    Context in which an emailed verification code is issued.

    Attributes:
        EMAIL_VERIFICATION (str): Confirms ownership of the address after registration.
        PASSWORD_RESET (str): Authorizes setting a new password.
    """

    EMAIL_VERIFICATION = "email_verification", "Email verification"
    PASSWORD_RESET = "password_reset", "Password reset"
