"""
Account models: the marketplace user and its web push subscriptions.

`CustomUser` replaces Django's username-based user. People sign in with their
**email** address, which is normalized (trimmed, lowercase) on every save, and
carry a `role` deciding which parts of the API they can reach.

Example:
    >>> user = CustomUser.objects.create_user(
    ...     email="Ana@Example.com", password="securepassword123"
    ... )
    >>> user.email
    'ana@example.com'
    >>> user.role
    'customer'
"""

import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.translation import gettext_lazy as _

from .constants import UserRole
from .managers import CustomManager


class CustomUser(AbstractUser):
    """
    Marketplace account authenticated by email.

    Attributes:
        username (str): Auto-generated UUID-based identifier (hidden from end users).
        email (str): Unique email address, the login identifier.
        phone_number (str): Optional contact phone, shown to producers on orders.
        role (str): One of `UserRole` (customer, producer, admin).
        is_email_verified (bool): Whether the email address has been verified.
            Unverified accounts may browse but cannot place orders.

    Manager:
        objects (CustomManager): Handles user and superuser creation.
    """

    username = models.CharField(
        max_length=150,
        unique=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("username"),
    )
    email = models.EmailField(max_length=254, unique=True, verbose_name=_("email"))
    phone_number = models.CharField(
        max_length=20, blank=True, default="", verbose_name=_("phone number")
    )
    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER,
        verbose_name=_("role"),
    )
    is_email_verified = models.BooleanField(
        default=False, verbose_name=_("email verified")
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = CustomManager()

    class Meta:
        verbose_name = _("user")
        verbose_name_plural = _("users")

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.email or str(self.id)

    @property
    def full_name(self):
        """Return `first_name` and `last_name` joined, or an empty string."""
        parts = [self.first_name.strip(), self.last_name.strip()]
        return " ".join(part for part in parts if part)

    @property
    def is_admin(self):
        """Staff accounts and accounts with the admin role operate the marketplace."""
        return self.is_staff or self.role == UserRole.ADMIN

    @property
    def is_producer(self):
        return self.role == UserRole.PRODUCER


class PushSubscription(models.Model):
    """
    A browser push endpoint registered by a user.

    Fields:
        user (FK): Owner of the subscription.
        endpoint (str): Push service URL, unique across all users.
        p256dh (str): Client public key used to encrypt payloads.
        auth (str): Client auth secret.
        is_active (bool): Cleared when the push service reports the endpoint gone.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="push_subscriptions",
        verbose_name=_("user"),
    )
    endpoint = models.URLField(max_length=500, unique=True, verbose_name=_("endpoint"))
    p256dh = models.CharField(max_length=255, verbose_name=_("p256dh key"))
    auth = models.CharField(max_length=255, verbose_name=_("auth secret"))
    is_active = models.BooleanField(default=True, verbose_name=_("is active"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))

    class Meta:
        verbose_name = _("push subscription")
        verbose_name_plural = _("push subscriptions")

    def __str__(self):
        return f"{self.user} -> {self.endpoint[:40]}"

    def as_subscription_info(self):
        """Shape expected by `pywebpush.webpush`."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }
