"""
User manager for email-identified accounts.

Example:
    >>> user = CustomUser.objects.create_user(
    ...     email="test@example.com", password="securepassword123"
    ... )
    >>> su = CustomUser.objects.create_superuser(
    ...     email="admin@example.com", password="supersecure"
    ... )
    >>> su.role
    'admin'
"""

import uuid

from django.contrib.auth.models import BaseUserManager
from django.utils.translation import gettext_lazy as _

from .constants import UserRole


class CustomManager(BaseUserManager):
    """
    Creates users whose only identifier is an email address.

    Methods:
        create_user(email, password=None, **extra_fields):
            Creates and saves a regular user.

        create_superuser(email, password, **extra_fields):
            Creates and saves a staff superuser with the admin role.
    """

    def create_user(self, email=None, password=None, **extra_fields):
        """
        Create and return a new user.

        Args:
            email (str): The user's email address. Required.
            password (str, optional): Raw password. When omitted the account
                gets an unusable password.
            **extra_fields: Any other model fields (role, names, flags).

        Raises:
            ValueError: If `email` is missing.
        """

        if not email:
            raise ValueError(_("Email must be set"))

        extra_fields.setdefault("username", str(uuid.uuid4()))
        user = self.model(email=self.normalize_email(email), **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email=None, password=None, **extra_fields):
        """
        Create and return a superuser.

        Raises:
            ValueError: If `is_staff` or `is_superuser` is explicitly not True.
        """

        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("is_email_verified", True)
        extra_fields.setdefault("role", UserRole.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError(_("Superuser must have is_staff=True."))
        if extra_fields.get("is_superuser") is not True:
            raise ValueError(_("Superuser must have is_superuser=True."))

        return self.create_user(email, password, **extra_fields)
