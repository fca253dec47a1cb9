"""
Role-based permissions shared across apps.

    - IsMarketplaceAdmin: staff accounts or accounts with the admin role.
    - IsProducerUser: accounts with the producer role.
    - IsEmailVerified: authenticated accounts that confirmed their email.
"""

from django.utils.translation import gettext_lazy as _
from rest_framework.permissions import BasePermission


class IsMarketplaceAdmin(BasePermission):
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsProducerUser(BasePermission):
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_producer)


class IsEmailVerified(BasePermission):
    """
    Require a verified email address.

    Used on order creation: browsing is open to unverified accounts, buying is not.
    """

    message = _("Verify your email address before placing orders.")

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_email_verified)
