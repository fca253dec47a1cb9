"""
Object-level permissions for the marketplace API.

Classes
-------
IsSellerOrReadOnly
    Read for everyone; writes for active producers on their own products
    (and variants) or for admins.
IsProfileOwnerOrReadOnly
    Read for everyone; writes on a producer profile for its owner or admins.
ReviewPermission
    Read for everyone; authenticated users create; authors or admins edit.

Usage
-----
    class ProductViewSet(ModelViewSet):
        permission_classes = [IsSellerOrReadOnly]
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission


def _producer_of(user):
    if not (user and user.is_authenticated and user.is_producer):
        return None
    return getattr(user, "producer_profile", None)


def _owner_producer_id(obj):
    """Producer owning a product, variant or shipping zone."""
    if hasattr(obj, "producer_id"):
        return obj.producer_id
    return obj.product.producer_id


class IsSellerOrReadOnly(BasePermission):
    """
    Rules
    -----
    - SAFE methods are always allowed.
    - Admins may write anything.
    - Producers may create only while approved and not suspended, and may
      change only objects that belong to their own profile.

    Example
    -------
    >>> request.method = "POST"
    >>> request.user.producer_profile.is_suspended = True
    >>> IsSellerOrReadOnly().has_permission(request, view)
    False
    """

    message = "Only approved producers can manage their catalog."

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        user = request.user
        if user and user.is_authenticated and user.is_admin:
            return True
        producer = _producer_of(user)
        return producer is not None and producer.can_sell

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        if request.user.is_admin:
            return True
        producer = _producer_of(request.user)
        return producer is not None and _owner_producer_id(obj) == producer.pk


class IsProfileOwnerOrReadOnly(BasePermission):
    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        return request.user.is_admin or obj.user_id == request.user.pk


class ReviewPermission(BasePermission):
    """
    Rules
    -----
    - SAFE methods are allowed for everyone.
    - Authenticated users can create reviews.
    - Only the author or an admin can update or delete a review.
    """

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        return request.user.is_admin or obj.user_id == request.user.pk
