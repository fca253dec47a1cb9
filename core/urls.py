"""
Routes for authentication, accounts and push subscriptions.

Registered routes:
    - /auth/                → AuthViewSet (register, login, verification, me)
    - /users/               → UserViewSet (admin listing)
    - /push-subscriptions/  → PushSubscriptionViewSet
"""

from rest_framework.routers import DefaultRouter

from .views import AuthViewSet, PushSubscriptionViewSet, UserViewSet

router = DefaultRouter()

# `basename` is required because AuthViewSet has no queryset
router.register("auth", AuthViewSet, basename="auth")
router.register("users", UserViewSet, basename="users")
router.register(
    "push-subscriptions", PushSubscriptionViewSet, basename="push-subscriptions"
)

urlpatterns = router.urls
