"""
Card payment routes.

Registered routes:
    - /checkout-session/             → start a Stripe Checkout session
    - /verify/{session_id}/          → synchronous payment check
    - /webhook/                      → Stripe events
    - /order/{order_id}/status/      → payment state polling
"""

from rest_framework.routers import SimpleRouter

from .views import PaymentViewSet

router = SimpleRouter()

router.register("", PaymentViewSet, basename="payment")

urlpatterns = router.urls
