from rest_framework_nested import routers

from .views import (
    CouponViewSet,
    OrderViewSet,
    ProducerViewSet,
    ProductReviewViewSet,
    ProductVariantViewSet,
    ProductViewSet,
    ReferralViewSet,
    ReportViewSet,
    ReviewViewSet,
    ShippingZoneViewSet,
)

router = routers.DefaultRouter()

router.register(prefix="products", viewset=ProductViewSet, basename="product")
router.register(prefix="producers", viewset=ProducerViewSet, basename="producer")
router.register(prefix="referrals", viewset=ReferralViewSet, basename="referral")
router.register(prefix="shipping-zones", viewset=ShippingZoneViewSet, basename="shipping-zone")
router.register(prefix="coupons", viewset=CouponViewSet, basename="coupon")
router.register(prefix="reviews", viewset=ReviewViewSet, basename="review")
router.register(prefix="orders", viewset=OrderViewSet, basename="order")
router.register(prefix="reports", viewset=ReportViewSet, basename="report")

product_router = routers.NestedDefaultRouter(router, "products", lookup="product")
product_router.register(
    prefix="variants", viewset=ProductVariantViewSet, basename="product-variant"
)
product_router.register(
    prefix="reviews", viewset=ProductReviewViewSet, basename="product-review"
)

urlpatterns = router.urls + product_router.urls
