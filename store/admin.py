from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import (
    Coupon,
    CouponUsage,
    Order,
    OrderItem,
    Producer,
    Product,
    ProductVariant,
    Review,
    ShippingZone,
)
from .services import ProducerService


class ShippingZoneInline(admin.TabularInline):
    model = ShippingZone
    extra = 0


@admin.register(Producer)
class ProducerAdmin(admin.ModelAdmin):
    list_display = (
        "business_name",
        "user",
        "city",
        "is_approved",
        "is_suspended",
        "commission_rate",
        "referral_code",
        "referral_count",
        "rating",
        "created_at",
    )
    list_filter = ("is_approved", "is_suspended", "region", "created_at")
    search_fields = ("business_name", "user__email", "referral_code", "city")
    readonly_fields = ("referral_code", "referral_count", "referral_bonus_applied", "rating")
    date_hierarchy = "created_at"
    inlines = [ShippingZoneInline]
    actions = ["approve_producers", "suspend_producers", "reinstate_producers"]

    def approve_producers(self, request, queryset):
        for producer in queryset.filter(is_approved=False):
            ProducerService.approve(producer)

    approve_producers.short_description = _("Approve selected producers")

    def suspend_producers(self, request, queryset):
        for producer in queryset.filter(is_suspended=False):
            ProducerService.suspend(producer, reason=_("Suspended from the admin site"))

    suspend_producers.short_description = _("Suspend selected producers")

    def reinstate_producers(self, request, queryset):
        for producer in queryset.filter(is_suspended=True):
            ProducerService.reinstate(producer)

    reinstate_producers.short_description = _("Reinstate selected producers")


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "display_name",
        "producer",
        "category",
        "price",
        "stock",
        "has_variants",
        "is_available",
        "rating",
        "created_at",
    )
    list_filter = ("category", "is_available", "has_variants", "created_at")
    search_fields = ("producer__business_name", "id")
    date_hierarchy = "created_at"
    list_editable = ("is_available",)
    readonly_fields = ("version", "rating", "total_reviews")
    actions = ["mark_as_available", "mark_as_unavailable"]
    inlines = [ProductVariantInline]

    def mark_as_available(self, request, queryset):
        queryset.update(is_available=True)

    mark_as_available.short_description = _("Mark selected products as available")

    def mark_as_unavailable(self, request, queryset):
        queryset.update(is_available=False)

    mark_as_unavailable.short_description = _("Hide selected products")


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "discount_type",
        "discount_value",
        "used_count",
        "max_uses",
        "valid_until",
        "is_active",
    )
    list_filter = ("discount_type", "is_active", "first_order_only")
    search_fields = ("code", "description")
    readonly_fields = ("used_count",)
    filter_horizontal = ("applicable_producers",)


@admin.register(CouponUsage)
class CouponUsageAdmin(admin.ModelAdmin):
    list_display = ("coupon", "user", "order", "used_at")
    search_fields = ("coupon__code", "user__email")
    date_hierarchy = "used_at"


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = (
        "product",
        "variant",
        "producer",
        "quantity",
        "price_at_purchase",
        "product_name",
        "variant_name",
        "commission_rate",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "customer",
        "status",
        "payment_method",
        "payment_status",
        "total",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_method", "created_at")
    search_fields = ("order_number", "customer__email", "stripe_payment_intent_id")
    date_hierarchy = "created_at"
    readonly_fields = (
        "order_number",
        "subtotal",
        "shipping_cost",
        "discount",
        "total",
        "stock_committed",
        "version",
        "stripe_checkout_session_id",
        "stripe_payment_intent_id",
    )
    inlines = [OrderItemInline]


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("product", "user", "rating", "created_at", "updated_at")
    list_filter = ("rating", "created_at")
    search_fields = ("user__email", "comment")
