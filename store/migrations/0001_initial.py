import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import store.models

MONEY = {"max_digits": 10, "decimal_places": 2}
RATE = {"max_digits": 5, "decimal_places": 2}


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Producer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("business_name", models.CharField(max_length=150, verbose_name="business name")),
                ("description", models.JSONField(blank=True, default=dict, verbose_name="description")),
                ("city", models.CharField(blank=True, max_length=100, verbose_name="city")),
                ("region", models.CharField(blank=True, max_length=100, verbose_name="region")),
                ("phone", models.CharField(blank=True, max_length=20, verbose_name="phone")),
                ("is_approved", models.BooleanField(default=False, verbose_name="approved")),
                ("approved_at", models.DateTimeField(blank=True, null=True, verbose_name="approved at")),
                ("is_suspended", models.BooleanField(default=False, verbose_name="suspended")),
                ("suspended_at", models.DateTimeField(blank=True, null=True, verbose_name="suspended at")),
                ("suspend_reason", models.TextField(blank=True, verbose_name="suspend reason")),
                ("commission_rate", models.DecimalField(**RATE, default=store.models.default_commission_rate, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)], verbose_name="commission rate")),
                ("special_commission_rate", models.DecimalField(**RATE, blank=True, null=True, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)], verbose_name="special commission rate")),
                ("special_commission_until", models.DateTimeField(blank=True, null=True, verbose_name="special commission until")),
                ("referral_code", models.CharField(blank=True, max_length=20, unique=True, verbose_name="referral code")),
                ("referral_bonus_applied", models.BooleanField(default=False, verbose_name="referral bonus applied")),
                ("referral_count", models.PositiveIntegerField(default=0, verbose_name="referral count")),
                ("rating", models.DecimalField(decimal_places=1, default=Decimal("0"), max_digits=2, verbose_name="rating")),
                ("total_reviews", models.PositiveIntegerField(default=0, verbose_name="total reviews")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("referred_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="referrals", to="store.producer", verbose_name="referred by")),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="producer_profile", to=settings.AUTH_USER_MODEL, verbose_name="user")),
            ],
            options={
                "verbose_name": "Producer",
                "verbose_name_plural": "Producers",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.JSONField(validators=[store.models.validate_localized_text], verbose_name="name")),
                ("description", models.JSONField(blank=True, default=dict, verbose_name="description")),
                ("category", models.CharField(choices=[("fruits", "Fruits"), ("vegetables", "Vegetables"), ("dairy", "Dairy"), ("meat", "Meat"), ("bakery", "Bakery"), ("eggs", "Eggs"), ("honey", "Honey"), ("oil", "Oil"), ("wine", "Wine"), ("other", "Other")], max_length=20, verbose_name="category")),
                ("unit", models.CharField(choices=[("kg", "Kilogram"), ("unit", "Unit"), ("liter", "Liter"), ("gram", "Gram"), ("dozen", "Dozen")], default="kg", max_length=10, verbose_name="unit")),
                ("price", models.DecimalField(**MONEY, validators=[django.core.validators.MinValueValidator(0)], verbose_name="price")),
                ("currency", models.CharField(choices=[("EUR", "Euro"), ("USD", "US Dollar"), ("GBP", "Pound Sterling")], default="EUR", max_length=3, verbose_name="currency")),
                ("stock", models.PositiveIntegerField(default=0, verbose_name="stock")),
                ("has_variants", models.BooleanField(default=False, verbose_name="has variants")),
                ("is_available", models.BooleanField(default=True, verbose_name="is available")),
                ("images", models.JSONField(blank=True, default=list, verbose_name="images")),
                ("rating", models.DecimalField(decimal_places=1, default=Decimal("0"), max_digits=2, verbose_name="rating")),
                ("total_reviews", models.PositiveIntegerField(default=0, verbose_name="total reviews")),
                ("version", models.PositiveIntegerField(default=1, verbose_name="version")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("producer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="products", to="store.producer", verbose_name="producer")),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["category", "is_available"], name="store_produ_categor_idx"),
                    models.Index(fields=["producer", "is_available"], name="store_produ_produce_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductVariant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.JSONField(validators=[store.models.validate_localized_text], verbose_name="name")),
                ("price", models.DecimalField(**MONEY, validators=[django.core.validators.MinValueValidator(0)], verbose_name="price")),
                ("compare_at_price", models.DecimalField(**MONEY, blank=True, null=True, validators=[django.core.validators.MinValueValidator(0)], verbose_name="compare at price")),
                ("stock", models.PositiveIntegerField(default=0, verbose_name="stock")),
                ("weight", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True, verbose_name="weight")),
                ("weight_unit", models.CharField(choices=[("g", "Gram"), ("kg", "Kilogram"), ("ml", "Millilitre"), ("l", "Litre"), ("unit", "Unit")], default="g", max_length=5, verbose_name="weight unit")),
                ("sku", models.CharField(blank=True, max_length=64, verbose_name="sku")),
                ("is_default", models.BooleanField(default=False, verbose_name="is default")),
                ("is_available", models.BooleanField(default=True, verbose_name="is available")),
                ("position", models.PositiveIntegerField(default=0, verbose_name="position")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="variants", to="store.product", verbose_name="product")),
            ],
            options={
                "verbose_name": "Product variant",
                "verbose_name_plural": "Product variants",
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("is_default", True)), fields=("product",), name="unique_default_variant_per_product"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShippingZone",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, verbose_name="name")),
                ("postal_codes", models.JSONField(blank=True, default=list, verbose_name="postal codes")),
                ("cities", models.JSONField(blank=True, default=list, verbose_name="cities")),
                ("cost", models.DecimalField(**MONEY, default=Decimal("0"), validators=[django.core.validators.MinValueValidator(0)], verbose_name="cost")),
                ("min_order_amount", models.DecimalField(**MONEY, default=Decimal("0"), validators=[django.core.validators.MinValueValidator(0)], verbose_name="minimum order amount")),
                ("estimated_days", models.PositiveSmallIntegerField(default=2, verbose_name="estimated days")),
                ("is_active", models.BooleanField(default=True, verbose_name="is active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("producer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="shipping_zones", to="store.producer", verbose_name="producer")),
            ],
            options={
                "verbose_name": "Shipping zone",
                "verbose_name_plural": "Shipping zones",
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="Coupon",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=30, unique=True, verbose_name="code")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                ("discount_type", models.CharField(choices=[("percentage", "Percentage"), ("fixed", "Fixed amount")], max_length=10, verbose_name="discount type")),
                ("discount_value", models.DecimalField(**MONEY, validators=[django.core.validators.MinValueValidator(0)], verbose_name="discount value")),
                ("min_order_amount", models.DecimalField(**MONEY, default=Decimal("0"), verbose_name="minimum order amount")),
                ("max_discount_amount", models.DecimalField(**MONEY, blank=True, null=True, verbose_name="maximum discount amount")),
                ("first_order_only", models.BooleanField(default=False, verbose_name="first order only")),
                ("is_active", models.BooleanField(default=True, verbose_name="is active")),
                ("valid_from", models.DateTimeField(default=django.utils.timezone.now, verbose_name="valid from")),
                ("valid_until", models.DateTimeField(blank=True, null=True, verbose_name="valid until")),
                ("max_uses", models.PositiveIntegerField(blank=True, null=True, verbose_name="max uses")),
                ("used_count", models.PositiveIntegerField(default=0, verbose_name="used count")),
                ("max_uses_per_user", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)], verbose_name="max uses per user")),
                ("applicable_categories", models.JSONField(blank=True, default=list, verbose_name="applicable categories")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("applicable_producers", models.ManyToManyField(blank=True, related_name="coupons", to="store.producer", verbose_name="applicable producers")),
            ],
            options={
                "verbose_name": "Coupon",
                "verbose_name_plural": "Coupons",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(editable=False, max_length=32, unique=True, verbose_name="order number")),
                ("subtotal", models.DecimalField(**MONEY, verbose_name="subtotal")),
                ("shipping_cost", models.DecimalField(**MONEY, default=Decimal("0"), verbose_name="shipping cost")),
                ("discount", models.DecimalField(**MONEY, default=Decimal("0"), verbose_name="discount")),
                ("coupon_code", models.CharField(blank=True, max_length=30, verbose_name="coupon code")),
                ("total", models.DecimalField(**MONEY, verbose_name="total")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("preparing", "Preparing"), ("shipped", "Shipped"), ("delivered", "Delivered"), ("cancelled", "Cancelled")], default="pending", max_length=20, verbose_name="status")),
                ("payment_method", models.CharField(choices=[("card", "Card"), ("bank_transfer", "Bank transfer"), ("cash_on_delivery", "Cash on delivery")], max_length=20, verbose_name="payment method")),
                ("payment_status", models.CharField(choices=[("pending", "Pending"), ("paid", "Paid"), ("failed", "Failed"), ("refunded", "Refunded")], default="pending", max_length=20, verbose_name="payment status")),
                ("shipping_address", models.JSONField(verbose_name="shipping address")),
                ("notes", models.TextField(blank=True, verbose_name="notes")),
                ("stripe_checkout_session_id", models.CharField(blank=True, db_index=True, max_length=255, verbose_name="stripe checkout session id")),
                ("stripe_payment_intent_id", models.CharField(blank=True, db_index=True, max_length=255, verbose_name="stripe payment intent id")),
                ("tracking_number", models.CharField(blank=True, max_length=100, verbose_name="tracking number")),
                ("paid_at", models.DateTimeField(blank=True, null=True, verbose_name="paid at")),
                ("shipped_at", models.DateTimeField(blank=True, null=True, verbose_name="shipped at")),
                ("delivered_at", models.DateTimeField(blank=True, null=True, verbose_name="delivered at")),
                ("cancelled_at", models.DateTimeField(blank=True, null=True, verbose_name="cancelled at")),
                ("stock_committed", models.BooleanField(default=False, verbose_name="stock committed")),
                ("version", models.PositiveIntegerField(default=1, verbose_name="version")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("coupon", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders", to="store.coupon", verbose_name="coupon")),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="orders", to=settings.AUTH_USER_MODEL, verbose_name="customer")),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["customer", "created_at"], name="store_order_custome_idx"),
                    models.Index(fields=["status"], name="store_order_status_idx"),
                    models.Index(fields=["payment_status"], name="store_order_payment_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CouponUsage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("used_at", models.DateTimeField(auto_now_add=True, verbose_name="used at")),
                ("coupon", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="usages", to="store.coupon", verbose_name="coupon")),
                ("order", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="coupon_usages", to="store.order", verbose_name="order")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="coupon_usages", to=settings.AUTH_USER_MODEL, verbose_name="user")),
            ],
            options={
                "verbose_name": "Coupon usage",
                "verbose_name_plural": "Coupon usages",
                "ordering": ["-used_at"],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)], verbose_name="quantity")),
                ("price_at_purchase", models.DecimalField(**MONEY, verbose_name="price at purchase")),
                ("product_name", models.CharField(max_length=200, verbose_name="product name")),
                ("variant_name", models.CharField(blank=True, max_length=200, verbose_name="variant name")),
                ("commission_rate", models.DecimalField(**RATE, verbose_name="commission rate")),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="store.order", verbose_name="order")),
                ("producer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="order_items", to="store.producer", verbose_name="producer")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="order_items", to="store.product", verbose_name="product")),
                ("variant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="order_items", to="store.productvariant", verbose_name="variant")),
            ],
            options={
                "verbose_name": "Order item",
                "verbose_name_plural": "Order items",
            },
        ),
        migrations.CreateModel(
            name="Review",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rating", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)], verbose_name="rating")),
                ("comment", models.CharField(blank=True, max_length=500, verbose_name="comment")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reviews", to="store.order", verbose_name="order")),
                ("producer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reviews", to="store.producer", verbose_name="producer")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reviews", to="store.product", verbose_name="product")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reviews", to=settings.AUTH_USER_MODEL, verbose_name="user")),
            ],
            options={
                "verbose_name": "Review",
                "verbose_name_plural": "Reviews",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "product"), name="unique_review_per_user_product"),
                ],
            },
        ),
    ]
