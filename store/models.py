"""
Marketplace Models
==================

Database models for the multi-vendor food marketplace: producers and their
catalog, shipping zones, coupons, orders and reviews.

Overview
--------

- **Producer**:
  A seller profile owned by a user with the producer role. Must be approved
  by an admin (and not suspended) before its products can be sold. Carries
  the commission rate the platform keeps and the referral state.

- **Product** / **ProductVariant**:
  Items for sale. A product either tracks its own `stock` or, when
  `has_variants` is set, delegates price and stock to its variants.

- **ShippingZone**:
  Postal codes or cities a producer delivers to, with a cost and a minimum
  order amount.

- **Coupon** / **CouponUsage**:
  Percentage or fixed discounts with validity windows and usage caps.
  `CouponUsage` is an append-only redemption log.

- **Order** / **OrderItem**:
  A purchase. Line items snapshot the unit price, product name and the
  producer's effective commission rate at creation; totals are never
  recomputed from live catalog prices.

- **Review**:
  A rating (1 to 5) left by a customer for a product from a delivered order.

Features
--------

- UUID primary keys for producers, products and orders.
- Money stored as `DecimalField` with two decimal places.
- Localized text (`name`, `description`) stored as ``{"es": ..., "en": ...}``
  JSON maps; Spanish is the required default language.
- `version` counters on `Product` and `Order` for optimistic concurrency.
- Stock movements go through `store.stock.StockLedger`, never through
  direct assignment.

Example::

    >>> producer = Producer.objects.create(user=user, business_name="Huerta del Sol")
    >>> product = Product.objects.create(
    ...     producer=producer,
    ...     name={"es": "Tomate rosa", "en": "Pink tomato"},
    ...     category="vegetables",
    ...     price=Decimal("3.20"),
    ...     stock=40,
    ... )
    >>> product.display_name
    'Tomate rosa'
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .constants import (
    DEFAULT_LANGUAGE,
    Currency,
    DiscountType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductCategory,
    ProductUnit,
    WeightUnit,
)
from .managers import OrderQuerySet, ProducerQuerySet, ProductQuerySet
from .utils import generate_order_number, generate_referral_code, quantize_money

MONEY = {"max_digits": 10, "decimal_places": 2}


def default_commission_rate():
    return settings.MARKETPLACE["DEFAULT_COMMISSION_RATE"]


def validate_localized_text(value):
    """Localized maps must be a dict holding a non-empty default-language entry."""
    if not isinstance(value, dict) or not str(value.get(DEFAULT_LANGUAGE, "")).strip():
        raise ValidationError(
            _("A non-empty '%(lang)s' translation is required."),
            params={"lang": DEFAULT_LANGUAGE},
        )


def localized(value, language=DEFAULT_LANGUAGE):
    """Pick `language` from a localized map, falling back to the default language."""
    if not isinstance(value, dict):
        return value or ""
    return value.get(language) or value.get(DEFAULT_LANGUAGE) or next(
        iter(value.values()), ""
    )


class Producer(models.Model):
    """
    A seller on the marketplace.

    Fields
    ------
    business_name : str
        Public name of the farm or shop.
    description : dict
        Localized description.
    is_approved / is_suspended : bool
        Only approved, non-suspended producers can sell.
    commission_rate : Decimal
        Percentage of each sale the platform keeps.
    special_commission_rate / special_commission_until
        A temporary rate (referral bonus) that wins while the window is open.
    referral_code : str
        Unique code other producers can register with.
    referred_by : Producer (nullable)
        The producer whose code was used at sign-up.
    referral_bonus_applied : bool
        One-time flag; flipped with a conditional update on approval.
    rating / total_reviews
        Cached aggregate of the reviews on this producer's products.

    Example
    -------
    >>> producer.get_current_commission_rate()
    Decimal('15')
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="producer_profile",
        verbose_name=_("user"),
    )
    business_name = models.CharField(max_length=150, verbose_name=_("business name"))
    description = models.JSONField(default=dict, blank=True, verbose_name=_("description"))
    city = models.CharField(max_length=100, blank=True, verbose_name=_("city"))
    region = models.CharField(max_length=100, blank=True, verbose_name=_("region"))
    phone = models.CharField(max_length=20, blank=True, verbose_name=_("phone"))

    is_approved = models.BooleanField(default=False, verbose_name=_("approved"))
    approved_at = models.DateTimeField(null=True, blank=True, verbose_name=_("approved at"))
    is_suspended = models.BooleanField(default=False, verbose_name=_("suspended"))
    suspended_at = models.DateTimeField(null=True, blank=True, verbose_name=_("suspended at"))
    suspend_reason = models.TextField(blank=True, verbose_name=_("suspend reason"))

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=default_commission_rate,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name=_("commission rate"),
    )
    special_commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name=_("special commission rate"),
    )
    special_commission_until = models.DateTimeField(
        null=True, blank=True, verbose_name=_("special commission until")
    )

    referral_code = models.CharField(
        max_length=20, unique=True, blank=True, verbose_name=_("referral code")
    )
    referred_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referrals",
        verbose_name=_("referred by"),
    )
    referral_bonus_applied = models.BooleanField(
        default=False, verbose_name=_("referral bonus applied")
    )
    referral_count = models.PositiveIntegerField(default=0, verbose_name=_("referral count"))

    rating = models.DecimalField(
        max_digits=2, decimal_places=1, default=Decimal("0"), verbose_name=_("rating")
    )
    total_reviews = models.PositiveIntegerField(default=0, verbose_name=_("total reviews"))

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    objects = ProducerQuerySet.as_manager()

    class Meta:
        verbose_name = _("Producer")
        verbose_name_plural = _("Producers")
        ordering = ["-created_at"]

    def __str__(self):
        return self.business_name

    def save(self, *args, **kwargs):
        if not self.referral_code:
            code = generate_referral_code(self.business_name)
            while Producer.objects.filter(referral_code=code).exists():
                code = generate_referral_code(self.business_name)
            self.referral_code = code
        super().save(*args, **kwargs)

    @property
    def can_sell(self):
        return self.is_approved and not self.is_suspended

    def get_current_commission_rate(self, now=None):
        """Special rate while its window is open, base rate otherwise."""
        now = now or timezone.now()
        if (
            self.special_commission_rate is not None
            and self.special_commission_until
            and now < self.special_commission_until
        ):
            return self.special_commission_rate
        return self.commission_rate


class Product(models.Model):
    """
    An item for sale.

    Fields
    ------
    name / description : dict
        Localized maps, ``{"es": "..."}`` required.
    category / unit / currency : str
        See `ProductCategory`, `ProductUnit`, `Currency`.
    price : Decimal
        Base price, used when the product has no variants.
    stock : int
        Base stock, used when the product has no variants.
    has_variants : bool
        Price and stock come from `variants` instead.
    is_available : bool
        Hidden from the catalog and not purchasable when False. Flipped
        automatically by the stock ledger when stock runs out.
    images : list[str]
        Image URLs, first one is the cover.
    version : int
        Incremented on every stock movement.

    Relationships
    -------------
    producer : Producer
    variants : RelatedManager[ProductVariant]
    reviews : RelatedManager[Review]
    order_items : RelatedManager[OrderItem]
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    producer = models.ForeignKey(
        Producer,
        on_delete=models.CASCADE,
        related_name="products",
        verbose_name=_("producer"),
    )
    name = models.JSONField(validators=[validate_localized_text], verbose_name=_("name"))
    description = models.JSONField(default=dict, blank=True, verbose_name=_("description"))
    category = models.CharField(
        max_length=20, choices=ProductCategory.choices, verbose_name=_("category")
    )
    unit = models.CharField(
        max_length=10,
        choices=ProductUnit.choices,
        default=ProductUnit.KG,
        verbose_name=_("unit"),
    )
    price = models.DecimalField(
        **MONEY, validators=[MinValueValidator(0)], verbose_name=_("price")
    )
    currency = models.CharField(
        max_length=3, choices=Currency.choices, default=Currency.EUR, verbose_name=_("currency")
    )
    stock = models.PositiveIntegerField(default=0, verbose_name=_("stock"))
    has_variants = models.BooleanField(default=False, verbose_name=_("has variants"))
    is_available = models.BooleanField(default=True, verbose_name=_("is available"))
    images = models.JSONField(default=list, blank=True, verbose_name=_("images"))
    rating = models.DecimalField(
        max_digits=2, decimal_places=1, default=Decimal("0"), verbose_name=_("rating")
    )
    total_reviews = models.PositiveIntegerField(default=0, verbose_name=_("total reviews"))
    version = models.PositiveIntegerField(default=1, verbose_name=_("version"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    objects = ProductQuerySet.as_manager()

    class Meta:
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category", "is_available"], name="store_produ_categor_idx"),
            models.Index(fields=["producer", "is_available"], name="store_produ_produce_idx"),
        ]

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        return localized(self.name)

    def get_default_variant(self):
        """Default variant, else the first available one, else None."""
        variants = list(self.variants.all())
        for variant in variants:
            if variant.is_default:
                return variant
        for variant in variants:
            if variant.is_available:
                return variant
        return None

    @property
    def total_stock(self):
        if self.has_variants:
            return sum(variant.stock for variant in self.variants.all())
        return self.stock

    @property
    def display_price(self):
        if self.has_variants:
            variant = self.get_default_variant()
            if variant is not None:
                return variant.price
        return self.price


class ProductVariant(models.Model):
    """
    A purchasable presentation of a product (size, weight, pack).

    At most one variant per product is the default; saving a variant with
    `is_default=True` clears the flag on its siblings.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
        verbose_name=_("product"),
    )
    name = models.JSONField(validators=[validate_localized_text], verbose_name=_("name"))
    price = models.DecimalField(
        **MONEY, validators=[MinValueValidator(0)], verbose_name=_("price")
    )
    compare_at_price = models.DecimalField(
        **MONEY,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
        verbose_name=_("compare at price"),
    )
    stock = models.PositiveIntegerField(default=0, verbose_name=_("stock"))
    weight = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True, verbose_name=_("weight")
    )
    weight_unit = models.CharField(
        max_length=5,
        choices=WeightUnit.choices,
        default=WeightUnit.GRAM,
        verbose_name=_("weight unit"),
    )
    sku = models.CharField(max_length=64, blank=True, verbose_name=_("sku"))
    is_default = models.BooleanField(default=False, verbose_name=_("is default"))
    is_available = models.BooleanField(default=True, verbose_name=_("is available"))
    position = models.PositiveIntegerField(default=0, verbose_name=_("position"))

    class Meta:
        verbose_name = _("Product variant")
        verbose_name_plural = _("Product variants")
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(
                fields=["product"],
                condition=Q(is_default=True),
                name="unique_default_variant_per_product",
            )
        ]

    def __str__(self):
        return f"{self.product.display_name} - {self.display_name}"

    @property
    def display_name(self):
        return localized(self.name)

    def save(self, *args, **kwargs):
        with transaction.atomic():
            if self.is_default:
                ProductVariant.objects.filter(
                    product_id=self.product_id, is_default=True
                ).exclude(pk=self.pk).update(is_default=False)
            super().save(*args, **kwargs)


class ShippingZone(models.Model):
    """
    Area a producer ships to.

    A zone matches a destination by postal code (trimmed, case-insensitive)
    or by city (case-insensitive). `min_order_amount` applies to the part
    of the order sold by this producer.
    """

    producer = models.ForeignKey(
        Producer,
        on_delete=models.CASCADE,
        related_name="shipping_zones",
        verbose_name=_("producer"),
    )
    name = models.CharField(max_length=100, verbose_name=_("name"))
    postal_codes = models.JSONField(default=list, blank=True, verbose_name=_("postal codes"))
    cities = models.JSONField(default=list, blank=True, verbose_name=_("cities"))
    cost = models.DecimalField(
        **MONEY, default=Decimal("0"), validators=[MinValueValidator(0)], verbose_name=_("cost")
    )
    min_order_amount = models.DecimalField(
        **MONEY,
        default=Decimal("0"),
        validators=[MinValueValidator(0)],
        verbose_name=_("minimum order amount"),
    )
    estimated_days = models.PositiveSmallIntegerField(default=2, verbose_name=_("estimated days"))
    is_active = models.BooleanField(default=True, verbose_name=_("is active"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))

    class Meta:
        verbose_name = _("Shipping zone")
        verbose_name_plural = _("Shipping zones")
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.producer} - {self.name}"

    def covers_postal_code(self, postal_code):
        if not postal_code:
            return False
        wanted = str(postal_code).strip().upper()
        return any(str(code).strip().upper() == wanted for code in self.postal_codes)

    def covers_city(self, city):
        if not city:
            return False
        wanted = city.strip().lower()
        return any(str(name).strip().lower() == wanted for name in self.cities)

    def covers(self, postal_code=None, city=None):
        return self.covers_postal_code(postal_code) or self.covers_city(city)

    def meets_minimum(self, amount):
        return Decimal(amount) >= self.min_order_amount


class Coupon(models.Model):
    """
    A discount code.

    Fields
    ------
    code : str
        Unique, stored upper case.
    discount_type / discount_value
        Percentage of the eligible subtotal, or a fixed amount.
    min_order_amount : Decimal
        Below this subtotal the discount is 0.
    max_discount_amount : Decimal (nullable)
        Cap on the computed discount.
    first_order_only : bool
        Only customers without previous non-cancelled orders may redeem.
    max_uses / used_count
        Global redemption cap; `used_count` is only ever incremented with a
        conditional update that respects the cap.
    max_uses_per_user : int
        Per-customer cap, counted from `usages`.
    applicable_categories / applicable_producers
        When set, only matching lines count towards the discounted amount.
    """

    code = models.CharField(max_length=30, unique=True, verbose_name=_("code"))
    description = models.TextField(blank=True, verbose_name=_("description"))
    discount_type = models.CharField(
        max_length=10, choices=DiscountType.choices, verbose_name=_("discount type")
    )
    discount_value = models.DecimalField(
        **MONEY, validators=[MinValueValidator(0)], verbose_name=_("discount value")
    )
    min_order_amount = models.DecimalField(
        **MONEY, default=Decimal("0"), verbose_name=_("minimum order amount")
    )
    max_discount_amount = models.DecimalField(
        **MONEY, null=True, blank=True, verbose_name=_("maximum discount amount")
    )
    first_order_only = models.BooleanField(default=False, verbose_name=_("first order only"))
    is_active = models.BooleanField(default=True, verbose_name=_("is active"))
    valid_from = models.DateTimeField(default=timezone.now, verbose_name=_("valid from"))
    valid_until = models.DateTimeField(null=True, blank=True, verbose_name=_("valid until"))
    max_uses = models.PositiveIntegerField(null=True, blank=True, verbose_name=_("max uses"))
    used_count = models.PositiveIntegerField(default=0, verbose_name=_("used count"))
    max_uses_per_user = models.PositiveIntegerField(
        default=1, validators=[MinValueValidator(1)], verbose_name=_("max uses per user")
    )
    applicable_categories = models.JSONField(
        default=list, blank=True, verbose_name=_("applicable categories")
    )
    applicable_producers = models.ManyToManyField(
        Producer, blank=True, related_name="coupons", verbose_name=_("applicable producers")
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))

    class Meta:
        verbose_name = _("Coupon")
        verbose_name_plural = _("Coupons")
        ordering = ["-created_at"]

    def __str__(self):
        return self.code

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def is_valid(self, now=None):
        now = now or timezone.now()
        if not self.is_active:
            return False
        if self.valid_from and now < self.valid_from:
            return False
        if self.valid_until and now > self.valid_until:
            return False
        if self.max_uses is not None and self.used_count >= self.max_uses:
            return False
        return True

    def can_be_used_by(self, user):
        if not self.is_valid():
            return False
        return self.usages.filter(user=user).count() < self.max_uses_per_user

    def applies_to(self, product):
        """Whether a line for `product` counts towards the discounted amount."""
        if self.applicable_categories and product.category not in self.applicable_categories:
            return False
        producer_ids = {producer.pk for producer in self.applicable_producers.all()}
        if producer_ids and product.producer_id not in producer_ids:
            return False
        return True

    def calculate_discount(self, subtotal, eligible_subtotal=None):
        """
        Discount for an order.

        The minimum is checked against the whole `subtotal`; the discount is
        computed on `eligible_subtotal` (defaults to `subtotal`), capped at
        `max_discount_amount`, clamped to ``[0, eligible amount]`` and
        rounded to cents.

        Example:
            >>> Coupon(discount_type="percentage", discount_value=10,
            ...        max_discount_amount=5).calculate_discount(Decimal("100"))
            Decimal('5.00')
        """
        subtotal = Decimal(subtotal)
        base = subtotal if eligible_subtotal is None else Decimal(eligible_subtotal)
        if subtotal < self.min_order_amount:
            return Decimal("0.00")

        if self.discount_type == DiscountType.PERCENTAGE:
            discount = base * Decimal(self.discount_value) / Decimal("100")
        else:
            discount = Decimal(self.discount_value)

        if self.max_discount_amount is not None and discount > self.max_discount_amount:
            discount = Decimal(self.max_discount_amount)
        discount = max(Decimal("0"), min(discount, base))
        return quantize_money(discount)


class CouponUsage(models.Model):
    """Append-only record of one coupon redemption."""

    coupon = models.ForeignKey(
        Coupon, on_delete=models.CASCADE, related_name="usages", verbose_name=_("coupon")
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="coupon_usages",
        verbose_name=_("user"),
    )
    order = models.ForeignKey(
        "Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="coupon_usages",
        verbose_name=_("order"),
    )
    used_at = models.DateTimeField(auto_now_add=True, verbose_name=_("used at"))

    class Meta:
        verbose_name = _("Coupon usage")
        verbose_name_plural = _("Coupon usages")
        ordering = ["-used_at"]


class Order(models.Model):
    """
    A customer's purchase.

    Fields
    ------
    order_number : str
        Human-friendly reference, also used as bank transfer reference.
    subtotal / shipping_cost / discount / total : Decimal
        ``total = subtotal + shipping_cost - discount``, fixed at creation.
    status : str
        Fulfilment stage (`OrderStatus`).
    payment_method / payment_status : str
        See `PaymentMethod`, `PaymentStatus`.
    shipping_address : dict
        Snapshot with first_name, last_name, street, city, postal_code,
        country and phone.
    stripe_checkout_session_id / stripe_payment_intent_id : str
        Provider references used by the webhook reconciler.
    stock_committed : bool
        True while the line quantities are deducted from stock. Flipped only
        with conditional updates so stock moves at most once each way.
    version : int
        Incremented on every state change; clients may send it back to get
        a 409 instead of overwriting a concurrent change.

    Meta
    ----
    ordering : ["-created_at"]
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(
        max_length=32, unique=True, editable=False, verbose_name=_("order number")
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        verbose_name=_("customer"),
    )
    subtotal = models.DecimalField(**MONEY, verbose_name=_("subtotal"))
    shipping_cost = models.DecimalField(
        **MONEY, default=Decimal("0"), verbose_name=_("shipping cost")
    )
    discount = models.DecimalField(**MONEY, default=Decimal("0"), verbose_name=_("discount"))
    coupon = models.ForeignKey(
        Coupon,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
        verbose_name=_("coupon"),
    )
    coupon_code = models.CharField(max_length=30, blank=True, verbose_name=_("coupon code"))
    total = models.DecimalField(**MONEY, verbose_name=_("total"))
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        verbose_name=_("status"),
    )
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, verbose_name=_("payment method")
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        verbose_name=_("payment status"),
    )
    shipping_address = models.JSONField(verbose_name=_("shipping address"))
    notes = models.TextField(blank=True, verbose_name=_("notes"))
    stripe_checkout_session_id = models.CharField(
        max_length=255, blank=True, db_index=True, verbose_name=_("stripe checkout session id")
    )
    stripe_payment_intent_id = models.CharField(
        max_length=255, blank=True, db_index=True, verbose_name=_("stripe payment intent id")
    )
    tracking_number = models.CharField(max_length=100, blank=True, verbose_name=_("tracking number"))
    paid_at = models.DateTimeField(null=True, blank=True, verbose_name=_("paid at"))
    shipped_at = models.DateTimeField(null=True, blank=True, verbose_name=_("shipped at"))
    delivered_at = models.DateTimeField(null=True, blank=True, verbose_name=_("delivered at"))
    cancelled_at = models.DateTimeField(null=True, blank=True, verbose_name=_("cancelled at"))
    stock_committed = models.BooleanField(default=False, verbose_name=_("stock committed"))
    version = models.PositiveIntegerField(default=1, verbose_name=_("version"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    objects = OrderQuerySet.as_manager()

    class Meta:
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "created_at"], name="store_order_custome_idx"),
            models.Index(fields=["status"], name="store_order_status_idx"),
            models.Index(fields=["payment_status"], name="store_order_payment_idx"),
        ]

    def __str__(self):
        return f"{self.order_number} : {self.status}"

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_order_number()
        super().save(*args, **kwargs)

    @property
    def is_paid(self):
        return self.payment_status == PaymentStatus.PAID

    def producer_ids(self):
        return set(self.items.values_list("producer_id", flat=True))


class OrderItem(models.Model):
    """
    One line of an order.

    `price_at_purchase`, `product_name`, `variant_name` and
    `commission_rate` are copied from the catalog and the producer when the
    order is created and never change afterwards.
    """

    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="items", verbose_name=_("order")
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="order_items",
        verbose_name=_("product"),
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
        verbose_name=_("variant"),
    )
    producer = models.ForeignKey(
        Producer,
        on_delete=models.PROTECT,
        related_name="order_items",
        verbose_name=_("producer"),
    )
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)], verbose_name=_("quantity")
    )
    price_at_purchase = models.DecimalField(**MONEY, verbose_name=_("price at purchase"))
    product_name = models.CharField(max_length=200, verbose_name=_("product name"))
    variant_name = models.CharField(max_length=200, blank=True, verbose_name=_("variant name"))
    commission_rate = models.DecimalField(
        max_digits=5, decimal_places=2, verbose_name=_("commission rate")
    )

    class Meta:
        verbose_name = _("Order item")
        verbose_name_plural = _("Order items")

    def __str__(self):
        return f"{self.order.order_number}:{self.product_name}x{self.quantity}"

    @property
    def line_total(self):
        return quantize_money(self.price_at_purchase * self.quantity)


class Review(models.Model):
    """
    A customer's rating of a product bought in a delivered order.

    One review per (user, product). Saving or deleting a review refreshes
    the cached `rating` and `total_reviews` on both the product and its
    producer (see `store.signals`).
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews",
        verbose_name=_("user"),
    )
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="reviews", verbose_name=_("product")
    )
    producer = models.ForeignKey(
        Producer, on_delete=models.CASCADE, related_name="reviews", verbose_name=_("producer")
    )
    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="reviews", verbose_name=_("order")
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)], verbose_name=_("rating")
    )
    comment = models.CharField(max_length=500, blank=True, verbose_name=_("comment"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    class Meta:
        verbose_name = _("Review")
        verbose_name_plural = _("Reviews")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="unique_review_per_user_product")
        ]

    def __str__(self):
        return f"{self.user} -> {self.product}: {self.rating}"
