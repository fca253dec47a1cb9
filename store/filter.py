"""
`django-filter` filter sets for catalog, order and review listings.

Usage
-----
Query parameters such as
``?category=honey&price_min=5&price_max=20&rating=4&producer=<uuid>``
narrow product listings; orders accept ``?status=shipped&payment_status=paid``
and a creation date range.
"""

from django.db.models import Exists, OuterRef, Q
from django_filters.rest_framework import FilterSet, filters

from .constants import OrderStatus, PaymentMethod, PaymentStatus, ProductCategory
from .models import Order, Producer, Product, ProductVariant, Review

RATING_CHOICES = [(i, f"{i} star") for i in range(1, 6)] + [("all", "all")]


class ProductFilter(FilterSet):
    """
    Filters
    -------
    category : ChoiceFilter
        One of `ProductCategory`.
    producer : UUIDFilter
        Products of one producer.
    price_min / price_max : NumberFilter
        Base price range (inclusive).
    rating : ChoiceFilter
        Minimum cached rating, 1 to 5 or "all".
    in_stock : BooleanFilter
        Only products with base stock, or at least one variant in stock.

    Example
    -------
    >>> f = ProductFilter({"category": "honey", "rating": 4}, queryset=Product.objects.all())
    >>> qs = f.qs
    """

    category = filters.ChoiceFilter(choices=ProductCategory.choices)
    producer = filters.UUIDFilter(field_name="producer_id")
    price_min = filters.NumberFilter(field_name="price", lookup_expr="gte")
    price_max = filters.NumberFilter(field_name="price", lookup_expr="lte")
    rating = filters.ChoiceFilter(method="filter_by_rating", choices=RATING_CHOICES)
    in_stock = filters.BooleanFilter(method="filter_in_stock")

    class Meta:
        model = Product
        fields = ["category", "producer", "price_min", "price_max", "rating", "in_stock"]

    def filter_by_rating(self, queryset, name, value):
        if value == "all":
            return queryset
        return queryset.filter(rating__gte=int(value))

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        variant_in_stock = Exists(
            ProductVariant.objects.filter(product=OuterRef("pk"), stock__gt=0)
        )
        lookup = Q(has_variants=False, stock__gt=0) | Q(has_variants=True) & Q(variant_in_stock)
        if value:
            return queryset.filter(lookup)
        return queryset.exclude(lookup)


class ProducerFilter(FilterSet):
    city = filters.CharFilter(lookup_expr="iexact")
    region = filters.CharFilter(lookup_expr="iexact")

    class Meta:
        model = Producer
        fields = ["city", "region", "is_approved", "is_suspended"]


class OrderFilter(FilterSet):
    status = filters.ChoiceFilter(choices=OrderStatus.choices)
    payment_status = filters.ChoiceFilter(choices=PaymentStatus.choices)
    payment_method = filters.ChoiceFilter(choices=PaymentMethod.choices)
    created_from = filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    created_to = filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = ["status", "payment_status", "payment_method", "created_from", "created_to"]


class ReviewFilter(FilterSet):
    rating = filters.ChoiceFilter(method="filter_by_rating", choices=RATING_CHOICES)
    product = filters.UUIDFilter(field_name="product_id")
    producer = filters.UUIDFilter(field_name="producer_id")

    class Meta:
        model = Review
        fields = ["rating", "product", "producer"]

    def filter_by_rating(self, queryset, name, value):
        if value == "all":
            return queryset
        return queryset.filter(rating=int(value))
