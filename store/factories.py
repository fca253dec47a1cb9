"""
Marketplace factories for tests.

Example:
    >>> product = ProductFactory(stock=3)
    >>> product.producer.can_sell
    True
    >>> order = OrderFactory(customer=UserFactory())
    >>> OrderItemFactory(order=order, product=product, quantity=2)
"""

from decimal import Decimal

import factory

from core.constants import UserRole
from core.factories import UserFactory

from .constants import OrderStatus, PaymentMethod, PaymentStatus, ProductCategory
from .models import (
    Coupon,
    Order,
    OrderItem,
    Producer,
    Product,
    ProductVariant,
    Review,
    ShippingZone,
)


class ProducerFactory(factory.django.DjangoModelFactory):
    """Approved producers owned by a user with the producer role."""

    class Meta:
        model = Producer

    user = factory.SubFactory(UserFactory, role=UserRole.PRODUCER)
    business_name = factory.Sequence(lambda n: f"Huerta {n}")
    city = "Madrid"
    region = "Madrid"
    is_approved = True


class ProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Product

    producer = factory.SubFactory(ProducerFactory)
    name = factory.Sequence(lambda n: {"es": f"Producto {n}", "en": f"Product {n}"})
    category = ProductCategory.VEGETABLES
    price = Decimal("10.00")
    stock = 10


class ProductVariantFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ProductVariant

    product = factory.SubFactory(ProductFactory, has_variants=True, stock=0)
    name = factory.Sequence(lambda n: {"es": f"Formato {n}"})
    price = Decimal("6.00")
    stock = 5


class ShippingZoneFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ShippingZone

    producer = factory.SubFactory(ProducerFactory)
    name = "Madrid capital"
    postal_codes = ["28001", "28013"]
    cities = ["Madrid"]
    cost = Decimal("4.50")


class CouponFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Coupon

    code = factory.Sequence(lambda n: f"SAVE{n}")
    discount_type = "percentage"
    discount_value = Decimal("10")


class OrderFactory(factory.django.DjangoModelFactory):
    """
    Bare orders with fixed totals; add lines with `OrderItemFactory`.

    Defaults to a pending card order.
    """

    class Meta:
        model = Order

    customer = factory.SubFactory(UserFactory)
    subtotal = Decimal("20.00")
    total = Decimal("20.00")
    status = OrderStatus.PENDING
    payment_method = PaymentMethod.CARD
    payment_status = PaymentStatus.PENDING
    shipping_address = factory.LazyFunction(
        lambda: {
            "first_name": "Ana",
            "last_name": "García",
            "street": "Calle Mayor 1",
            "city": "Madrid",
            "postal_code": "28013",
            "country": "ES",
        }
    )


class OrderItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    product = factory.SubFactory(ProductFactory)
    producer = factory.LazyAttribute(lambda item: item.product.producer)
    quantity = 2
    price_at_purchase = factory.LazyAttribute(lambda item: item.product.price)
    product_name = factory.LazyAttribute(lambda item: item.product.display_name)
    commission_rate = Decimal("15")


class ReviewFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Review

    user = factory.SubFactory(UserFactory)
    product = factory.SubFactory(ProductFactory)
    producer = factory.LazyAttribute(lambda review: review.product.producer)
    order = factory.SubFactory(
        OrderFactory,
        customer=factory.SelfAttribute("..user"),
        status=OrderStatus.DELIVERED,
    )
    rating = 5
