"""
Enumerations for the catalog, orders and coupons.
"""

from django.db import models

DEFAULT_LANGUAGE = "es"
SUPPORTED_LANGUAGES = ("es", "en", "fr", "de")


class ProductCategory(models.TextChoices):
    FRUITS = "fruits", "Fruits"
    VEGETABLES = "vegetables", "Vegetables"
    DAIRY = "dairy", "Dairy"
    MEAT = "meat", "Meat"
    BAKERY = "bakery", "Bakery"
    EGGS = "eggs", "Eggs"
    HONEY = "honey", "Honey"
    OIL = "oil", "Oil"
    WINE = "wine", "Wine"
    OTHER = "other", "Other"


class ProductUnit(models.TextChoices):
    KG = "kg", "Kilogram"
    UNIT = "unit", "Unit"
    LITER = "liter", "Liter"
    GRAM = "gram", "Gram"
    DOZEN = "dozen", "Dozen"


class Currency(models.TextChoices):
    EUR = "EUR", "Euro"
    USD = "USD", "US Dollar"
    GBP = "GBP", "Pound Sterling"


class WeightUnit(models.TextChoices):
    GRAM = "g", "Gram"
    KG = "kg", "Kilogram"
    ML = "ml", "Millilitre"
    LITER = "l", "Litre"
    UNIT = "unit", "Unit"


class OrderStatus(models.TextChoices):
    """
    Fulfilment stage of an order.

    pending → confirmed → preparing → shipped → delivered, with `cancelled`
    reachable from every stage before shipping. See `ORDER_TRANSITIONS`.
    """

    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PREPARING = "preparing", "Preparing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {
        OrderStatus.PREPARING,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PREPARING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class PaymentMethod(models.TextChoices):
    CARD = "card", "Card"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"
    CASH_ON_DELIVERY = "cash_on_delivery", "Cash on delivery"


# Methods whose collection happens after the order is placed
DEFERRED_PAYMENT_METHODS = {PaymentMethod.CARD, PaymentMethod.BANK_TRANSFER}


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class DiscountType(models.TextChoices):
    PERCENTAGE = "percentage", "Percentage"
    FIXED = "fixed", "Fixed amount"
