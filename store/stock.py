"""
Stock ledger: every change to product and variant stock goes through here.

Decrements are single conditional updates
(``UPDATE ... SET stock = stock - q WHERE id = ... AND stock >= q``), so two
concurrent buyers can never take the same last unit. Zero rows updated means
the stock was insufficient at write time.

Order-level movements (`commit_order` / `restore_order`) are guarded by a
compare-and-swap on `Order.stock_committed`, so a given order deducts its
lines at most once and gives them back at most once, however many times a
webhook is redelivered.
"""

import logging

from django.db import transaction
from django.db.models import F

from core.exceptions import InsufficientStockError

from .models import Order, Product, ProductVariant

logger = logging.getLogger(__name__)


class StockLedger:
    """
    Methods:
        has_stock(product, quantity, variant=None): Read-only availability check.
        reduce_stock(product, quantity, variant=None): Atomic decrement.
        increase_stock(product, quantity, variant=None): Atomic increment.
        commit_order(order): Deduct all lines of an order once.
        restore_order(order): Give back all lines of a committed order once.
    """

    @staticmethod
    def available_quantity(product, variant=None):
        return variant.stock if variant is not None else product.stock

    @staticmethod
    def has_stock(product, quantity, variant=None) -> bool:
        if not product.is_available:
            return False
        if variant is not None:
            return variant.is_available and variant.stock >= quantity
        return product.stock >= quantity

    @staticmethod
    def reduce_stock(product, quantity, variant=None):
        """
        Decrement stock by `quantity`.

        Marks the product (or variant) unavailable when it reaches zero; for
        variants the product itself goes unavailable once every variant is
        at zero. Hidden products and variants are never sold. Bumps
        `Product.version`.

        Raises:
            InsufficientStockError: Fewer than `quantity` units were left, or
                the item is unavailable.
        """
        if quantity < 1:
            raise ValueError("quantity must be positive")

        with transaction.atomic():
            if variant is not None:
                updated = ProductVariant.objects.filter(
                    pk=variant.pk,
                    product_id=product.pk,
                    product__is_available=True,
                    is_available=True,
                    stock__gte=quantity,
                ).update(stock=F("stock") - quantity)
                if not updated:
                    variant.refresh_from_db(fields=["stock", "is_available"])
                    product.refresh_from_db(fields=["is_available"])
                    sellable = variant.is_available and product.is_available
                    raise InsufficientStockError(
                        f"{product.display_name} ({variant.display_name})",
                        available=variant.stock if sellable else 0,
                    )
                ProductVariant.objects.filter(pk=variant.pk, stock=0).update(
                    is_available=False
                )
                product_updates = {"version": F("version") + 1}
                if not ProductVariant.objects.filter(
                    product_id=product.pk, stock__gt=0
                ).exists():
                    product_updates["is_available"] = False
                Product.objects.filter(pk=product.pk).update(**product_updates)
                variant.refresh_from_db(fields=["stock", "is_available"])
            else:
                updated = Product.objects.filter(
                    pk=product.pk, is_available=True, stock__gte=quantity
                ).update(stock=F("stock") - quantity, version=F("version") + 1)
                if not updated:
                    product.refresh_from_db(fields=["stock", "is_available"])
                    raise InsufficientStockError(
                        product.display_name,
                        available=product.stock if product.is_available else 0,
                    )
                Product.objects.filter(pk=product.pk, stock=0).update(is_available=False)

        product.refresh_from_db(fields=["stock", "is_available", "version"])
        logger.info(
            "Stock -%s for product %s%s",
            quantity,
            product.pk,
            f" variant {variant.pk}" if variant is not None else "",
        )

    @staticmethod
    def increase_stock(product, quantity, variant=None):
        """
        Increment stock by `quantity`.

        Availability comes back only for items that ran out: a product or
        variant hidden while it still had stock stays hidden.
        """
        if quantity < 1:
            raise ValueError("quantity must be positive")

        with transaction.atomic():
            if variant is not None:
                product_was_empty = not ProductVariant.objects.filter(
                    product_id=product.pk, stock__gt=0
                ).exists()
                ProductVariant.objects.filter(pk=variant.pk, stock=0).update(is_available=True)
                ProductVariant.objects.filter(pk=variant.pk).update(stock=F("stock") + quantity)
                product_updates = {"version": F("version") + 1}
                if product_was_empty:
                    product_updates["is_available"] = True
                Product.objects.filter(pk=product.pk).update(**product_updates)
                variant.refresh_from_db(fields=["stock", "is_available"])
            else:
                Product.objects.filter(pk=product.pk, stock=0).update(is_available=True)
                Product.objects.filter(pk=product.pk).update(
                    stock=F("stock") + quantity, version=F("version") + 1
                )

        product.refresh_from_db(fields=["stock", "is_available", "version"])
        logger.info(
            "Stock +%s for product %s%s",
            quantity,
            product.pk,
            f" variant {variant.pk}" if variant is not None else "",
        )

    @staticmethod
    def commit_order(order) -> bool:
        """
        Deduct every line of `order` from stock, once.

        Runs in its own savepoint: if any line is short, nothing is deducted,
        `stock_committed` stays False and `InsufficientStockError` propagates.

        Returns:
            bool: False when the order's stock was already committed.
        """
        with transaction.atomic():
            claimed = Order.objects.filter(pk=order.pk, stock_committed=False).update(
                stock_committed=True, version=F("version") + 1
            )
            if not claimed:
                return False
            for item in order.items.select_related("product", "variant"):
                StockLedger.reduce_stock(item.product, item.quantity, item.variant)

        order.stock_committed = True
        logger.info("Stock committed for order %s", order.order_number)
        return True

    @staticmethod
    def restore_order(order) -> bool:
        """
        Give back the stock of a committed order, once.

        Returns:
            bool: False when there was nothing to restore.
        """
        with transaction.atomic():
            released = Order.objects.filter(pk=order.pk, stock_committed=True).update(
                stock_committed=False, version=F("version") + 1
            )
            if not released:
                return False
            for item in order.items.select_related("product", "variant"):
                StockLedger.increase_stock(item.product, item.quantity, item.variant)

        order.stock_committed = False
        logger.info("Stock restored for order %s", order.order_number)
        return True
