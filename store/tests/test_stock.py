"""
Tests for `store.stock.StockLedger`.

Covers:
    - Conditional decrements that never go below zero.
    - Availability flips when products and variants run out or come back.
    - Order-level commit and restore happening at most once each.
"""

import pytest

from core.exceptions import InsufficientStockError
from store.factories import (
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    ProductVariantFactory,
)
from store.stock import StockLedger


@pytest.mark.django_db
class TestStockLedger:
    def test_reduce_then_increase_restores_stock_and_availability(self):
        product = ProductFactory(stock=4)

        StockLedger.reduce_stock(product, 4)
        assert product.stock == 0
        assert product.is_available is False

        StockLedger.increase_stock(product, 4)
        assert product.stock == 4
        assert product.is_available is True

    def test_reduce_more_than_available_raises_and_keeps_stock(self):
        product = ProductFactory(stock=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            StockLedger.reduce_stock(product, 5)

        assert exc_info.value.product_name == product.display_name
        assert exc_info.value.available == 3
        product.refresh_from_db()
        assert product.stock == 3
        assert product.is_available is True

    def test_reduce_bumps_version(self):
        product = ProductFactory(stock=5)
        version = product.version

        StockLedger.reduce_stock(product, 2)

        assert product.version == version + 1

    def test_variant_reduce_marks_product_unavailable_when_all_variants_empty(self):
        variant = ProductVariantFactory(stock=2)
        other = ProductVariantFactory(product=variant.product, stock=1)
        product = variant.product

        StockLedger.reduce_stock(product, 2, variant)
        assert variant.stock == 0
        assert variant.is_available is False
        assert product.is_available is True

        StockLedger.reduce_stock(product, 1, other)
        assert product.is_available is False

    def test_has_stock_is_false_for_unavailable_product(self):
        product = ProductFactory(stock=10, is_available=False)

        assert StockLedger.has_stock(product, 1) is False

    def test_non_positive_quantity_is_rejected(self):
        product = ProductFactory(stock=10)

        with pytest.raises(ValueError):
            StockLedger.reduce_stock(product, 0)

    def test_hidden_product_is_never_sold(self):
        product = ProductFactory(stock=5, is_available=False)

        with pytest.raises(InsufficientStockError) as exc_info:
            StockLedger.reduce_stock(product, 1)

        product.refresh_from_db()
        assert product.stock == 5
        assert exc_info.value.available == 0

    def test_hidden_variant_is_never_sold(self):
        variant = ProductVariantFactory(stock=3, is_available=False)

        with pytest.raises(InsufficientStockError):
            StockLedger.reduce_stock(variant.product, 1, variant)

        variant.refresh_from_db()
        assert variant.stock == 3

    def test_increase_keeps_hidden_product_hidden(self):
        product = ProductFactory(stock=5, is_available=False)

        StockLedger.increase_stock(product, 2)

        assert product.stock == 7
        assert product.is_available is False

    def test_increase_keeps_hidden_variant_hidden(self):
        variant = ProductVariantFactory(stock=3, is_available=False)
        ProductVariantFactory(product=variant.product, stock=2)

        StockLedger.increase_stock(variant.product, 1, variant)

        assert variant.stock == 4
        assert variant.is_available is False

    def test_partial_reduce_and_increase_keep_product_available(self):
        product = ProductFactory(stock=5)

        StockLedger.reduce_stock(product, 1)
        StockLedger.increase_stock(product, 1)

        assert product.stock == 5
        assert product.is_available is True


@pytest.mark.django_db
class TestOrderStockMovements:
    def test_commit_order_deducts_once(self):
        item = OrderItemFactory(product=ProductFactory(stock=5), quantity=2)
        order = item.order

        assert StockLedger.commit_order(order) is True
        assert StockLedger.commit_order(order) is False

        item.product.refresh_from_db()
        order.refresh_from_db()
        assert item.product.stock == 3
        assert order.stock_committed is True

    def test_commit_order_rolls_back_every_line_on_shortfall(self):
        order = OrderFactory()
        plenty = OrderItemFactory(order=order, product=ProductFactory(stock=5), quantity=2)
        short = OrderItemFactory(order=order, product=ProductFactory(stock=1), quantity=2)

        with pytest.raises(InsufficientStockError):
            StockLedger.commit_order(order)

        plenty.product.refresh_from_db()
        short.product.refresh_from_db()
        order.refresh_from_db()
        assert plenty.product.stock == 5
        assert short.product.stock == 1
        assert order.stock_committed is False

    def test_restore_order_only_after_commit_and_only_once(self):
        item = OrderItemFactory(product=ProductFactory(stock=5), quantity=2)
        order = item.order

        assert StockLedger.restore_order(order) is False

        StockLedger.commit_order(order)
        assert StockLedger.restore_order(order) is True
        assert StockLedger.restore_order(order) is False

        item.product.refresh_from_db()
        assert item.product.stock == 5

    def test_restore_after_hiding_keeps_product_hidden(self):
        product = ProductFactory(stock=5)
        order = OrderItemFactory(product=product, quantity=2).order
        StockLedger.commit_order(order)
        product.refresh_from_db()
        product.is_available = False
        product.save(update_fields=["is_available"])

        StockLedger.restore_order(order)

        product.refresh_from_db()
        assert product.stock == 5
        assert product.is_available is False
