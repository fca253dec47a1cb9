"""
Commission calculator, producer statistics and the admin sales report.

Only paid orders count towards revenue. Commission is computed per line
item from the rate snapshotted on the item when the order was placed:

    commission = price_at_purchase × quantity × commission_rate / 100

rounded to cents (half up). The producer payout is the line total minus
its commission.
"""

from decimal import Decimal

from django.db.models import DecimalField, ExpressionWrapper, F, Sum

from .constants import OrderStatus
from .models import Order, OrderItem
from .utils import quantize_money

ZERO = Decimal("0.00")
TOP_PRODUCTS_LIMIT = 10


def commission_for(amount, rate):
    return quantize_money(Decimal(amount) * Decimal(rate) / Decimal("100"))


def _paid_items(start=None, end=None):
    items = OrderItem.objects.filter(order__payment_status="paid")
    if start:
        items = items.filter(order__created_at__gte=start)
    if end:
        items = items.filter(order__created_at__lte=end)
    return items


class CommissionCalculator:
    """
    Methods:
        item_breakdown(item): Gross, commission and payout of one line.
        producer_summary(producer, start=None, end=None): Totals for one producer.
        sales_report(start=None, end=None): Marketplace-wide report.
    """

    @staticmethod
    def item_breakdown(item):
        gross = item.line_total
        commission = commission_for(gross, item.commission_rate)
        return {"gross": gross, "commission": commission, "net": gross - commission}

    @staticmethod
    def producer_summary(producer, start=None, end=None):
        gross = commission = ZERO
        orders = set()
        units = 0
        for item in _paid_items(start, end).filter(producer=producer):
            breakdown = CommissionCalculator.item_breakdown(item)
            gross += breakdown["gross"]
            commission += breakdown["commission"]
            orders.add(item.order_id)
            units += item.quantity
        return {
            "producer_id": str(producer.pk),
            "business_name": producer.business_name,
            "gross_revenue": gross,
            "commission": commission,
            "net_payout": gross - commission,
            "order_count": len(orders),
            "item_count": units,
        }

    @staticmethod
    def sales_report(start=None, end=None):
        """
        Revenue, order count, average order value, platform commission,
        top products by revenue and per-producer payouts for paid orders.
        """
        orders = Order.objects.paid()
        if start:
            orders = orders.filter(created_at__gte=start)
        if end:
            orders = orders.filter(created_at__lte=end)

        total_revenue = orders.aggregate(total=Sum("total"))["total"] or ZERO
        total_orders = orders.count()
        average = quantize_money(total_revenue / total_orders) if total_orders else ZERO

        items = _paid_items(start, end)
        line_revenue = ExpressionWrapper(
            F("price_at_purchase") * F("quantity"),
            output_field=DecimalField(max_digits=14, decimal_places=2),
        )
        top_products = [
            {
                "product_id": str(row["product_id"]),
                "product_name": row["product_name"],
                "units_sold": row["units_sold"],
                "revenue": quantize_money(row["revenue"]),
            }
            for row in items.values("product_id", "product_name")
            .annotate(units_sold=Sum("quantity"), revenue=Sum(line_revenue))
            .order_by("-revenue")[:TOP_PRODUCTS_LIMIT]
        ]

        by_producer = {}
        platform_commission = ZERO
        for item in items.select_related("producer"):
            breakdown = CommissionCalculator.item_breakdown(item)
            platform_commission += breakdown["commission"]
            row = by_producer.setdefault(
                item.producer_id,
                {
                    "producer_id": str(item.producer_id),
                    "business_name": item.producer.business_name,
                    "gross_revenue": ZERO,
                    "commission": ZERO,
                    "net_payout": ZERO,
                },
            )
            row["gross_revenue"] += breakdown["gross"]
            row["commission"] += breakdown["commission"]
            row["net_payout"] += breakdown["net"]

        return {
            "total_revenue": quantize_money(total_revenue),
            "total_orders": total_orders,
            "average_order_value": average,
            "platform_commission": platform_commission,
            "top_products": top_products,
            "producers": sorted(
                by_producer.values(), key=lambda row: row["gross_revenue"], reverse=True
            ),
        }


def producer_stats(producer):
    """Dashboard numbers for one producer, commission summary included."""
    products = producer.products.all()
    orders = Order.objects.for_producer(producer)
    return {
        "total_products": products.count(),
        "active_products": products.filter(is_available=True).count(),
        "total_orders": orders.count(),
        "completed_orders": orders.filter(status=OrderStatus.DELIVERED).count(),
        "pending_orders": orders.filter(
            status__in=[OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING]
        ).count(),
        "current_commission_rate": producer.get_current_commission_rate(),
        "rating": producer.rating,
        "total_reviews": producer.total_reviews,
        "sales": CommissionCalculator.producer_summary(producer),
    }
