"""
Shipping quotes from producer shipping zones.

Each producer in an order is quoted separately: the first active zone that
covers the destination postal code (or city) gives the cost, and the part of
the order sold by that producer must reach the zone's minimum. Producers
that have not configured any zone ship at the marketplace default cost.
"""

from decimal import Decimal

from django.conf import settings
from django.utils.translation import gettext as _
from rest_framework.exceptions import ValidationError

from .utils import quantize_money


class ShippingCalculator:
    @staticmethod
    def quote(producer, postal_code=None, city=None, amount=Decimal("0")):
        """
        Quote shipping for `amount` worth of `producer`'s products.

        Returns:
            dict: ``{"cost": Decimal, "zone": ShippingZone | None, "estimated_days": int | None}``

        Raises:
            ValidationError: The producer has zones but none covers the
                destination, or the amount is below the zone minimum.
        """
        zones = list(producer.shipping_zones.filter(is_active=True))
        if not zones:
            return {
                "cost": quantize_money(settings.MARKETPLACE["DEFAULT_SHIPPING_COST"]),
                "zone": None,
                "estimated_days": None,
            }

        zone = next((z for z in zones if z.covers(postal_code, city)), None)
        if zone is None:
            raise ValidationError(
                {
                    "shipping_address": _("%(producer)s does not ship to this address.")
                    % {"producer": producer.business_name}
                }
            )
        if not zone.meets_minimum(amount):
            raise ValidationError(
                {
                    "shipping_address": _(
                        "The minimum order for %(producer)s in %(zone)s is %(minimum)s."
                    )
                    % {
                        "producer": producer.business_name,
                        "zone": zone.name,
                        "minimum": zone.min_order_amount,
                    }
                }
            )
        return {
            "cost": quantize_money(zone.cost),
            "zone": zone,
            "estimated_days": zone.estimated_days,
        }

    @staticmethod
    def quote_order(amounts_by_producer, postal_code=None, city=None):
        """
        Total shipping for an order.

        Args:
            amounts_by_producer (dict[Producer, Decimal]): Subtotal per producer.
        """
        total = Decimal("0")
        for producer, amount in amounts_by_producer.items():
            total += ShippingCalculator.quote(producer, postal_code, city, amount)["cost"]
        return quantize_money(total)
