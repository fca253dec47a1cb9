"""
Custom querysets for producers, products and orders.

Example
-------
>>> Product.objects.visible().with_annotations()
>>> Order.objects.visible_to(request.user).paid()
"""

from django.db import models
from django.db.models import Q, Sum


class ProducerQuerySet(models.QuerySet):
    def active(self):
        """Producers allowed to sell: approved and not suspended."""
        return self.filter(is_approved=True, is_suspended=False)


class ProductQuerySet(models.QuerySet):
    """
    Catalog queries.

    Features
    --------
    - `visible()` restricts to available products of active producers.
    - `with_annotations()` adds the units sold in paid orders.
    """

    def visible(self):
        return self.filter(
            is_available=True,
            producer__is_approved=True,
            producer__is_suspended=False,
        )

    def with_annotations(self):
        """
        Annotate each product with `sales_count`, the quantity sold in paid orders.

        Returns
        -------
        django.db.models.QuerySet
        """
        return self.annotate(
            sales_count=Sum(
                "order_items__quantity",
                filter=Q(order_items__order__payment_status="paid"),
                default=0,
            )
        )


class OrderQuerySet(models.QuerySet):
    def paid(self):
        return self.filter(payment_status="paid")

    def for_producer(self, producer):
        """Orders holding at least one line sold by `producer`."""
        return self.filter(items__producer=producer).distinct()

    def visible_to(self, user):
        """
        Orders a user may read: admins see everything, producers the orders
        containing their products, customers their own.
        """
        if user.is_admin:
            return self.all()
        producer = getattr(user, "producer_profile", None) if user.is_producer else None
        if producer is not None:
            return self.filter(Q(customer=user) | Q(items__producer=producer)).distinct()
        return self.filter(customer=user)
