"""
Keep cached review aggregates in sync.

Whenever a review is saved or deleted, `rating` (average, one decimal) and
`total_reviews` are recomputed for both its product and its producer.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Avg, Count
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Producer, Product, Review

logger = logging.getLogger(__name__)


def _aggregate(queryset):
    stats = queryset.aggregate(average=Avg("rating"), count=Count("id"))
    average = stats["average"] or 0
    rating = Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return rating, stats["count"]


def refresh_review_stats(product_id, producer_id):
    rating, count = _aggregate(Review.objects.filter(product_id=product_id))
    Product.objects.filter(pk=product_id).update(rating=rating, total_reviews=count)

    rating, count = _aggregate(Review.objects.filter(producer_id=producer_id))
    Producer.objects.filter(pk=producer_id).update(rating=rating, total_reviews=count)


@receiver(post_save, sender=Review)
@receiver(post_delete, sender=Review)
def update_review_stats(sender, instance, **kwargs):
    refresh_review_stats(instance.product_id, instance.producer_id)
