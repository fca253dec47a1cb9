from django.db import models
from django.utils.translation import gettext_lazy as _


class WebhookEvent(models.Model):
    """
    A provider event that has been reconciled.

    Exact redeliveries are short-circuited by `event_id`; the conditional
    updates on the order remain the real idempotency guard.
    """

    OUTCOME_APPLIED = "applied"
    OUTCOME_ALREADY_APPLIED = "already_applied"
    OUTCOME_ORDER_NOT_FOUND = "order_not_found"
    OUTCOME_IGNORED = "ignored"

    event_id = models.CharField(max_length=255, unique=True, verbose_name=_("event id"))
    type = models.CharField(max_length=100, db_index=True, verbose_name=_("type"))
    outcome = models.CharField(max_length=30, verbose_name=_("outcome"))
    order_id = models.UUIDField(null=True, blank=True, verbose_name=_("order id"))
    processed_at = models.DateTimeField(auto_now_add=True, verbose_name=_("processed at"))

    class Meta:
        verbose_name = _("Webhook event")
        verbose_name_plural = _("Webhook events")
        ordering = ["-processed_at"]

    def __str__(self):
        return f"{self.type}:{self.event_id}"
