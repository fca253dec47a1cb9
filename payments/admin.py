from django.contrib import admin

from .models import WebhookEvent


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ["event_id", "type", "outcome", "order_id", "processed_at"]
    list_filter = ["type", "outcome"]
    search_fields = ["event_id", "order_id"]
    readonly_fields = ["event_id", "type", "outcome", "order_id", "processed_at"]

    def has_add_permission(self, request):
        return False
