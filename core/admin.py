"""
Admin configuration for accounts and push subscriptions.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .forms import CustomUserChangeForm, CustomUserCreationForm
from .models import CustomUser, PushSubscription


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    """
    `UserAdmin` adapted to email login and marketplace roles.

    The hidden UUID `username` only shows up, read-only, when editing.
    """

    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    list_display = (
        "id",
        "email",
        "full_name",
        "role",
        "is_email_verified",
        "is_active",
        "date_joined",
    )
    list_display_links = ("id", "email")
    search_fields = ("email", "first_name", "last_name", "phone_number")
    list_filter = ("role", "is_email_verified", "is_staff", "is_active")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Personal info", {"fields": ("first_name", "last_name", "phone_number")}),
        ("Marketplace", {"fields": ("role", "is_email_verified")}),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                )
            },
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "role", "password1", "password2"),
            },
        ),
    )
    readonly_fields = ("last_login", "date_joined")
    ordering = ("-date_joined",)
    actions = ["mark_email_verified"]

    @admin.action(description="Mark email as verified")
    def mark_email_verified(self, request, queryset):
        updated = queryset.filter(is_email_verified=False).update(is_email_verified=True)
        self.message_user(request, f"{updated} account(s) verified.")

    def get_fieldsets(self, request, obj=None):
        fieldsets = super().get_fieldsets(request, obj)
        if not obj:
            return fieldsets
        return fieldsets + (("Internal", {"fields": ("username",)}),)

    def get_readonly_fields(self, request, obj=None):
        readonly_fields = super().get_readonly_fields(request, obj)
        if obj:
            return readonly_fields + ("username",)
        return readonly_fields


@admin.register(PushSubscription)
class PushSubscriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("user__email", "endpoint")
    raw_id_fields = ("user",)
