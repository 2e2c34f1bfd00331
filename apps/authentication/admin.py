from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Personal info", {"fields": ("full_name", "phone_number", "role")}),
        (
            "Student subscription",
            {
                "fields": (
                    "subscription_tier",
                    "subscription_expires_at",
                    "subscribed_teachers",
                )
            },
        ),
        (
            "Teacher subscription",
            {
                "fields": (
                    "teacher_subscription_tier",
                    "max_content_plans_allowed",
                    "wallet_balance",
                )
            },
        ),
        (
            "Roles",
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
        ("Important dates", {"fields": ("last_login", "created_at", "updated_at")}),
    )
    readonly_fields = ("wallet_balance", "created_at", "updated_at")
    filter_horizontal = ("subscribed_teachers", "groups", "user_permissions")
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "full_name", "role", "password1", "password2"),
            },
        ),
    )
    list_display = ("email", "full_name", "role", "subscription_tier", "teacher_subscription_tier", "is_active")
    list_filter = ("role", "subscription_tier", "teacher_subscription_tier")
    search_fields = ("email", "full_name")
    ordering = ("email",)
