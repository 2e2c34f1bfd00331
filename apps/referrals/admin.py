from django.contrib import admin

from .models import ReferralCode


@admin.register(ReferralCode)
class ReferralCodeAdmin(admin.ModelAdmin):
    list_display = ("code", "teacher", "discount_percentage", "expiry_date", "created_at")
    search_fields = ("code", "teacher__email")
    list_filter = ("expiry_date",)
    filter_horizontal = ("applicable_plans",)
