from django.contrib import admin

from .models import WalletLedgerEntry


@admin.register(WalletLedgerEntry)
class WalletLedgerEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "teacher", "amount", "gross_amount", "commission_rate", "created_at")
    search_fields = ("teacher__email", "description")
    readonly_fields = ("teacher", "amount", "gross_amount", "commission_rate", "subscription", "description", "created_at")

    def has_delete_permission(self, request, obj=None):
        return False
