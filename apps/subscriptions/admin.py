from django.contrib import admin

from .models import ActivationToken, PlanActivation, SubscriptionRecord


@admin.register(ActivationToken)
class ActivationTokenAdmin(admin.ModelAdmin):
    list_display = ("gateway_order_id", "user", "plan_id_to_activate", "user_type", "used", "expires_at", "created_at")
    search_fields = ("gateway_order_id", "gateway_payment_id", "user__email")
    list_filter = ("used", "user_type", "gateway")
    exclude = ("token",)


@admin.register(SubscriptionRecord)
class SubscriptionRecordAdmin(admin.ModelAdmin):
    list_display = ("student", "teacher", "plan", "payment_status", "amount_paid", "net_teacher_credit", "expires_at")
    search_fields = ("student__email", "teacher__email", "gateway_payment_id", "gateway_order_id")
    list_filter = ("payment_status", "gateway")


@admin.register(PlanActivation)
class PlanActivationAdmin(admin.ModelAdmin):
    list_display = ("gateway", "gateway_payment_id", "user_type", "plan_id", "status", "attempts", "updated_at")
    search_fields = ("gateway_payment_id", "gateway_order_id", "user_id_claimed")
    list_filter = ("status", "user_type", "gateway")
