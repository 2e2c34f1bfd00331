from rest_framework import serializers

from .models import WalletLedgerEntry


class WalletLedgerEntrySerializer(serializers.ModelSerializer):
    student_email = serializers.CharField(source="subscription.student.email", read_only=True, allow_null=True)
    plan_name = serializers.CharField(source="subscription.plan.name", read_only=True, allow_null=True)

    class Meta:
        model = WalletLedgerEntry
        fields = [
            "id",
            "teacher",
            "amount",
            "gross_amount",
            "commission_rate",
            "subscription",
            "student_email",
            "plan_name",
            "description",
            "created_at",
        ]
