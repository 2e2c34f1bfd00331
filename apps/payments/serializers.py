from rest_framework import serializers

from apps.subscriptions.intents import STUDENT_TEACHER_PLAN, USER_TYPES


class PlanPurchaseSerializer(serializers.Serializer):
    """
    Fields shared by every checkout request. Keys are camelCase to match the
    browser client.
    """

    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    planId = serializers.CharField(max_length=64)
    userId = serializers.CharField(max_length=64)
    userType = serializers.ChoiceField(choices=USER_TYPES)
    teacherIdForPlan = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    referralCodeUsed = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)
    productDescription = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate(self, attrs):
        if attrs["userType"] == STUDENT_TEACHER_PLAN and not attrs.get("teacherIdForPlan"):
            raise serializers.ValidationError({"teacherIdForPlan": "Required for a teacher plan subscription."})
        return attrs


class CreateOrderSerializer(PlanPurchaseSerializer):
    currency = serializers.CharField(required=False, max_length=3)


class PayUInitiateSerializer(PlanPurchaseSerializer):
    userType = serializers.ChoiceField(choices=USER_TYPES, required=False, default="teacher_platform_plan")
    firstname = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20)


class VerifyPaymentSerializer(serializers.Serializer):
    """
    Accepts the Razorpay checkout handler's field names
    (``razorpay_payment_id`` ...) or the short ones (``payment_id`` ...).
    """

    razorpay_payment_id = serializers.CharField(required=False, max_length=100)
    razorpay_order_id = serializers.CharField(required=False, max_length=100)
    razorpay_signature = serializers.CharField(required=False, max_length=256)
    payment_id = serializers.CharField(required=False, max_length=100)
    order_id = serializers.CharField(required=False, max_length=100)
    signature = serializers.CharField(required=False, max_length=256)
    planId = serializers.CharField(max_length=64)
    userId = serializers.CharField(max_length=64)
    userType = serializers.ChoiceField(choices=USER_TYPES)
    teacherIdForPlan = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    referralCodeUsed = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)

    def validate(self, attrs):
        attrs["payment_id"] = attrs.get("razorpay_payment_id") or attrs.get("payment_id")
        attrs["order_id"] = attrs.get("razorpay_order_id") or attrs.get("order_id")
        attrs["signature"] = attrs.get("razorpay_signature") or attrs.get("signature")
        if not (attrs["payment_id"] and attrs["order_id"] and attrs["signature"]):
            raise serializers.ValidationError("Missing Razorpay payment details for verification.")
        if attrs["userType"] == STUDENT_TEACHER_PLAN and not attrs.get("teacherIdForPlan"):
            raise serializers.ValidationError({"teacherIdForPlan": "Required for a teacher plan subscription."})
        return attrs


class RedeemTokenSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=128)
