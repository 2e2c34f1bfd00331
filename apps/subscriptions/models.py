import uuid

from django.db import models

USER_TYPE_CHOICES = [
    ("student_platform_plan", "Student platform plan"),
    ("teacher_platform_plan", "Teacher platform plan"),
    ("student_teacher_plan", "Student subscription to a teacher plan"),
]

GATEWAY_CHOICES = [
    ("razorpay", "Razorpay"),
    ("payu", "PayU"),
]


class ActivationToken(models.Model):
    """
    Single-use record of a verified payment whose plan activation is deferred
    to a later redeem request. Kept forever as an audit trail.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    token = models.CharField(max_length=128, unique=True)
    user = models.ForeignKey(
        "authentication.User",
        on_delete=models.PROTECT,
        related_name="activation_tokens",
    )
    plan_id_to_activate = models.CharField(max_length=64)
    user_type = models.CharField(max_length=30, choices=USER_TYPE_CHOICES)
    teacher_for_plan = models.ForeignKey(
        "authentication.User",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    original_amount = models.DecimalField(max_digits=12, decimal_places=2)
    referral_code_used = models.CharField(max_length=50, blank=True, default="")
    gateway = models.CharField(max_length=20, choices=GATEWAY_CHOICES, default="payu")
    gateway_order_id = models.CharField(max_length=100)
    gateway_payment_id = models.CharField(max_length=100, blank=True, default="")
    expires_at = models.DateTimeField()
    used = models.BooleanField(default=False)
    used_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("gateway", "gateway_order_id")

    def __str__(self) -> str:
        return f"{self.token[:10]}... ({self.plan_id_to_activate})"


class SubscriptionRecord(models.Model):
    """A student's paid subscription to one of a teacher's content plans."""

    PAYMENT_STATUS_CHOICES = [
        ("successful", "Successful"),
        ("refunded", "Refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey(
        "authentication.User",
        on_delete=models.PROTECT,
        related_name="teacher_plan_subscriptions",
    )
    teacher = models.ForeignKey(
        "authentication.User",
        on_delete=models.PROTECT,
        related_name="student_subscriptions",
    )
    plan = models.ForeignKey(
        "plans.TeacherContentPlan",
        on_delete=models.PROTECT,
        related_name="subscriptions",
    )
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default="successful")
    starts_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2)
    net_teacher_credit = models.DecimalField(max_digits=12, decimal_places=2)
    referral_code_used = models.CharField(max_length=50, blank=True, default="")
    gateway = models.CharField(max_length=20, choices=GATEWAY_CHOICES)
    gateway_payment_id = models.CharField(max_length=100, unique=True)
    gateway_order_id = models.CharField(max_length=100, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.student.email} -> {self.plan.name}"


class PlanActivation(models.Model):
    """
    One activation attempt per gateway payment. Status changes are committed
    separately from the plan mutations so failed or stuck attempts stay
    visible for reconciliation.
    """

    STATUS_PENDING = "pending"
    STATUS_APPLYING = "applying"
    STATUS_DONE = "done"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPLYING, "Applying"),
        (STATUS_DONE, "Done"),
        (STATUS_FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    gateway = models.CharField(max_length=20, choices=GATEWAY_CHOICES)
    gateway_payment_id = models.CharField(max_length=100)
    gateway_order_id = models.CharField(max_length=100, blank=True, default="")
    user_id_claimed = models.CharField(max_length=64)
    user_type = models.CharField(max_length=30, choices=USER_TYPE_CHOICES)
    plan_id = models.CharField(max_length=64)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    attempts = models.PositiveIntegerField(default=0)
    failure_reason = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        unique_together = ("gateway", "gateway_payment_id")

    def __str__(self) -> str:
        return f"{self.gateway}:{self.gateway_payment_id} [{self.status}]"
