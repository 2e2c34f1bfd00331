import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

USER_TYPE_CHOICES = [
    ("student_platform_plan", "Student platform plan"),
    ("teacher_platform_plan", "Teacher platform plan"),
    ("student_teacher_plan", "Student subscription to a teacher plan"),
]
GATEWAY_CHOICES = [("razorpay", "Razorpay"), ("payu", "PayU")]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("plans", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ActivationToken",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("token", models.CharField(max_length=128, unique=True)),
                ("plan_id_to_activate", models.CharField(max_length=64)),
                ("user_type", models.CharField(choices=USER_TYPE_CHOICES, max_length=30)),
                ("original_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("referral_code_used", models.CharField(blank=True, default="", max_length=50)),
                ("gateway", models.CharField(choices=GATEWAY_CHOICES, default="payu", max_length=20)),
                ("gateway_order_id", models.CharField(max_length=100)),
                ("gateway_payment_id", models.CharField(blank=True, default="", max_length=100)),
                ("expires_at", models.DateTimeField()),
                ("used", models.BooleanField(default=False)),
                ("used_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "teacher_for_plan",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="activation_tokens",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "unique_together": {("gateway", "gateway_order_id")},
            },
        ),
        migrations.CreateModel(
            name="SubscriptionRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("successful", "Successful"), ("refunded", "Refunded")],
                        default="successful",
                        max_length=20,
                    ),
                ),
                ("starts_at", models.DateTimeField()),
                ("expires_at", models.DateTimeField()),
                ("amount_paid", models.DecimalField(decimal_places=2, max_digits=12)),
                ("net_teacher_credit", models.DecimalField(decimal_places=2, max_digits=12)),
                ("referral_code_used", models.CharField(blank=True, default="", max_length=50)),
                ("gateway", models.CharField(choices=GATEWAY_CHOICES, max_length=20)),
                ("gateway_payment_id", models.CharField(max_length=100, unique=True)),
                ("gateway_order_id", models.CharField(blank=True, default="", max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="subscriptions",
                        to="plans.teachercontentplan",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="teacher_plan_subscriptions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "teacher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="student_subscriptions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="PlanActivation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("gateway", models.CharField(choices=GATEWAY_CHOICES, max_length=20)),
                ("gateway_payment_id", models.CharField(max_length=100)),
                ("gateway_order_id", models.CharField(blank=True, default="", max_length=100)),
                ("user_id_claimed", models.CharField(max_length=64)),
                ("user_type", models.CharField(choices=USER_TYPE_CHOICES, max_length=30)),
                ("plan_id", models.CharField(max_length=64)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("applying", "Applying"),
                            ("done", "Done"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("failure_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "unique_together": {("gateway", "gateway_payment_id")},
            },
        ),
    ]
