import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class ReferralCode(models.Model):
    """
    Teacher-owned discount code that students enter when buying one of the
    teacher's content plans.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    teacher = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="referral_codes",
    )
    code = models.CharField(max_length=50)
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    applicable_plans = models.ManyToManyField(
        "plans.TeacherContentPlan",
        blank=True,
        related_name="referral_codes",
    )
    expiry_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("teacher", "code")

    def __str__(self) -> str:
        return f"{self.code} ({self.discount_percentage}%)"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)
