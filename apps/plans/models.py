import uuid

from django.db import models


class TeacherContentPlan(models.Model):
    """
    A paid content plan (test series, DPP bundle) a teacher sells to students.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    teacher = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="content_plans",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    is_active = models.BooleanField(default=True)
    enrolled_students = models.ManyToManyField(
        "authentication.User",
        blank=True,
        related_name="enrolled_content_plans",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.teacher.email})"
