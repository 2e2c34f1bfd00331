from django.db import models


class PaymentLog(models.Model):
    """Raw inbound gateway payloads, kept for audit and support."""

    provider = models.CharField(max_length=50)
    event = models.CharField(max_length=50)
    reference = models.CharField(max_length=100, blank=True, default="", db_index=True)
    raw_payload = models.JSONField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
