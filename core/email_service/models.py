"""
Email Service Models

Models:
- EmailLog: One send attempt (including its retries) of a transactional email

Author: DSP Development Team
Version: 1.0.0
"""

from django.db import models


class EmailLog(models.Model):
    """
    Delivery record of a transactional email.

    The rendered HTML is kept so a failed email can be sent again unchanged.
    """

    recipient_email = models.EmailField()
    recipient_name = models.CharField(max_length=255, blank=True, null=True)
    subject = models.CharField(max_length=255)
    email_type = models.CharField(max_length=50, help_text="course_enrollment, program_enrollment, ...")
    enrollment_id = models.PositiveBigIntegerField(blank=True, null=True)
    student_id = models.PositiveBigIntegerField(blank=True, null=True)
    success = models.BooleanField(default=False)
    email_id = models.CharField(max_length=255, blank=True, null=True, help_text="Provider message id")
    error = models.TextField(blank=True, null=True)
    retries = models.PositiveIntegerField(default=0)
    html_body = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "Email log"
        verbose_name_plural = "Email logs"
        indexes = [
            models.Index(fields=["recipient_email"], name="email_servi_recipie_3f1d2a_idx"),
            models.Index(fields=["email_type"], name="email_servi_email_t_8c4b1e_idx"),
            models.Index(fields=["success", "created_at"], name="email_servi_success_5a7e90_idx"),
        ]

    def __str__(self):
        state = "sent" if self.success else "failed"
        return f"{self.email_type} to {self.recipient_email} ({state})"
