"""
Audit Log Models

Models:
- Log: One audited admin or system action on a program, course, class or student

Author: DSP Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.db import models


class Log(models.Model):
    """
    Audit trail entry. References are stored as plain ids so that entries
    survive the deletion of the record they describe.
    """

    class ReferenceType(models.TextChoices):
        PROGRAM = "program", "Program"
        COURSE = "course", "Course"
        CLASS = "class", "Class"
        STUDENT = "student", "Student"

    class ActionType(models.TextChoices):
        DETAIL_UPDATED = "detail_updated", "Detail updated"
        CLASS_CREATED = "class_created", "Class created"
        CLASS_DELETED = "class_deleted", "Class deleted"
        STUDENT_ADDED = "student_added", "Student added"
        STUDENT_REMOVED = "student_removed", "Student removed"
        STUDENT_REGISTERED = "student_registered", "Student registered"
        PAYMENT_SUCCESS = "payment_success", "Payment success"
        WEBFLOW_SYNCED = "webflow_synced", "Webflow synced"

    admin_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
        verbose_name="Admin",
    )
    reference_id = models.CharField(max_length=64, verbose_name="Reference ID")
    reference_type = models.CharField(
        max_length=20, choices=ReferenceType.choices, verbose_name="Reference type"
    )
    action_type = models.CharField(
        max_length=32, choices=ActionType.choices, verbose_name="Action"
    )
    field_name = models.CharField(max_length=100, blank=True, null=True)
    old_value = models.TextField(blank=True, null=True)
    new_value = models.TextField(blank=True, null=True)
    batch_id = models.UUIDField(blank=True, null=True)
    student_id = models.PositiveBigIntegerField(blank=True, null=True)
    class_id = models.PositiveBigIntegerField(blank=True, null=True)
    amount = models.IntegerField(
        blank=True, null=True, help_text="Amount in cents, if the action involves money"
    )
    timestamp = models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")

    class Meta:
        verbose_name = "Audit log"
        verbose_name_plural = "Audit logs"
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(
                fields=["reference_type", "reference_id"], name="audit_logs__referen_4c1a2e_idx"
            ),
            models.Index(fields=["class_id"], name="audit_logs__class_i_8f0b3d_idx"),
            models.Index(fields=["student_id"], name="audit_logs__student_5e2c7a_idx"),
            models.Index(fields=["batch_id"], name="audit_logs__batch_i_9d4e1f_idx"),
        ]

    def __str__(self):
        return f"{self.action_type} {self.reference_type}:{self.reference_id}"
