"""
Academy Student & Enrollment Models

Models:
- Student: A person who registered for at least one class
- Enrollment: Relationship between one student and one class
- WaitlistEntry: A student waiting for a class of a course

Author: DSP Development Team
Version: 1.0.0
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from ..catalog.models import Class

__all__ = ["Student", "Enrollment", "WaitlistEntry"]


class Student(models.Model):
    """Student record, identified by email address."""

    email = models.EmailField(unique=True, verbose_name=_("Email"))
    first_name = models.CharField(max_length=150, blank=True, null=True)
    last_name = models.CharField(max_length=150, blank=True, null=True)
    full_name = models.CharField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    stripe_customer_id = models.CharField(max_length=64, blank=True, null=True)
    has_required_info = models.BooleanField(default=False)
    t_shirt_size = models.CharField(max_length=10, blank=True, null=True)
    emergency_contact_name = models.CharField(max_length=255, blank=True, null=True)
    emergency_contact_phone = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Student")
        verbose_name_plural = _("Students")

    def __str__(self) -> str:
        return self.display_name

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        name = " ".join(part for part in [self.first_name, self.last_name] if part)
        return name or self.email


class Enrollment(models.Model):
    """
    A student's registration for a class.

    The payment status of an enrollment is derived from its transactions
    and never stored (see billing.services.payment_status).
    """

    class Status(models.TextChoices):
        REGISTERED = "registered", _("Registered")
        ACTIVE = "active", _("Active")
        COMPLETED = "completed", _("Completed")
        WITHDRAWN = "withdrawn", _("Withdrawn")

    student = models.ForeignKey(
        Student, on_delete=models.CASCADE, related_name="enrollments"
    )
    klass = models.ForeignKey(
        Class,
        on_delete=models.PROTECT,
        related_name="enrollments",
        db_column="class_id",
        verbose_name=_("Class"),
    )
    enrollment_status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.REGISTERED
    )
    onboarding_complete = models.BooleanField(default=False)
    enrolled_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-enrolled_at"]
        verbose_name = _("Enrollment")
        verbose_name_plural = _("Enrollments")
        constraints = [
            models.UniqueConstraint(
                fields=["student", "klass"], name="unique_student_class_enrollment"
            )
        ]

    def __str__(self) -> str:
        return f"{self.student} @ {self.klass.class_id}"


class WaitlistEntry(models.Model):
    """
    Interest in a course without an open class.

    Entries are keyed by course code (stored uppercase), one per student.
    """

    student = models.ForeignKey(
        Student, on_delete=models.CASCADE, related_name="waitlist_entries"
    )
    course_code = models.CharField(max_length=32, verbose_name=_("Course code"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Waitlist entry")
        verbose_name_plural = _("Waitlist entries")
        constraints = [
            models.UniqueConstraint(
                fields=["student", "course_code"], name="unique_student_course_waitlist"
            )
        ]
        indexes = [models.Index(fields=["course_code"], name="academy_wai_course__4f1a9c_idx")]

    def __str__(self) -> str:
        return f"{self.student} - {self.course_code}"

    def save(self, *args, **kwargs):
        self.course_code = (self.course_code or "").strip().upper()
        super().save(*args, **kwargs)
