"""
Academy Catalog Models

Models:
- Course: A course or program offered by the academy (the catalog entry)
- Class: A scheduled offering of a course with its own dates, pricing and
  enrollment window

Features:
- Class identifiers of the form ``{course_code}-{NNN}`` (see services.class_ids)
- Pricing stored as integer cents
- Optional per-class overrides for the two tuition installment due dates
- Webflow CMS item reference for the public class pages

Author: DSP Development Team
Version: 1.0.0
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

__all__ = ["Course", "Class"]


class ProgramType(models.TextChoices):
    COURSE = "course", _("Course")
    PROGRAM = "program", _("Program")


class Course(models.Model):
    """
    Catalog entry for a course or program.

    The descriptive fields act as defaults for new classes of this course.
    """

    ProgramType = ProgramType

    course_code = models.CharField(
        max_length=32,
        unique=True,
        verbose_name=_("Course Code"),
        help_text=_("Short unique code, used as prefix of class ids (e.g. EMR)"),
    )
    course_name = models.CharField(max_length=255, verbose_name=_("Course Name"))
    program_type = models.CharField(
        max_length=20,
        choices=ProgramType.choices,
        default=ProgramType.COURSE,
        verbose_name=_("Program Type"),
    )
    wf_class_link = models.URLField(blank=True, null=True, verbose_name=_("Webflow Link"))
    length_of_class = models.CharField(max_length=100, blank=True, null=True)
    certification_length = models.PositiveIntegerField(blank=True, null=True)
    graduation_rate = models.PositiveIntegerField(blank=True, null=True)
    registration_limit = models.PositiveIntegerField(blank=True, null=True)
    price = models.PositiveIntegerField(
        blank=True, null=True, help_text=_("Tuition in cents")
    )
    registration_fee = models.PositiveIntegerField(
        blank=True, null=True, help_text=_("Registration fee in cents")
    )
    stripe_product_id = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["course_code"]
        verbose_name = _("Course")
        verbose_name_plural = _("Courses")

    def __str__(self) -> str:
        return f"{self.course_code} - {self.course_name}"

    @property
    def is_program(self) -> bool:
        return self.program_type == ProgramType.PROGRAM


class Class(models.Model):
    """
    Scheduled offering of a course.

    ``course_code`` is copied from the course at creation and never changes
    afterwards; ``class_id`` is the public identifier used by checkout.
    """

    course = models.ForeignKey(
        Course, on_delete=models.PROTECT, related_name="classes", verbose_name=_("Course")
    )
    course_code = models.CharField(max_length=32, editable=False)
    class_name = models.CharField(max_length=255, verbose_name=_("Class Name"))
    class_id = models.CharField(
        max_length=64,
        unique=True,
        verbose_name=_("Class ID"),
        help_text=_("Generated identifier, e.g. EMR-003"),
    )
    enrollment_start = models.DateField(blank=True, null=True)
    enrollment_close = models.DateField(blank=True, null=True)
    class_start_date = models.DateField(blank=True, null=True)
    class_close_date = models.DateField(blank=True, null=True)
    location = models.CharField(max_length=255, blank=True, null=True)
    is_online = models.BooleanField(default=False)
    product_id = models.CharField(max_length=64, blank=True, null=True)
    length_of_class = models.CharField(max_length=100, blank=True, null=True)
    certification_length = models.PositiveIntegerField(blank=True, null=True)
    graduation_rate = models.PositiveIntegerField(blank=True, null=True)
    registration_limit = models.PositiveIntegerField(blank=True, null=True)
    stripe_product_id = models.CharField(max_length=64, blank=True, null=True)
    price = models.PositiveIntegerField(
        blank=True, null=True, help_text=_("Tuition in cents")
    )
    registration_fee = models.PositiveIntegerField(
        blank=True, null=True, help_text=_("Registration fee in cents")
    )
    invoice_1_due_date = models.DateField(
        blank=True, null=True, help_text=_("Overrides the computed due date of tuition A")
    )
    invoice_2_due_date = models.DateField(
        blank=True, null=True, help_text=_("Overrides the computed due date of tuition B")
    )
    webflow_item_id = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-class_start_date", "class_id"]
        verbose_name = _("Class")
        verbose_name_plural = _("Classes")
        indexes = [
            models.Index(fields=["course_code"], name="academy_cla_course__2b7e41_idx"),
            models.Index(
                fields=["enrollment_start", "enrollment_close"],
                name="academy_cla_enrollm_6d0c93_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.class_id} - {self.class_name}"

    @property
    def is_program(self) -> bool:
        return self.course.program_type == ProgramType.PROGRAM

    def is_enrollment_open(self, today) -> bool:
        """True if ``today`` lies inside the enrollment window (inclusive)."""
        if self.enrollment_start and today < self.enrollment_start:
            return False
        if self.enrollment_close and today > self.enrollment_close:
            return False
        return True
