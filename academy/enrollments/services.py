"""
Student & Enrollment Services

Functions:
- find_or_create_student: Look up a student by email, create on first checkout
- create_enrollment: One enrollment per (student, class), lookup before insert
- add_to_waitlist: One waitlist entry per (student, course code)

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from typing import Optional, Tuple

from django.db import IntegrityError, transaction

from .models import Enrollment, Student, WaitlistEntry

logger = logging.getLogger(__name__)


def split_full_name(full_name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    >>> split_full_name("Jane van Doe")
    ('Jane', 'van Doe')
    """
    parts = (full_name or "").split()
    if not parts:
        return None, None
    return parts[0], " ".join(parts[1:]) or None


def find_or_create_student(
    email: str,
    full_name: Optional[str] = None,
    stripe_customer_id: Optional[str] = None,
) -> Tuple[Student, bool]:
    """
    Return the student for ``email`` (case-insensitive), creating it if needed.

    Missing name and Stripe customer fields of an existing student are
    filled in; values already stored are never overwritten.
    """
    email = email.strip().lower()
    student = Student.objects.filter(email__iexact=email).first()
    created = False

    if student is None:
        first_name, last_name = split_full_name(full_name)
        try:
            with transaction.atomic():
                student = Student.objects.create(
                    email=email,
                    full_name=full_name or None,
                    first_name=first_name,
                    last_name=last_name,
                    stripe_customer_id=stripe_customer_id or None,
                )
            created = True
            logger.info(f"Created student {student.pk} for {email}")
        except IntegrityError:
            # Concurrent checkout with the same email
            student = Student.objects.get(email__iexact=email)

    if not created:
        updates = []
        if full_name and not student.full_name:
            student.full_name = full_name
            updates.append("full_name")
        first_name, last_name = split_full_name(full_name)
        if first_name and not student.first_name:
            student.first_name = first_name
            updates.append("first_name")
        if last_name and not student.last_name:
            student.last_name = last_name
            updates.append("last_name")
        if stripe_customer_id and not student.stripe_customer_id:
            student.stripe_customer_id = stripe_customer_id
            updates.append("stripe_customer_id")
        if updates:
            student.save(update_fields=updates + ["updated_at"])

    return student, created


def create_enrollment(student: Student, klass) -> Tuple[Enrollment, bool]:
    """
    Enroll ``student`` in ``klass``. An existing enrollment is returned as is.
    """
    existing = Enrollment.objects.filter(student=student, klass=klass).first()
    if existing is not None:
        return existing, False

    try:
        with transaction.atomic():
            enrollment = Enrollment.objects.create(student=student, klass=klass)
    except IntegrityError:
        return Enrollment.objects.get(student=student, klass=klass), False

    logger.info(f"Enrolled student {student.pk} in class {klass.class_id}")
    return enrollment, True


def add_to_waitlist(email: str, full_name: str, course_code: str) -> Tuple[WaitlistEntry, bool]:
    """
    Put a student on the waitlist of a course.

    The student is found or created by email. A second submission for the
    same course returns the existing entry with ``created=False``.
    """
    student, _ = find_or_create_student(email, full_name=full_name.strip())
    course_code = course_code.strip().upper()

    existing = WaitlistEntry.objects.filter(student=student, course_code=course_code).first()
    if existing is not None:
        logger.info(f"Student {student.pk} is already on the waitlist for {course_code}")
        return existing, False

    try:
        with transaction.atomic():
            entry = WaitlistEntry.objects.create(student=student, course_code=course_code)
    except IntegrityError:
        return WaitlistEntry.objects.get(student=student, course_code=course_code), False

    logger.info(f"Added student {student.pk} to the waitlist for {course_code}")
    return entry, True
