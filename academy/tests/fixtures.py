"""
Shared test data for the academy test suite.
"""

from datetime import date

from django.contrib.auth.models import User

from academy.models import Class, Course, Enrollment, Student, Transaction


def create_admin(username="admin"):
    return User.objects.create_user(
        username=username,
        password="Musterpassword",
        email=f"{username}@test.com",
        is_staff=True,
    )


def create_course(course_code="EMR", program_type="course", **overrides):
    values = dict(
        course_code=course_code,
        course_name=f"{course_code} Course",
        program_type=program_type,
        price=100000,
        registration_fee=25000,
    )
    values.update(overrides)
    return Course.objects.create(**values)


def create_class(course, class_id=None, **overrides):
    values = dict(
        course=course,
        course_code=course.course_code,
        class_id=class_id or f"{course.course_code}-001",
        class_name=f"{course.course_name} Class",
        class_start_date=date(2025, 6, 1),
        price=course.price,
        registration_fee=course.registration_fee,
    )
    values.update(overrides)
    return Class.objects.create(**values)


def create_enrollment(klass, email="jane@example.com", **student_fields):
    student, _ = Student.objects.get_or_create(
        email=email, defaults={"full_name": "Jane Doe", **student_fields}
    )
    return Enrollment.objects.create(student=student, klass=klass)


def create_transaction(enrollment, transaction_type="registration_fee", **overrides):
    values = dict(
        enrollment=enrollment,
        student=enrollment.student,
        klass=enrollment.klass,
        transaction_type=transaction_type,
        transaction_status=Transaction.Status.PENDING,
        amount_due=25000,
    )
    values.update(overrides)
    return Transaction.objects.create(**values)
