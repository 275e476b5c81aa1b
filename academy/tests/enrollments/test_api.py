"""
API tests for students and enrollments with their derived payment status.
"""

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from academy.billing.services.payment_status import (
    ALL_PAID,
    NO_PAYMENTS,
    REGISTRATION_FEE_PAST_DUE,
)
from academy.models import Enrollment, Student
from academy.tests.fixtures import (
    create_admin,
    create_class,
    create_course,
    create_enrollment,
    create_transaction,
)
from core.audit_logs.models import Log


class StudentApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_admin()
        cls.klass = create_class(create_course())
        cls.paid = create_enrollment(cls.klass, email="paid@example.com", full_name="Paula Paid")
        cls.late = create_enrollment(cls.klass, email="late@example.com", full_name="Larry Late")
        create_transaction(cls.paid, transaction_status="paid")
        create_transaction(cls.late, due_date=timezone.localdate() - timedelta(days=3))

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_list_includes_payment_status(self):
        response = self.client.get("/api/academy/students/")

        self.assertEqual(response.status_code, 200)
        statuses = {
            row["email"]: row["enrollments"][0]["payment_status"] for row in response.json()
        }
        self.assertEqual(
            statuses,
            {"paid@example.com": ALL_PAID, "late@example.com": REGISTRATION_FEE_PAST_DUE},
        )

    def test_search(self):
        response = self.client.get("/api/academy/students/", {"search": "larry"})
        self.assertEqual([row["email"] for row in response.json()], ["late@example.com"])

    def test_student_enrollments(self):
        student = self.paid.student
        response = self.client.get(f"/api/academy/students/{student.pk}/enrollments/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["class_id"], self.klass.class_id)
        self.assertEqual(response.json()[0]["payment_status"], ALL_PAID)

    def test_create_logs_student_added(self):
        response = self.client.post(
            "/api/academy/students/",
            {"email": "New@Example.com", "full_name": "New Student"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["email"], "new@example.com")
        self.assertTrue(
            Log.objects.filter(
                action_type=Log.ActionType.STUDENT_ADDED, reference_type=Log.ReferenceType.STUDENT
            ).exists()
        )

    def test_duplicate_email_rejected(self):
        response = self.client.post(
            "/api/academy/students/", {"email": "PAID@example.com"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_update_logs_changes(self):
        student = self.late.student
        response = self.client.patch(
            f"/api/academy/students/{student.pk}/", {"phone": "555-0100"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        log = Log.objects.get(action_type=Log.ActionType.DETAIL_UPDATED)
        self.assertEqual((log.field_name, log.new_value), ("phone", "555-0100"))

    def test_student_with_transactions_cannot_be_deleted(self):
        response = self.client.delete(f"/api/academy/students/{self.paid.student.pk}/")
        self.assertEqual(response.status_code, 409)

    def test_requires_admin(self):
        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get("/api/academy/students/").status_code, 401)


class EnrollmentApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_admin()
        course = create_course()
        cls.klass = create_class(course, class_id="EMR-001")
        cls.other_class = create_class(course, class_id="EMR-002")
        cls.student = Student.objects.create(email="jane@example.com", full_name="Jane Doe")

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_create_then_reuse(self):
        payload = {"student": self.student.pk, "klass": self.klass.pk}

        response = self.client.post("/api/academy/enrollments/", payload, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["payment_status"], NO_PAYMENTS)

        response = self.client.post("/api/academy/enrollments/", payload, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Enrollment.objects.count(), 1)
        self.assertEqual(Log.objects.filter(action_type=Log.ActionType.STUDENT_ADDED).count(), 1)

    def test_filters(self):
        Enrollment.objects.create(student=self.student, klass=self.klass)
        Enrollment.objects.create(student=self.student, klass=self.other_class)

        response = self.client.get("/api/academy/enrollments/", {"klass": self.other_class.pk})
        self.assertEqual([row["class_id"] for row in response.json()], ["EMR-002"])

        response = self.client.get("/api/academy/enrollments/", {"student": self.student.pk})
        self.assertEqual(len(response.json()), 2)

    def test_remove_enrollment(self):
        enrollment = Enrollment.objects.create(student=self.student, klass=self.klass)
        response = self.client.delete(f"/api/academy/enrollments/{enrollment.pk}/")
        self.assertEqual(response.status_code, 204)
        self.assertTrue(Log.objects.filter(action_type=Log.ActionType.STUDENT_REMOVED).exists())

    def test_enrollment_with_transactions_is_kept(self):
        enrollment = Enrollment.objects.create(student=self.student, klass=self.klass)
        create_transaction(enrollment)
        response = self.client.delete(f"/api/academy/enrollments/{enrollment.pk}/")
        self.assertEqual(response.status_code, 409)
