"""
Waitlist submission (public) and per-course listing (admin).
"""

from django.db import IntegrityError, transaction
from django.test import TestCase
from rest_framework.test import APIClient

from academy.enrollments.services import add_to_waitlist
from academy.models import Student, WaitlistEntry
from academy.tests.fixtures import create_admin


class AddToWaitlistTests(TestCase):
    def test_creates_student_and_entry(self):
        entry, created = add_to_waitlist("Jane@Example.com ", "Jane Doe", " emr ")

        self.assertTrue(created)
        self.assertEqual(entry.course_code, "EMR")
        self.assertEqual(entry.student.email, "jane@example.com")
        self.assertEqual(entry.student.first_name, "Jane")
        self.assertEqual(entry.student.last_name, "Doe")

    def test_second_submission_returns_existing_entry(self):
        first, _ = add_to_waitlist("jane@example.com", "Jane Doe", "EMR")
        second, created = add_to_waitlist("JANE@example.com", "Jane Doe", "emr")

        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(WaitlistEntry.objects.count(), 1)

    def test_fills_missing_names_of_existing_student(self):
        Student.objects.create(email="jane@example.com", first_name="Janet")

        entry, _ = add_to_waitlist("jane@example.com", "Jane Doe", "EMR")

        entry.student.refresh_from_db()
        self.assertEqual(entry.student.first_name, "Janet")
        self.assertEqual(entry.student.last_name, "Doe")

    def test_one_entry_per_student_and_course(self):
        student = Student.objects.create(email="jane@example.com")
        WaitlistEntry.objects.create(student=student, course_code="emr")
        with self.assertRaises(IntegrityError), transaction.atomic():
            WaitlistEntry.objects.create(student=student, course_code="EMR")


class WaitlistApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_admin()

    def setUp(self):
        self.client = APIClient()

    def _submit(self, **overrides):
        data = {"email": "jane@example.com", "full_name": "Jane Doe", "course_code": "emr"}
        data.update(overrides)
        return self.client.post("/api/academy/waitlist/", data, format="json")

    def test_submit_is_public(self):
        response = self._submit()

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertFalse(body["already_on_waitlist"])
        self.assertEqual(body["waitlist_entry"]["course_code"], "EMR")
        self.assertEqual(body["waitlist_entry"]["email"], "jane@example.com")

    def test_repeat_submit_reports_existing_entry(self):
        self._submit()
        response = self._submit(course_code="EMR")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])
        self.assertTrue(response.json()["already_on_waitlist"])
        self.assertEqual(WaitlistEntry.objects.count(), 1)

    def test_required_fields(self):
        cases = {
            "email": "Email is required",
            "full_name": "Full name is required",
            "course_code": "Course code is required",
        }
        for field, message in cases.items():
            with self.subTest(field=field):
                response = self._submit(**{field: ""})
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["error"], message)
        self.assertFalse(WaitlistEntry.objects.exists())

    def test_blank_full_name_is_rejected(self):
        response = self._submit(full_name="   ")
        self.assertEqual(response.status_code, 400)

    def test_by_course_code_requires_admin(self):
        response = self.client.get("/api/academy/waitlist/by-course-code/EMR/")
        self.assertEqual(response.status_code, 401)

    def test_by_course_code_lists_entries(self):
        add_to_waitlist("jane@example.com", "Jane Doe", "EMR")
        add_to_waitlist("john@example.com", "John Roe", "EMR")
        add_to_waitlist("jane@example.com", "Jane Doe", "PARA")
        self.client.force_authenticate(user=self.admin)

        response = self.client.get("/api/academy/waitlist/by-course-code/emr/")

        self.assertEqual(response.status_code, 200)
        rows = response.json()["waitlist"]
        self.assertEqual(
            sorted(row["email"] for row in rows), ["jane@example.com", "john@example.com"]
        )
        self.assertEqual({row["course_code"] for row in rows}, {"EMR"})
        self.assertIn("Jane Doe", [row["full_name"] for row in rows])
