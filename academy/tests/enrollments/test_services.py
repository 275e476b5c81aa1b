from django.test import SimpleTestCase, TestCase

from academy.enrollments.services import create_enrollment, find_or_create_student, split_full_name
from academy.models import Enrollment, Student
from academy.tests.fixtures import create_class, create_course


class SplitFullNameTests(SimpleTestCase):
    def test_first_and_rest(self):
        self.assertEqual(split_full_name("Mary Ann Smith"), ("Mary", "Ann Smith"))

    def test_single_name(self):
        self.assertEqual(split_full_name("Cher"), ("Cher", None))

    def test_empty(self):
        self.assertEqual(split_full_name("  "), (None, None))
        self.assertEqual(split_full_name(None), (None, None))


class FindOrCreateStudentTests(TestCase):
    def test_creates_student(self):
        student, created = find_or_create_student("jane@example.com", full_name="Jane Doe")
        self.assertTrue(created)
        self.assertEqual(student.first_name, "Jane")
        self.assertEqual(student.last_name, "Doe")

    def test_lookup_is_case_insensitive(self):
        existing = Student.objects.create(email="jane@example.com")
        student, created = find_or_create_student("JANE@example.com", stripe_customer_id="cus_1")
        self.assertFalse(created)
        self.assertEqual(student.pk, existing.pk)
        existing.refresh_from_db()
        self.assertEqual(existing.stripe_customer_id, "cus_1")

    def test_existing_values_are_kept(self):
        Student.objects.create(email="jane@example.com", full_name="Jane Original")
        student, _ = find_or_create_student("jane@example.com", full_name="Someone Else")
        self.assertEqual(student.full_name, "Jane Original")


class CreateEnrollmentTests(TestCase):
    def test_lookup_before_insert(self):
        klass = create_class(create_course())
        student = Student.objects.create(email="jane@example.com")

        first, created = create_enrollment(student, klass)
        second, created_again = create_enrollment(student, klass)

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Enrollment.objects.count(), 1)
