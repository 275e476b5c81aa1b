from django.test import SimpleTestCase, TestCase

from academy.catalog.services.class_ids import allocate_class_id, next_class_id, parse_class_id_suffix
from academy.tests.fixtures import create_class, create_course


class ParseClassIdSuffixTests(SimpleTestCase):
    def test_current_format(self):
        self.assertEqual(parse_class_id_suffix("EMR-003", "EMR"), 3)

    def test_legacy_format(self):
        self.assertEqual(parse_class_id_suffix("EMR0007", "EMR"), 7)

    def test_other_course_or_garbage(self):
        self.assertIsNone(parse_class_id_suffix("CABS-001", "EMR"))
        self.assertIsNone(parse_class_id_suffix("EMR-abc", "EMR"))
        self.assertIsNone(parse_class_id_suffix(None, "EMR"))
        self.assertIsNone(parse_class_id_suffix("", "EMR"))


class NextClassIdTests(SimpleTestCase):
    def test_first_id(self):
        self.assertEqual(next_class_id("EMR", []), "EMR-001")

    def test_after_highest_suffix(self):
        self.assertEqual(next_class_id("EMR", ["EMR-001", "EMR-002"]), "EMR-003")

    def test_legacy_ids_count(self):
        self.assertEqual(next_class_id("EMR", ["EMR-002", "EMR0010", None]), "EMR-011")

    def test_ignores_other_courses(self):
        self.assertEqual(next_class_id("EMR", ["CABS-009"]), "EMR-001")


class AllocateClassIdTests(TestCase):
    def test_uses_stored_classes_of_the_course(self):
        emr = create_course("EMR")
        create_class(emr, class_id="EMR-001")
        create_class(emr, class_id="EMR-002")
        create_class(create_course("CABS"), class_id="CABS-005")
        self.assertEqual(allocate_class_id("EMR"), "EMR-003")
        self.assertEqual(allocate_class_id("CABS"), "CABS-006")
