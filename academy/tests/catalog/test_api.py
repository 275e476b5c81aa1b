"""
API tests for courses and classes, including the public lookups and the
Webflow and audit side effects of class changes.
"""

from datetime import timedelta
from unittest import mock

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from academy.models import Class, Course
from academy.tests.fixtures import create_admin, create_class, create_course, create_enrollment
from core.audit_logs.models import Log

NO_WEBFLOW = dict(WEBFLOW_API_TOKEN="", WEBFLOW_SITE_ID="")


@override_settings(**NO_WEBFLOW)
class CourseApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_admin()
        cls.course = create_course("EMR", course_name="Emergency Medical Responder")
        create_course("PN", program_type="program", course_name="Practical Nursing")

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_list_filters_by_program_type(self):
        response = self.client.get("/api/academy/courses/", {"program_type": "program"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["course_code"] for row in response.json()], ["PN"])

    def test_search(self):
        response = self.client.get("/api/academy/courses/", {"search": "emergency"})
        self.assertEqual([row["course_code"] for row in response.json()], ["EMR"])

    def test_create_uppercases_code(self):
        response = self.client.post(
            "/api/academy/courses/", {"course_code": "cabs", "course_name": "CABS"}, format="json"
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["course_code"], "CABS")

    def test_code_is_locked_once_classes_exist(self):
        create_class(self.course)
        response = self.client.patch(
            f"/api/academy/courses/{self.course.pk}/", {"course_code": "EMT"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_course_with_classes_cannot_be_deleted(self):
        create_class(self.course)
        response = self.client.delete(f"/api/academy/courses/{self.course.pk}/")
        self.assertEqual(response.status_code, 409)

    def test_public_lookup_by_code(self):
        self.client.force_authenticate(user=None)
        response = self.client.get("/api/academy/courses/by-course-code/emr/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["course_name"], "Emergency Medical Responder")
        response = self.client.get("/api/academy/courses/by-course-code/NOPE/")
        self.assertEqual(response.status_code, 404)

    def test_requires_admin(self):
        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get("/api/academy/courses/").status_code, 401)


@override_settings(**NO_WEBFLOW)
class ClassApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_admin()
        cls.course = create_course("EMR", length_of_class="8 weeks", graduation_rate=95)
        create_class(cls.course, class_id="EMR-001")
        create_class(cls.course, class_id="EMR-002")

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_create_allocates_id_and_copies_defaults(self):
        response = self.client.post(
            "/api/academy/classes/",
            {"course": self.course.pk, "class_name": "EMR Summer", "class_id": "HACK-1"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["class_id"], "EMR-003")
        self.assertEqual(data["course_code"], "EMR")
        self.assertEqual(data["length_of_class"], "8 weeks")
        self.assertEqual(data["graduation_rate"], 95)
        self.assertEqual(data["price"], 100000)
        self.assertFalse(data["webflow"]["success"])

        logs = Log.objects.filter(action_type=Log.ActionType.CLASS_CREATED)
        self.assertEqual(
            set(logs.values_list("reference_type", flat=True)),
            {Log.ReferenceType.CLASS, Log.ReferenceType.COURSE},
        )
        self.assertEqual(len(set(logs.values_list("batch_id", flat=True))), 1)

    def test_create_rejects_reversed_dates(self):
        today = timezone.localdate()
        response = self.client.post(
            "/api/academy/classes/",
            {
                "course": self.course.pk,
                "class_name": "Broken",
                "enrollment_start": today.isoformat(),
                "enrollment_close": (today - timedelta(days=1)).isoformat(),
            },
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("enrollment_close", response.json())

    def test_update_logs_changed_fields(self):
        klass = Class.objects.get(class_id="EMR-001")
        response = self.client.patch(
            f"/api/academy/classes/{klass.pk}/",
            {"class_name": "Renamed", "location": "Chicago"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["class_name"], "Renamed")
        fields = set(
            Log.objects.filter(action_type=Log.ActionType.DETAIL_UPDATED).values_list("field_name", flat=True)
        )
        self.assertEqual(fields, {"class_name", "location"})

    def test_course_cannot_change(self):
        klass = Class.objects.get(class_id="EMR-001")
        other = create_course("CABS")
        response = self.client.patch(
            f"/api/academy/classes/{klass.pk}/", {"course": other.pk}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_delete(self):
        klass = Class.objects.get(class_id="EMR-002")
        response = self.client.delete(f"/api/academy/classes/{klass.pk}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Class.objects.filter(pk=klass.pk).exists())
        self.assertEqual(Log.objects.filter(action_type=Log.ActionType.CLASS_DELETED).count(), 2)

    def test_class_with_enrollments_cannot_be_deleted(self):
        klass = Class.objects.get(class_id="EMR-001")
        create_enrollment(klass)
        response = self.client.delete(f"/api/academy/classes/{klass.pk}/")
        self.assertEqual(response.status_code, 409)
        self.assertTrue(Class.objects.filter(pk=klass.pk).exists())

    def test_public_active_classes(self):
        today = timezone.localdate()
        Class.objects.filter(class_id="EMR-001").update(
            enrollment_start=today - timedelta(days=1), enrollment_close=today
        )
        Class.objects.filter(class_id="EMR-002").update(enrollment_close=today - timedelta(days=1))
        self.client.force_authenticate(user=None)

        response = self.client.get("/api/academy/classes/active/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["class_id"] for row in response.json()], ["EMR-001"])
        self.assertNotIn("webflow_item_id", response.json()[0])

    def test_public_lookups(self):
        self.client.force_authenticate(user=None)
        response = self.client.get("/api/academy/classes/by-class-id/EMR-002/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["class_id"], "EMR-002")

        response = self.client.get("/api/academy/classes/by-class-id/EMR-999/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "This class doesn't exist or may have been removed.")

        response = self.client.get("/api/academy/classes/by-course-code/emr/")
        self.assertEqual(len(response.json()), 2)

    def test_admin_list_requires_login(self):
        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get("/api/academy/classes/").status_code, 401)

    @mock.patch("academy.catalog.views.sync_class")
    def test_sync_webflow_logs_action(self, sync):
        from core.results import OperationResult

        sync.return_value = OperationResult.ok(action="recreated", webflow_item_id="wf_2")
        klass = Class.objects.get(class_id="EMR-001")

        response = self.client.post(f"/api/academy/classes/{klass.pk}/sync-webflow/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["action"], "recreated")
        log = Log.objects.get(action_type=Log.ActionType.WEBFLOW_SYNCED)
        self.assertEqual(log.new_value, "recreated")
        self.assertEqual(log.admin_user, self.admin)

    def test_sync_webflow_without_configuration(self):
        klass = Class.objects.get(class_id="EMR-001")
        response = self.client.post(f"/api/academy/classes/{klass.pk}/sync-webflow/")
        self.assertEqual(response.status_code, 500)
        self.assertFalse(Log.objects.filter(action_type=Log.ActionType.WEBFLOW_SYNCED).exists())


class CourseModelTests(TestCase):
    def test_is_program(self):
        self.assertTrue(create_course("PN", program_type="program").is_program)
        self.assertFalse(Course(course_code="EMR", program_type="course").is_program)
