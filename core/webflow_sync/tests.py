from datetime import date
from types import SimpleNamespace
from unittest import mock

from django.test import SimpleTestCase, TestCase, override_settings

from academy.models import Class, Course
from core.exceptions import (
    ConfigurationException,
    ExternalServiceException,
    NotFoundException,
    ValidationException,
)
from .client import WebflowClient
from .field_mappings import map_class_to_webflow_fields, slugify_class_id
from .services import delete_class_item, get_webflow_config, sync_class

WEBFLOW_SETTINGS = dict(
    WEBFLOW_API_TOKEN="wf-token",
    WEBFLOW_SITE_ID="site-1",
    WEBFLOW_COURSES_COLLECTION_ID="courses-col",
    WEBFLOW_PROGRAMS_COLLECTION_ID="programs-col",
    WEBFLOW_API_BASE_URL="https://api.webflow.test/v2",
)


def _response(status_code=200, body=None):
    response = mock.Mock()
    response.status_code = status_code
    response.content = b"{}" if body is not None else b""
    response.json.return_value = body if body is not None else {}
    response.text = ""
    return response


class FieldMappingTests(SimpleTestCase):
    def _klass(self, **overrides):
        values = dict(
            class_name="EMR Basics",
            class_id="EMR-001",
            course_code="EMR",
            enrollment_start=date(2025, 1, 1),
            enrollment_close=None,
            class_start_date=date(2025, 6, 1),
            class_close_date=None,
            location="Chicago",
            is_online=None,
            product_id=None,
            length_of_class="8 weeks",
            certification_length=2,
            graduation_rate=95,
            registration_limit=20,
            price=100000,
            registration_fee=None,
        )
        values.update(overrides)
        return SimpleNamespace(**values)

    def test_course_fields(self):
        fields = map_class_to_webflow_fields(self._klass())
        self.assertEqual(fields["name"], "EMR Basics")
        self.assertEqual(fields["slug"], "emr-001")
        self.assertEqual(fields["course-code"], "EMR")
        self.assertEqual(fields["enrollment-start"], "2025-01-01")
        self.assertEqual(fields["price"], "1000.00")
        self.assertEqual(fields["registration-limit"], "20")
        self.assertIs(fields["is-online"], False)

    def test_empty_values_are_sent_as_blank(self):
        fields = map_class_to_webflow_fields(self._klass())
        self.assertEqual(fields["enrollment-close"], "")
        self.assertEqual(fields["registration-fee"], "")
        self.assertEqual(fields["product-id"], "")

    def test_program_uses_program_code_field(self):
        fields = map_class_to_webflow_fields(self._klass(), is_program=True)
        self.assertEqual(fields["program-code"], "EMR")
        self.assertNotIn("course-code", fields)

    def test_slug(self):
        self.assertEqual(slugify_class_id("  EMT Basic / Night  "), "emt-basic-night")
        self.assertEqual(slugify_class_id(""), "untitled-class")


@override_settings(**WEBFLOW_SETTINGS)
class WebflowClientTests(SimpleTestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.session.headers = {}
        self.client = WebflowClient(session=self.session)

    def test_sends_bearer_token_and_timeout(self):
        self.session.request.return_value = _response(200, {"id": "item-1"})
        item = self.client.create_item("col", {"name": "EMR-001"})
        self.assertEqual(item["id"], "item-1")
        self.assertEqual(self.session.headers["Authorization"], "Bearer wf-token")
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("POST", "https://api.webflow.test/v2/collections/col/items"))
        self.assertEqual(kwargs["json"]["fieldData"], {"name": "EMR-001"})
        self.assertEqual(kwargs["timeout"], 15)

    def test_maps_http_errors(self):
        self.session.request.return_value = _response(404, {"message": "Item not found"})
        with self.assertRaises(NotFoundException):
            self.client.update_item("col", "item-1", {})

        self.session.request.return_value = _response(400, {"message": "Validation Error"})
        with self.assertRaises(ValidationException):
            self.client.update_item("col", "item-1", {})

        self.session.request.return_value = _response(500, {"message": "boom"})
        with self.assertRaises(ExternalServiceException):
            self.client.update_item("col", "item-1", {})

    def test_non_json_success_body(self):
        response = _response(200, {})
        response.content = b"<html>gateway</html>"
        response.json.side_effect = ValueError("Expecting value")
        self.session.request.return_value = response
        with self.assertRaises(ExternalServiceException):
            self.client.update_live_item("col", "item-1", {})

    @override_settings(WEBFLOW_API_TOKEN="")
    def test_requires_token(self):
        with self.assertRaises(ConfigurationException):
            WebflowClient(session=self.session)


@override_settings(**WEBFLOW_SETTINGS)
class WebflowConfigTests(SimpleTestCase):
    def test_collection_by_program_type(self):
        self.assertEqual(get_webflow_config("program").collection_id, "programs-col")
        self.assertEqual(get_webflow_config("course").collection_id, "courses-col")
        self.assertEqual(get_webflow_config(None).collection_id, "courses-col")

    @override_settings(WEBFLOW_PROGRAMS_COLLECTION_ID="")
    def test_missing_collection(self):
        self.assertIsNone(get_webflow_config("program"))


@override_settings(**WEBFLOW_SETTINGS)
class SyncClassTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.course = Course.objects.create(course_code="EMR", course_name="Emergency Medical Responder")

    def setUp(self):
        self.klass = Class.objects.create(
            course=self.course, course_code="EMR", class_name="EMR Basics", class_id="EMR-001"
        )
        patcher = mock.patch("core.webflow_sync.client.requests.Session.request")
        self.request = patcher.start()
        self.addCleanup(patcher.stop)

    def _calls(self):
        return [(call.args[0], call.args[1].rsplit("/v2/", 1)[1]) for call in self.request.call_args_list]

    def test_creates_item_for_new_class(self):
        self.request.side_effect = [_response(202, {"id": "wf-1"}), _response(202, {})]
        result = sync_class(self.klass)
        self.assertTrue(result.success)
        self.assertEqual(result.data["action"], "created")
        self.klass.refresh_from_db()
        self.assertEqual(self.klass.webflow_item_id, "wf-1")
        self.assertEqual(
            self._calls(),
            [("POST", "collections/courses-col/items"), ("POST", "collections/courses-col/items/publish")],
        )

    def test_updates_live_item(self):
        self.klass.webflow_item_id = "wf-1"
        self.request.return_value = _response(200, {"id": "wf-1"})
        result = sync_class(self.klass)
        self.assertEqual(result.data["action"], "updated")
        self.assertEqual(self._calls(), [("PATCH", "collections/courses-col/items/wf-1/live")])

    def test_falls_back_to_staged_update_and_publish(self):
        self.klass.webflow_item_id = "wf-1"
        self.request.side_effect = [
            _response(409, {"message": "Conflict"}),
            _response(200, {"id": "wf-1"}),
            _response(202, {}),
        ]
        result = sync_class(self.klass)
        self.assertEqual(result.data["action"], "updated")
        self.assertEqual(
            self._calls(),
            [
                ("PATCH", "collections/courses-col/items/wf-1/live"),
                ("PATCH", "collections/courses-col/items/wf-1"),
                ("POST", "collections/courses-col/items/publish"),
            ],
        )

    def test_recreates_deleted_item(self):
        self.klass.webflow_item_id = "wf-old"
        self.klass.save()
        self.request.side_effect = [
            _response(404, {"message": "Item not found"}),
            _response(202, {"id": "wf-new"}),
            _response(202, {}),
        ]
        result = sync_class(self.klass)
        self.assertEqual(result.data["action"], "recreated")
        self.klass.refresh_from_db()
        self.assertEqual(self.klass.webflow_item_id, "wf-new")

    def test_failure_is_reported_not_raised(self):
        self.request.return_value = _response(500, {"message": "Internal"})
        result = sync_class(self.klass)
        self.assertFalse(result.success)
        self.assertEqual(result.status_code, 500)

    def test_non_json_body_is_reported_not_raised(self):
        response = _response(202, {})
        response.content = b"<html>gateway</html>"
        response.json.side_effect = ValueError("Expecting value")
        self.request.return_value = response
        result = sync_class(self.klass)
        self.assertFalse(result.success)
        self.assertEqual(result.status_code, 502)
        self.klass.refresh_from_db()
        self.assertIsNone(self.klass.webflow_item_id)

    @override_settings(WEBFLOW_API_TOKEN="")
    def test_missing_configuration(self):
        result = sync_class(self.klass)
        self.assertFalse(result.success)
        self.request.assert_not_called()

    def test_delete_treats_missing_item_as_deleted(self):
        self.klass.webflow_item_id = "wf-1"
        self.request.return_value = _response(404, {"message": "Item not found"})
        self.assertTrue(delete_class_item(self.klass).success)

    def test_delete_without_item_is_noop(self):
        result = delete_class_item(self.klass)
        self.assertEqual(result.data["deleted"], False)
        self.request.assert_not_called()
