"""
Core Tests

Covers the shared exception mapping, operation results and the
``check_integrations`` management command.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

from io import StringIO

from django.core.management import CommandError, call_command
from django.test import SimpleTestCase, override_settings

from .exceptions import (
    ConflictException,
    ExternalServiceException,
    NotFoundException,
    ValidationException,
    create_exception_from_response,
    map_database_error,
)
from .results import OperationResult


class ExceptionMappingTests(SimpleTestCase):
    def test_known_status_codes(self):
        self.assertIsInstance(create_exception_from_response(400, "bad", "webflow"), ValidationException)
        self.assertIsInstance(create_exception_from_response(404, "gone", "webflow"), NotFoundException)
        self.assertIsInstance(create_exception_from_response(409, "dupe"), ConflictException)

    def test_unknown_status_is_external_error(self):
        exc = create_exception_from_response(502, "bad gateway", "webflow")
        self.assertIsInstance(exc, ExternalServiceException)
        self.assertEqual(exc.status_code, 502)

    def test_service_is_recorded(self):
        exc = create_exception_from_response(404, "gone", "webflow")
        self.assertEqual(exc.details["service"], "webflow")

    def test_database_error_messages(self):
        self.assertEqual(map_database_error("class"), "This class doesn't exist or may have been removed.")
        self.assertEqual(map_database_error("unknown"), NotFoundException.default_message)


class OperationResultTests(SimpleTestCase):
    def test_ok(self):
        result = OperationResult.ok(value=1)
        self.assertEqual(result.to_dict(), {"success": True, "error": None, "value": 1})
        self.assertEqual(result.to_response(201).status_code, 201)

    def test_from_exception(self):
        result = OperationResult.from_exception(NotFoundException("Missing", resource="class"))
        self.assertFalse(result.success)
        self.assertEqual(result.status_code, 404)
        self.assertEqual(result.to_dict()["resource"], "class")
        self.assertEqual(result.to_response().status_code, 404)


UNCONFIGURED = dict(
    STRIPE_SECRET_KEY="",
    STRIPE_TEST_PUBLISHABLE_KEY="",
    STRIPE_LIVE_PUBLISHABLE_KEY="",
    DJSTRIPE_WEBHOOK_SECRET="",
    WEBFLOW_API_TOKEN="",
    WEBFLOW_SITE_ID="",
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
)

CONFIGURED = dict(
    STRIPE_LIVE_MODE=False,
    STRIPE_SECRET_KEY="sk_test_123",
    STRIPE_TEST_PUBLISHABLE_KEY="pk_test_123",
    DJSTRIPE_WEBHOOK_SECRET="whsec_123",
    WEBFLOW_API_TOKEN="wf-token",
    WEBFLOW_SITE_ID="site-1",
    WEBFLOW_COURSES_COLLECTION_ID="courses-col",
    WEBFLOW_PROGRAMS_COLLECTION_ID="programs-col",
    EMAIL_BACKEND="anymail.backends.resend.EmailBackend",
)


class CheckIntegrationsCommandTests(SimpleTestCase):
    @override_settings(**UNCONFIGURED)
    def test_reports_missing_configuration(self):
        out = StringIO()
        call_command("check_integrations", stdout=out)
        output = out.getvalue()
        self.assertIn("Stripe: Stripe secret key is not configured", output)
        self.assertIn("Webflow: program collection is not configured", output)
        self.assertIn("Email: non-delivering backend", output)

    @override_settings(**UNCONFIGURED)
    def test_strict_mode_fails(self):
        with self.assertRaises(CommandError):
            call_command("check_integrations", "--strict", stdout=StringIO())

    @override_settings(**CONFIGURED)
    def test_all_configured(self):
        out = StringIO()
        call_command("check_integrations", "--strict", stdout=out)
        self.assertIn("All integrations configured.", out.getvalue())
