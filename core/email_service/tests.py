"""
Email Service Tests

Covers validation, retry classification and backoff, template rendering
with escaping, email logs and the admin endpoints.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

from datetime import date
from types import SimpleNamespace
from unittest import mock

import requests
from anymail.exceptions import AnymailAPIError
from django.contrib.auth.models import User
from django.core import mail
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from core.exceptions import ValidationException
from .enrollment_emails import (
    format_currency,
    get_email_delivery_metrics,
    retry_failed_email,
    send_course_enrollment_email,
    send_program_enrollment_email,
)
from .models import EmailLog
from .sending import is_retryable_error, send_email, validate_email


def _api_error(status_code):
    if status_code is None:
        return AnymailAPIError("provider unreachable")
    response = requests.Response()
    response.status_code = status_code
    response.reason = "Provider Error"
    response._content = b'{"message": "provider error"}'
    response.encoding = "utf-8"
    return AnymailAPIError(
        "provider error", status_code=status_code, response=response, esp_name="Resend"
    )


class ValidateEmailTests(TestCase):
    def test_normalizes_address(self):
        self.assertEqual(validate_email("  Student@Example.COM "), "student@example.com")

    def test_rejects_invalid_address(self):
        with self.assertRaises(ValidationException):
            validate_email("not-an-email")
        with self.assertRaises(ValidationException):
            validate_email(None)


class RetryClassificationTests(TestCase):
    def test_transient_errors_are_retryable(self):
        self.assertTrue(is_retryable_error(ConnectionError("reset")))
        self.assertTrue(is_retryable_error(TimeoutError()))
        self.assertTrue(is_retryable_error(_api_error(None)))
        self.assertTrue(is_retryable_error(_api_error(429)))
        self.assertTrue(is_retryable_error(_api_error(503)))

    def test_client_errors_are_not_retryable(self):
        self.assertFalse(is_retryable_error(_api_error(400)))
        self.assertFalse(is_retryable_error(_api_error(422)))
        self.assertFalse(is_retryable_error(ValueError("bad")))


@override_settings(EMAIL_RETRY_BASE_DELAY_SECONDS=1.0, EMAIL_MAX_RETRIES=3)
class SendEmailTests(TestCase):
    def test_sends_html_email(self):
        result = send_email(to="student@example.com", subject="Hello", html="<p>Hi</p>")
        self.assertTrue(result.success)
        self.assertEqual(result.retries, 0)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["student@example.com"])
        self.assertEqual(mail.outbox[0].alternatives[0][1], "text/html")

    def test_invalid_input_fails_without_sending(self):
        result = send_email(to="nope", subject="Hello", html="<p>Hi</p>")
        self.assertFalse(result.success)
        self.assertEqual(len(mail.outbox), 0)

    @mock.patch("core.email_service.sending.time.sleep")
    def test_retries_transient_failures_with_backoff(self, sleep):
        with mock.patch(
            "core.email_service.sending.AnymailMessage.send",
            side_effect=[_api_error(503), ConnectionError("reset"), 1],
        ):
            result = send_email(to="student@example.com", subject="Hello", html="<p>Hi</p>")
        self.assertTrue(result.success)
        self.assertEqual(result.retries, 2)
        self.assertEqual([call.args[0] for call in sleep.call_args_list], [1.0, 2.0])

    @mock.patch("core.email_service.sending.time.sleep")
    def test_gives_up_after_max_retries(self, sleep):
        with mock.patch(
            "core.email_service.sending.AnymailMessage.send",
            side_effect=_api_error(500),
        ) as send:
            result = send_email(to="student@example.com", subject="Hello", html="<p>Hi</p>")
        self.assertFalse(result.success)
        self.assertEqual(result.retries, 3)
        self.assertEqual(send.call_count, 4)
        self.assertEqual([call.args[0] for call in sleep.call_args_list], [1.0, 2.0, 4.0])

    @mock.patch("core.email_service.sending.time.sleep")
    def test_client_error_fails_immediately(self, sleep):
        with mock.patch(
            "core.email_service.sending.AnymailMessage.send",
            side_effect=_api_error(422),
        ) as send:
            result = send_email(to="student@example.com", subject="Hello", html="<p>Hi</p>")
        self.assertFalse(result.success)
        self.assertEqual(send.call_count, 1)
        sleep.assert_not_called()


class EnrollmentEmailTests(TestCase):
    def setUp(self):
        self.student = SimpleNamespace(
            id=5, email="jane@example.com", first_name="<b>Jane</b>", last_name="Doe", full_name=None
        )
        self.enrollment = SimpleNamespace(id=9)
        self.klass = SimpleNamespace(
            class_id="EMR-001",
            class_name="Emergency Medical Responder",
            course_code="EMR",
            class_start_date=date(2025, 6, 1),
        )

    def test_format_currency(self):
        self.assertEqual(format_currency(100000), "$1,000.00")
        self.assertEqual(format_currency(None), "$0.00")

    def test_course_email_is_sent_and_logged(self):
        result = send_course_enrollment_email(
            self.student,
            self.enrollment,
            self.klass,
            amount_paid=25000,
            invoice_number=100001,
            payment_date=date(2025, 3, 1),
        )
        self.assertTrue(result.success)
        self.assertEqual(
            mail.outbox[0].subject,
            "Welcome to Emergency Medical Responder - Enrollment Confirmed",
        )
        log = EmailLog.objects.get()
        self.assertTrue(log.success)
        self.assertEqual(log.email_type, "course_enrollment")
        self.assertEqual(log.enrollment_id, 9)
        self.assertIn("$250.00", log.html_body)

    def test_user_data_is_escaped(self):
        result = send_course_enrollment_email(
            self.student, self.enrollment, self.klass, amount_paid=0, invoice_number=1, preview=True
        )
        self.assertIn("&lt;b&gt;Jane&lt;/b&gt;", result.preview_html)
        self.assertNotIn("<b>Jane</b>", result.preview_html)

    def test_preview_does_not_send(self):
        result = send_course_enrollment_email(
            self.student, self.enrollment, self.klass, amount_paid=100, invoice_number=1, preview=True
        )
        self.assertTrue(result.success)
        self.assertEqual(len(mail.outbox), 0)
        self.assertFalse(EmailLog.objects.exists())

    def test_program_email_lists_outstanding_invoices(self):
        result = send_program_enrollment_email(
            self.student,
            self.enrollment,
            self.klass,
            amount_paid=25000,
            invoice_number=100001,
            outstanding_invoices=[
                {"invoice_number": 100002, "transaction_type": "tuition_a", "amount_due": 50000, "due_date": date(2025, 5, 11)},
                {"invoice_number": 100003, "transaction_type": "tuition_b", "amount_due": 50000, "due_date": date(2025, 6, 8)},
            ],
            preview=True,
        )
        self.assertIn("May 11, 2025", result.preview_html)
        self.assertIn("June 8, 2025", result.preview_html)
        self.assertIn("$1,000.00", result.preview_html)

    def test_invalid_student_email(self):
        self.student.email = "broken"
        result = send_course_enrollment_email(
            self.student, self.enrollment, self.klass, amount_paid=100, invoice_number=1
        )
        self.assertFalse(result.success)
        self.assertIn("Invalid student email", result.error)


class EmailLogOperationsTests(TestCase):
    def setUp(self):
        self.failed = EmailLog.objects.create(
            recipient_email="jane@example.com",
            subject="Welcome",
            email_type="course_enrollment",
            success=False,
            error="timeout",
            html_body="<p>Welcome</p>",
        )
        EmailLog.objects.create(
            recipient_email="john@example.com",
            subject="Welcome",
            email_type="program_enrollment",
            success=True,
        )

    def test_metrics(self):
        metrics = get_email_delivery_metrics()
        self.assertEqual(metrics["total_sent"], 1)
        self.assertEqual(metrics["total_failed"], 1)
        self.assertEqual(metrics["success_rate"], 50.0)
        self.assertEqual(metrics["emails_by_type"]["course_enrollment"], {"sent": 0, "failed": 1})
        self.assertEqual(metrics["recent_failures"][0]["id"], self.failed.id)

    def test_retry_resends_stored_html(self):
        result = retry_failed_email(self.failed.id)
        self.assertTrue(result.success)
        self.failed.refresh_from_db()
        self.assertTrue(self.failed.success)
        self.assertEqual(self.failed.retries, 1)
        self.assertEqual(mail.outbox[0].alternatives[0][0], "<p>Welcome</p>")

    def test_retry_of_successful_email_is_rejected(self):
        sent = EmailLog.objects.get(success=True)
        result = retry_failed_email(sent.id)
        self.assertFalse(result.success)
        self.assertEqual(result.status_code, 409)


class EmailApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(username="admin", password="Musterpassword", is_staff=True)

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_metrics_endpoint(self):
        response = self.client.get("/api/email/email-logs/metrics/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total_sent"], 0)

    def test_preview_endpoint_renders_html(self):
        response = self.client.get("/api/email/preview/", {"type": "program"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("Outstanding Invoices", response.content.decode())

    def test_preview_rejects_unknown_type(self):
        response = self.client.get("/api/email/preview/", {"type": "other"})
        self.assertEqual(response.status_code, 400)

    def test_requires_admin(self):
        self.client.force_authenticate(user=None)
        response = self.client.get("/api/email/email-logs/")
        self.assertEqual(response.status_code, 401)
