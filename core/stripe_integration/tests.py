from datetime import date
from types import SimpleNamespace
from unittest import mock

from django.core import mail
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from academy.models import Class, Course, InvoiceToImport, Payment, Transaction
from core.exceptions import ValidationException
from .client import validate_stripe_id
from .signals import (
    _extract_data_object,
    _handle_charge_refunded,
    _handle_checkout_session_completed,
    on_djstripe_event_created,
)


class ValidateStripeIdTests(TestCase):
    def test_accepts_prefixed_id(self):
        self.assertEqual(validate_stripe_id(" prod_123 ", "prod_"), "prod_123")

    def test_rejects_wrong_prefix(self):
        with self.assertRaises(ValidationException):
            validate_stripe_id("price_123", "prod_")
        with self.assertRaises(ValidationException):
            validate_stripe_id("prod_", "prod_")


class ExtractDataObjectTests(TestCase):
    def test_full_event_body(self):
        event = SimpleNamespace(data={"data": {"object": {"id": "cs_1"}}})
        self.assertEqual(_extract_data_object(event), {"id": "cs_1"})

    def test_data_member_only(self):
        event = SimpleNamespace(data={"object": {"id": "cs_1"}})
        self.assertEqual(_extract_data_object(event), {"id": "cs_1"})

    def test_empty(self):
        self.assertEqual(_extract_data_object(SimpleNamespace(data=None)), {})


@override_settings(STRIPE_SECRET_KEY="sk_test_123", CHECKOUT_BASE_URL="https://checkout.example.com")
class CheckoutSessionViewTests(TestCase):
    url = "/api/payments/stripe/checkout-session/"

    @classmethod
    def setUpTestData(cls):
        cls.course = Course.objects.create(
            course_code="EMR", course_name="Emergency Medical Responder", stripe_product_id="prod_emr"
        )
        cls.klass = Class.objects.create(
            course=cls.course, course_code="EMR", class_name="EMR Basics", class_id="EMR-001"
        )

    def setUp(self):
        self.client = APIClient()

    @mock.patch("core.stripe_integration.views.stripe.checkout.Session.create")
    @mock.patch("core.stripe_integration.views.get_or_create_customer", return_value="cus_1")
    @mock.patch(
        "core.stripe_integration.views.get_product_with_price",
        return_value={"price_id": "price_1", "unit_amount": 25000},
    )
    def test_creates_session_with_metadata(self, get_product, get_customer, create_session):
        create_session.return_value = {"id": "cs_1", "url": "https://stripe.test/cs_1"}
        response = self.client.post(
            self.url,
            {"email": "Jane@Example.com", "full_name": "Jane Doe", "class_id": "EMR-001"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["checkout_url"], "https://stripe.test/cs_1")
        get_product.assert_called_once_with("prod_emr")
        get_customer.assert_called_once_with("jane@example.com", "Jane Doe")
        kwargs = create_session.call_args.kwargs
        self.assertEqual(kwargs["mode"], "payment")
        self.assertEqual(kwargs["customer"], "cus_1")
        self.assertEqual(kwargs["line_items"], [{"price": "price_1", "quantity": 1}])
        self.assertEqual(
            kwargs["metadata"],
            {"class_id": "EMR-001", "full_name": "Jane Doe", "email": "jane@example.com"},
        )

    def test_validates_input(self):
        response = self.client.post(
            self.url, {"email": "nope", "full_name": "Jane", "class_id": "EMR-001"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            self.url, {"email": "jane@example.com", "class_id": "EMR-001"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_unknown_class(self):
        response = self.client.post(
            self.url,
            {"email": "jane@example.com", "full_name": "Jane", "class_id": "XYZ-001"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "This class doesn't exist or may have been removed.")

    @override_settings(STRIPE_SECRET_KEY="")
    def test_missing_secret_key(self):
        response = self.client.post(
            self.url,
            {"email": "jane@example.com", "full_name": "Jane", "class_id": "EMR-001"},
            format="json",
        )
        self.assertEqual(response.status_code, 500)

    @override_settings(STRIPE_TEST_PUBLISHABLE_KEY="pk_test_1", STRIPE_LIVE_MODE=False)
    def test_config_endpoint(self):
        response = self.client.get("/api/payments/stripe/config/")
        self.assertEqual(response.json(), {"publishableKey": "pk_test_1"})


@mock.patch("core.stripe_integration.signals.get_receipt_url", return_value=None)
class WebhookHandlerTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.program = Course.objects.create(
            course_code="PN", course_name="Practical Nursing", program_type="program"
        )
        cls.klass = Class.objects.create(
            course=cls.program,
            course_code="PN",
            class_name="Practical Nursing Fall",
            class_id="PN-001",
            class_start_date=date(2030, 6, 1),
            price=100000,
            registration_fee=25000,
        )

    def _session(self, **overrides):
        session = {
            "id": "cs_1",
            "payment_status": "paid",
            "payment_intent": "pi_1",
            "amount_total": 25000,
            "customer": "cus_1",
            "customer_details": {"email": "jane@example.com", "name": "Jane Doe"},
            "metadata": {"class_id": "PN-001", "full_name": "Jane Doe"},
        }
        session.update(overrides)
        return session

    def test_checkout_completed_records_program_enrollment(self, receipt):
        _handle_checkout_session_completed(self._session())

        payment = Payment.objects.get()
        self.assertEqual(payment.amount_cents, 25000)
        types = sorted(Transaction.objects.values_list("transaction_type", flat=True))
        self.assertEqual(types, ["registration_fee", "tuition_a", "tuition_b"])
        self.assertEqual(InvoiceToImport.objects.count(), 2)
        self.assertEqual(len(mail.outbox), 1)

    def test_duplicate_event_is_ignored(self, receipt):
        _handle_checkout_session_completed(self._session())
        _handle_checkout_session_completed(self._session())
        self.assertEqual(Payment.objects.count(), 1)
        self.assertEqual(Transaction.objects.count(), 3)

    def test_unpaid_session_is_skipped(self, receipt):
        _handle_checkout_session_completed(self._session(payment_status="unpaid"))
        self.assertFalse(Payment.objects.exists())

    def test_refund_marks_payment_refunded(self, receipt):
        _handle_checkout_session_completed(self._session())
        _handle_charge_refunded({"id": "ch_1", "payment_intent": "pi_1", "refunded": True})
        self.assertEqual(Payment.objects.get().payment_status, "refunded")
        self.assertEqual(
            Transaction.objects.get(transaction_type="registration_fee").transaction_status, "refunded"
        )
        self.assertEqual(Transaction.objects.get(transaction_type="tuition_a").transaction_status, "pending")

    def test_receiver_never_raises(self, receipt):
        event = SimpleNamespace(
            id="evt_1",
            type="checkout.session.completed",
            data={"data": {"object": self._session()}},
        )
        with mock.patch(
            "core.stripe_integration.signals._handle_checkout_session_completed",
            side_effect=RuntimeError("boom"),
        ):
            on_djstripe_event_created(sender=None, instance=event, created=True)

    def test_receiver_ignores_updates(self, receipt):
        event = SimpleNamespace(id="evt_1", type="checkout.session.completed", data={})
        with mock.patch("core.stripe_integration.signals._handle_checkout_session_completed") as handler:
            on_djstripe_event_created(sender=None, instance=event, created=False)
        handler.assert_not_called()
