"""
Tests for recording completed checkouts, tuition payments and refunds.
"""

from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

from django.core import mail
from django.test import TestCase

from academy.billing.services.checkout import (
    CheckoutDetails,
    checkout_details_from_session,
    mark_transactions_paid,
    record_checkout,
    refund_payment,
)
from academy.models import Enrollment, InvoiceToImport, Payment, Student, Transaction
from academy.tests.fixtures import create_class, create_course
from core.audit_logs.models import Log
from core.email_service.models import EmailLog

PAID_AT = datetime(2025, 3, 1, 15, tzinfo=dt_timezone.utc)


def _details(**overrides):
    values = dict(
        email="Jane@Example.com",
        class_id="EMR-001",
        payment_intent_id="pi_123",
        amount_cents=25000,
        full_name="Jane Doe",
        stripe_customer_id="cus_123",
        paid_at=PAID_AT,
    )
    values.update(overrides)
    return CheckoutDetails(**values)


class CheckoutDetailsFromSessionTests(TestCase):
    def test_reads_session_payload(self):
        details = checkout_details_from_session(
            {
                "id": "cs_1",
                "payment_intent": "pi_1",
                "customer": {"id": "cus_1"},
                "customer_details": {"email": "jane@example.com", "name": "Jane D"},
                "amount_total": 25000,
                "created": 1740841200,
                "metadata": {"class_id": "EMR-001", "full_name": "Jane Doe"},
            }
        )
        self.assertEqual(details.email, "jane@example.com")
        self.assertEqual(details.class_id, "EMR-001")
        self.assertEqual(details.payment_intent_id, "pi_1")
        self.assertEqual(details.stripe_customer_id, "cus_1")
        self.assertEqual(details.full_name, "Jane Doe")
        self.assertEqual(details.amount_cents, 25000)
        self.assertEqual(details.paid_at.tzinfo, dt_timezone.utc)

    def test_session_id_used_without_payment_intent(self):
        details = checkout_details_from_session({"id": "cs_1", "metadata": {"email": "a@b.com"}})
        self.assertEqual(details.payment_intent_id, "cs_1")
        self.assertEqual(details.email, "a@b.com")
        self.assertIsNone(details.paid_at)


class CourseCheckoutTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.klass = create_class(create_course("EMR"), class_id="EMR-001")

    def test_records_course_enrollment(self):
        result = record_checkout(_details())

        self.assertTrue(result.success)
        self.assertFalse(result.data["duplicate"])
        student = Student.objects.get()
        self.assertEqual(student.email, "jane@example.com")
        self.assertEqual(student.stripe_customer_id, "cus_123")
        enrollment = Enrollment.objects.get()
        self.assertEqual(enrollment.klass, self.klass)
        payment = Payment.objects.get()
        self.assertEqual(payment.amount_cents, 25000)

        row = Transaction.objects.get()
        self.assertEqual(row.transaction_type, Transaction.Type.REGISTRATION_FEE)
        self.assertEqual(row.transaction_status, Transaction.Status.PAID)
        self.assertEqual(row.invoice_number, 100001)
        self.assertEqual(row.stripe_payment_intent_id, "pi_123")
        self.assertFalse(InvoiceToImport.objects.exists())

        self.assertTrue(result.data["email_sent"])
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(EmailLog.objects.get().email_type, "course_enrollment")

    def test_writes_audit_logs(self):
        record_checkout(_details())
        actions = set(Log.objects.values_list("action_type", flat=True))
        self.assertEqual(
            actions,
            {
                Log.ActionType.STUDENT_ADDED,
                Log.ActionType.STUDENT_REGISTERED,
                Log.ActionType.PAYMENT_SUCCESS,
            },
        )
        payment_log = Log.objects.get(action_type=Log.ActionType.PAYMENT_SUCCESS)
        self.assertEqual(payment_log.reference_type, Log.ReferenceType.COURSE)
        self.assertEqual(payment_log.amount, 25000)

    def test_duplicate_payment_intent(self):
        record_checkout(_details())
        result = record_checkout(_details())

        self.assertTrue(result.success)
        self.assertTrue(result.data["duplicate"])
        self.assertEqual(Payment.objects.count(), 1)
        self.assertEqual(Transaction.objects.count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_existing_student_is_reused(self):
        Student.objects.create(email="jane@example.com", first_name="Jane")
        result = record_checkout(_details())
        self.assertTrue(result.success)
        self.assertEqual(Student.objects.count(), 1)
        self.assertFalse(Log.objects.filter(action_type=Log.ActionType.STUDENT_ADDED).exists())

    def test_unknown_class(self):
        result = record_checkout(_details(class_id="NOPE-001"))
        self.assertFalse(result.success)
        self.assertEqual(result.status_code, 404)
        self.assertFalse(Student.objects.exists())

    def test_invalid_input(self):
        self.assertEqual(record_checkout(_details(email="broken")).status_code, 400)
        self.assertEqual(record_checkout(_details(class_id=None)).status_code, 400)
        self.assertEqual(record_checkout(_details(payment_intent_id=None)).status_code, 400)

    def test_without_email(self):
        result = record_checkout(_details(), send_email=False)
        self.assertFalse(result.data["email_sent"])
        self.assertEqual(len(mail.outbox), 0)


class ProgramCheckoutTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        course = create_course("PN", program_type="program", price=100000)
        cls.klass = create_class(course, class_id="PN-001", class_start_date=date(2025, 6, 1))

    def test_records_installments(self):
        result = record_checkout(_details(class_id="PN-001"))

        self.assertTrue(result.success)
        rows = {row.transaction_type: row for row in Transaction.objects.all()}
        self.assertEqual(set(rows), {"registration_fee", "tuition_a", "tuition_b"})

        tuition_a, tuition_b = rows["tuition_a"], rows["tuition_b"]
        self.assertEqual((tuition_a.amount_due, tuition_b.amount_due), (50000, 50000))
        self.assertEqual((tuition_a.due_date, tuition_b.due_date), (date(2025, 5, 11), date(2025, 6, 8)))
        self.assertEqual(tuition_a.transaction_status, Transaction.Status.PENDING)
        self.assertEqual(tuition_a.quantity, Decimal("0.5"))

        invoices = list(InvoiceToImport.objects.order_by("invoice_sequence"))
        self.assertEqual(
            [invoice.invoice_number for invoice in invoices],
            [tuition_a.invoice_number, tuition_b.invoice_number],
        )
        self.assertEqual(len(set(result.data["invoice_numbers"])), 3)
        self.assertEqual(EmailLog.objects.get().email_type, "program_enrollment")
        self.assertIn("Outstanding Invoices", mail.outbox[0].alternatives[0][0])

    def test_tuition_payment_marks_transaction_paid(self):
        record_checkout(_details(class_id="PN-001"))
        tuition_a = Transaction.objects.get(transaction_type="tuition_a")

        result = mark_transactions_paid("pi_tuition", transaction_id=tuition_a.pk)

        self.assertEqual(result.data["updated"], [tuition_a.pk])
        tuition_a.refresh_from_db()
        self.assertEqual(tuition_a.transaction_status, Transaction.Status.PAID)
        self.assertEqual(tuition_a.stripe_payment_intent_id, "pi_tuition")

    def test_refund(self):
        record_checkout(_details(class_id="PN-001"))

        result = refund_payment("pi_123")

        self.assertEqual(result.data["payments"], 1)
        self.assertEqual(Payment.objects.get().payment_status, Payment.Status.REFUNDED)
        fee = Transaction.objects.get(transaction_type="registration_fee")
        self.assertEqual(fee.transaction_status, Transaction.Status.REFUNDED)
        self.assertEqual(
            Transaction.objects.get(transaction_type="tuition_b").transaction_status,
            Transaction.Status.PENDING,
        )
        self.assertEqual(refund_payment("pi_123").data["transactions"], [])

    def test_refund_requires_payment_intent(self):
        self.assertEqual(refund_payment("").status_code, 400)
