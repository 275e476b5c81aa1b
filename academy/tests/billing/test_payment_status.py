from datetime import date

from django.test import SimpleTestCase, TestCase

from academy.billing.services.payment_status import (
    ALL_PAID,
    FIRST_PAYMENT_PAID,
    NO_PAYMENTS,
    PENDING,
    REGISTRATION_FEE_PAID,
    REGISTRATION_FEE_PAST_DUE,
    TUITION_A_PAST_DUE,
    TUITION_B_PAST_DUE,
    TransactionRecord,
    derive_payment_status,
    payment_statuses_for,
)
from academy.tests.fixtures import create_class, create_course, create_enrollment, create_transaction

TODAY = date(2025, 6, 1)
PAST = date(2025, 5, 1)
FUTURE = date(2025, 7, 1)


def record(type_, status, due_date=None):
    return TransactionRecord(type=type_, status=status, due_date=due_date)


class DerivePaymentStatusTests(SimpleTestCase):
    def test_no_transactions(self):
        self.assertEqual(derive_payment_status([], TODAY), NO_PAYMENTS)

    def test_past_due_registration_fee_wins(self):
        records = [
            record("registration_fee", "pending", PAST),
            record("tuition_a", "pending", PAST),
        ]
        self.assertEqual(derive_payment_status(records, TODAY), REGISTRATION_FEE_PAST_DUE)

    def test_tuition_a_past_due(self):
        records = [
            record("registration_fee", "paid", PAST),
            record("tuition_a", "pending", PAST),
            record("tuition_b", "pending", PAST),
        ]
        self.assertEqual(derive_payment_status(records, TODAY), TUITION_A_PAST_DUE)

    def test_tuition_b_past_due(self):
        records = [
            record("registration_fee", "paid", PAST),
            record("tuition_a", "paid", PAST),
            record("tuition_b", "pending", PAST),
        ]
        self.assertEqual(derive_payment_status(records, TODAY), TUITION_B_PAST_DUE)

    def test_due_today_is_not_past_due(self):
        records = [record("registration_fee", "pending", TODAY)]
        self.assertEqual(derive_payment_status(records, TODAY), PENDING)

    def test_all_paid(self):
        records = [
            record("registration_fee", "paid"),
            record("tuition_a", "paid"),
            record("tuition_b", "paid"),
        ]
        self.assertEqual(derive_payment_status(records, TODAY), ALL_PAID)

    def test_all_paid_looks_at_first_row_of_each_type(self):
        records = [
            record("registration_fee", "paid"),
            record("tuition_a", "paid"),
            record("tuition_b", "paid"),
            record("registration_fee", "pending", FUTURE),
        ]
        self.assertEqual(derive_payment_status(records, TODAY), ALL_PAID)

    def test_first_payment_paid(self):
        records = [
            record("registration_fee", "paid", PAST),
            record("tuition_a", "paid", PAST),
            record("tuition_b", "pending", FUTURE),
        ]
        self.assertEqual(derive_payment_status(records, TODAY), FIRST_PAYMENT_PAID)

    def test_registration_fee_paid(self):
        records = [
            record("registration_fee", "paid", PAST),
            record("tuition_a", "pending", FUTURE),
            record("tuition_b", "pending", FUTURE),
        ]
        self.assertEqual(derive_payment_status(records, TODAY), REGISTRATION_FEE_PAID)

    def test_pending_without_due_dates(self):
        records = [record("registration_fee", "pending")]
        self.assertEqual(derive_payment_status(records, TODAY), PENDING)


class PaymentStatusesForTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        klass = create_class(create_course())
        cls.paid = create_enrollment(klass, email="paid@example.com")
        cls.empty = create_enrollment(klass, email="empty@example.com")
        create_transaction(cls.paid, transaction_status="paid", due_date=PAST)

    def test_every_id_gets_a_status(self):
        statuses = payment_statuses_for([self.paid.id, self.empty.id], today=TODAY)
        self.assertEqual(statuses, {self.paid.id: ALL_PAID, self.empty.id: NO_PAYMENTS})

    def test_single_query(self):
        with self.assertNumQueries(1):
            payment_statuses_for([self.paid.id, self.empty.id], today=TODAY)

    def test_no_ids(self):
        with self.assertNumQueries(0):
            self.assertEqual(payment_statuses_for([]), {})
