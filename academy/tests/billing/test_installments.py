"""
Tests for the tuition installment split and the staged accounting invoices.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from academy.billing.services.installments import (
    build_installment_invoices,
    compute_due_dates,
    create_registration_fee_invoices,
    split_price,
)
from academy.models import InvoiceToImport
from academy.tests.fixtures import create_class, create_course


def _klass(**overrides):
    values = dict(
        class_id="PN-001",
        class_name="Practical Nursing",
        course_code="PN",
        price=100000,
        class_start_date=date(2025, 6, 1),
        invoice_1_due_date=None,
        invoice_2_due_date=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class SplitPriceTests(SimpleTestCase):
    def test_even_price(self):
        self.assertEqual(split_price(100000), (50000, 50000))

    def test_odd_price_puts_remainder_on_second_half(self):
        self.assertEqual(split_price(100001), (50000, 50001))

    def test_halves_always_sum_to_price(self):
        for price in (1, 3, 99, 12345, 999999):
            first, second = split_price(price)
            self.assertEqual(first + second, price)

    def test_missing_price(self):
        self.assertEqual(split_price(None), (0, 0))
        self.assertEqual(split_price(0), (0, 0))


class DueDateTests(SimpleTestCase):
    def test_relative_to_class_start(self):
        self.assertEqual(
            compute_due_dates(_klass(), date(2025, 3, 1)),
            (date(2025, 5, 11), date(2025, 6, 8)),
        )

    def test_overrides_win_individually(self):
        klass = _klass(invoice_1_due_date=date(2025, 5, 1))
        self.assertEqual(
            compute_due_dates(klass, date(2025, 3, 1)),
            (date(2025, 5, 1), date(2025, 6, 8)),
        )

    def test_without_start_date_relative_to_payment(self):
        klass = _klass(class_start_date=None)
        self.assertEqual(
            compute_due_dates(klass, date(2025, 3, 1)),
            (date(2025, 3, 31), date(2025, 4, 30)),
        )


class BuildInstallmentInvoicesTests(SimpleTestCase):
    def test_two_invoices_with_split_amounts(self):
        invoices = build_installment_invoices(
            _klass(), "jane@example.com", date(2025, 3, 1), [100002, 100003]
        )
        self.assertEqual([invoice.invoice_sequence for invoice in invoices], [1, 2])
        self.assertEqual([invoice.item_amount for invoice in invoices], [50000, 50000])
        self.assertEqual([invoice.due_date for invoice in invoices], [date(2025, 5, 11), date(2025, 6, 8)])
        self.assertEqual(invoices[0].item, "PN:PN-001:registration")
        self.assertEqual(invoices[0].item_rate, Decimal("0.5"))
        self.assertEqual(invoices[0].subcategory, "PN-001")

    def test_requires_two_numbers(self):
        with self.assertRaises(ValueError):
            build_installment_invoices(_klass(), "jane@example.com", date(2025, 3, 1), [1])

    def test_zero_price_still_builds_invoices(self):
        invoices = build_installment_invoices(
            _klass(price=None), "jane@example.com", date(2025, 3, 1), [1, 2]
        )
        self.assertEqual([invoice.item_amount for invoice in invoices], [0, 0])


class CreateRegistrationFeeInvoicesTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.klass = create_class(create_course("PN", program_type="program"), class_id="PN-001")

    def test_creates_two_rows_with_consecutive_numbers(self):
        result = create_registration_fee_invoices(
            klass=self.klass,
            customer_email="jane@example.com",
            payment_date=date(2025, 3, 1),
            transaction_id="pi_123",
        )
        self.assertTrue(result.success)
        self.assertTrue(result.data["created"])
        numbers = [invoice.invoice_number for invoice in result.data["invoices"]]
        self.assertEqual(numbers, [100001, 100002])
        self.assertEqual(InvoiceToImport.objects.count(), 2)

    def test_second_call_returns_existing_rows(self):
        first = create_registration_fee_invoices(
            klass=self.klass,
            customer_email="jane@example.com",
            payment_date=date(2025, 3, 1),
            transaction_id="pi_123",
        )
        second = create_registration_fee_invoices(
            klass=self.klass,
            customer_email="jane@example.com",
            payment_date=date(2025, 3, 1),
            transaction_id="pi_123",
        )
        self.assertFalse(second.data["created"])
        self.assertEqual(
            [invoice.pk for invoice in first.data["invoices"]],
            [invoice.pk for invoice in second.data["invoices"]],
        )
        self.assertEqual(InvoiceToImport.objects.count(), 2)

    def test_requires_transaction_id(self):
        result = create_registration_fee_invoices(
            klass=self.klass,
            customer_email="jane@example.com",
            payment_date=date(2025, 3, 1),
            transaction_id="",
        )
        self.assertFalse(result.success)
        self.assertEqual(result.status_code, 400)
