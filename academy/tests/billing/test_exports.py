import csv
import io
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

from django.test import TestCase

from academy.billing.services.exports import (
    TRANSACTION_HEADERS,
    describe_transaction,
    export_invoices_csv,
    export_transactions_csv,
    format_amount,
    format_csv_date,
)
from academy.models import InvoiceToImport, Transaction
from academy.tests.fixtures import create_class, create_course, create_enrollment, create_transaction


def _rows(content):
    return list(csv.reader(io.StringIO(content)))


class FormattingTests(TestCase):
    def test_amount(self):
        self.assertEqual(format_amount(100000), "1000.00")
        self.assertEqual(format_amount(None), "0.00")

    def test_csv_date(self):
        self.assertEqual(format_csv_date(date(2025, 6, 1)), "6/1/2025")
        self.assertEqual(format_csv_date(None), "")


class TransactionExportTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        course = create_course("PN", program_type="program", course_name="Practical Nursing")
        klass = create_class(course, class_id="PN-001", class_name="Practical Nursing")
        enrollment = create_enrollment(klass)
        cls.fee = create_transaction(enrollment, transaction_status="paid", invoice_number=100001)
        cls.tuition = create_transaction(
            enrollment,
            transaction_type="tuition_a",
            amount_due=50000,
            quantity=Decimal("0.5"),
            due_date=date(2025, 5, 11),
            invoice_number=100002,
        )
        Transaction.objects.filter(pk__in=[cls.fee.pk, cls.tuition.pk]).update(
            created_at=datetime(2025, 3, 1, 12, tzinfo=dt_timezone.utc)
        )

    def test_exports_new_transactions_and_marks_them(self):
        export = export_transactions_csv()

        self.assertEqual(export.row_count, 2)
        self.assertEqual(export.filename, "invoices-030125-030125.csv")
        rows = _rows(export.content)
        self.assertEqual(rows[0], TRANSACTION_HEADERS)
        tuition = next(row for row in rows[1:] if row[0] == "100002")
        self.assertEqual(tuition[1], "Jane Doe")
        self.assertEqual(tuition[3], "5/11/2025")
        self.assertEqual(tuition[6], "PN-001")
        self.assertEqual(tuition[7], "Tuition")
        self.assertEqual(tuition[8], "First payment for Practical Nursing starting on June 1, 2025")
        self.assertEqual(tuition[10], "0.5")
        self.assertEqual(tuition[11], "500.00")
        self.assertEqual(tuition[14], "6/1/2025")

        self.assertFalse(Transaction.objects.filter(downloaded=False).exists())
        self.assertIsNone(export_transactions_csv())

    def test_preview_does_not_mark(self):
        export_transactions_csv(mark_downloaded=False)
        self.assertEqual(Transaction.objects.filter(downloaded=False).count(), 2)

    def test_describe_registration_fee(self):
        self.assertEqual(
            describe_transaction(self.fee),
            "Registration Fee for Practical Nursing starting on June 1, 2025",
        )


class InvoiceExportTests(TestCase):
    def test_empty(self):
        self.assertIsNone(export_invoices_csv())

    def test_rows_ordered_by_invoice_number(self):
        for number, sequence in ((100003, 2), (100002, 1)):
            InvoiceToImport.objects.create(
                invoice_number=number,
                invoice_sequence=sequence,
                customer_email="jane@example.com",
                invoice_date=date(2025, 3, 1),
                due_date=date(2025, 5, 11),
                item="PN:PN-001:registration",
                item_amount=50000,
                subcategory="PN-001",
                transaction_id="pi_123",
            )

        export = export_invoices_csv()

        rows = _rows(export.content)
        self.assertEqual([row[0] for row in rows[1:]], ["100002", "100003"])
        self.assertEqual(rows[1][1:5], ["jane@example.com", "3/1/2025", "5/11/2025", "Registration"])
        self.assertEqual(rows[1][7:9], ["0.5", "500.00"])
