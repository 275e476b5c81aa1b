from django.test import TestCase, override_settings

from academy.billing.services.invoice_numbers import allocate_invoice_number, allocate_invoice_numbers
from academy.models import InvoiceNumberSequence
from academy.tests.fixtures import create_class, create_course, create_enrollment, create_transaction


class InvoiceNumberTests(TestCase):
    def test_first_number_is_the_floor(self):
        self.assertEqual(allocate_invoice_number(), 100001)

    def test_numbers_are_consecutive(self):
        self.assertEqual(allocate_invoice_numbers(2), [100001, 100002])
        self.assertEqual(allocate_invoice_number(), 100003)
        self.assertEqual(InvoiceNumberSequence.objects.get().last_number, 100003)

    def test_counter_is_seeded_from_existing_rows(self):
        enrollment = create_enrollment(create_class(create_course()))
        create_transaction(enrollment, invoice_number=100500)
        self.assertEqual(allocate_invoice_number(), 100501)

    @override_settings(INVOICE_NUMBER_FLOOR=5000)
    def test_custom_floor(self):
        self.assertEqual(allocate_invoice_number(), 5000)

    def test_count_must_be_positive(self):
        with self.assertRaises(ValueError):
            allocate_invoice_numbers(0)
