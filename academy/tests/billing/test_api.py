"""
API tests for the transaction ledger, payments and the accounting exports.
"""

from datetime import datetime, timezone as dt_timezone
from unittest import mock

from django.test import TestCase
from rest_framework.test import APIClient

from academy.models import Payment, Transaction
from academy.tests.fixtures import (
    create_admin,
    create_class,
    create_course,
    create_enrollment,
    create_transaction,
)
from core.results import OperationResult


class TransactionApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_admin()
        enrollment = create_enrollment(create_class(create_course()))
        cls.fee = create_transaction(
            enrollment,
            transaction_status="paid",
            invoice_number=100001,
            payout_id="po_1",
            payout_date=datetime(2025, 6, 1, tzinfo=dt_timezone.utc),
        )
        cls.tuition = create_transaction(enrollment, transaction_type="tuition_a", amount_due=50000)
        cls.payment = Payment.objects.create(
            enrollment=enrollment, amount_cents=25000, stripe_payment_intent_id="pi_1"
        )

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_filters(self):
        response = self.client.get("/api/academy/transactions/", {"status": "pending"})
        self.assertEqual([row["id"] for row in response.json()], [self.tuition.pk])

        response = self.client.get("/api/academy/transactions/", {"type": "registration_fee"})
        self.assertEqual([row["id"] for row in response.json()], [self.fee.pk])

        response = self.client.get("/api/academy/transactions/", {"reconciled": "false"})
        self.assertEqual(len(response.json()), 2)

    def test_transactions_cannot_be_deleted(self):
        response = self.client.delete(f"/api/academy/transactions/{self.fee.pk}/")
        self.assertEqual(response.status_code, 405)

    def test_status_transition(self):
        url = f"/api/academy/transactions/{self.tuition.pk}/status/"
        response = self.client.patch(url, {"transaction_status": "paid"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["transaction_status"], "paid")

        response = self.client.patch(url, {"transaction_status": "pending"}, format="json")
        self.assertEqual(response.status_code, 409)

        response = self.client.patch(url, {"transaction_status": "lost"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_reconcile_and_unreconcile(self):
        response = self.client.post(
            "/api/academy/transactions/reconcile/", {"transaction_id": self.fee.pk}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(Transaction.objects.get(pk=self.fee.pk).reconciled)

        response = self.client.post(
            "/api/academy/transactions/unreconcile/", {"transaction_id": self.fee.pk}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Transaction.objects.get(pk=self.fee.pk).reconciled)

    def test_reconcile_unknown_and_invalid(self):
        response = self.client.post(
            "/api/academy/transactions/reconcile/", {"transaction_id": 999999}, format="json"
        )
        self.assertEqual(response.status_code, 404)
        response = self.client.post("/api/academy/transactions/reconcile/", {}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_payout_groups(self):
        response = self.client.get("/api/academy/transactions/payouts/")
        self.assertEqual(response.status_code, 200)
        groups = response.json()
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0]["payout_id"], "po_1")
        self.assertEqual(groups[0]["payout_total"], 25000)
        self.assertEqual(groups[0]["transactions"][0]["invoice_number"], 100001)

    @mock.patch("academy.billing.views.sync_payouts")
    def test_sync_payouts(self, sync):
        sync.return_value = OperationResult.ok(payouts=2, updated=1)
        response = self.client.post("/api/academy/transactions/sync-payouts/", {"limit": 5}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["updated"], 1)
        sync.assert_called_once_with(limit=5)

    def test_payments_filtered_by_student(self):
        response = self.client.get("/api/academy/payments/", {"student": self.fee.student_id})
        self.assertEqual([row["id"] for row in response.json()], [self.payment.pk])
        response = self.client.get("/api/academy/payments/", {"student": 999999})
        self.assertEqual(response.json(), [])

    def test_requires_admin(self):
        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get("/api/academy/transactions/").status_code, 401)
        self.assertEqual(self.client.get("/api/academy/exports/transactions.csv").status_code, 401)


class ExportApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_admin()

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_transactions_csv(self):
        create_transaction(create_enrollment(create_class(create_course())), invoice_number=100001)

        response = self.client.get("/api/academy/exports/transactions.csv")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("attachment; filename=\"invoices-", response["Content-Disposition"])
        self.assertTrue(response.content.decode().startswith("InvoiceNo,Customer,"))

        response = self.client.get("/api/academy/exports/transactions.csv")
        self.assertEqual(response.json()["message"], "No new transactions to export")

    def test_empty_invoice_export(self):
        response = self.client.get("/api/academy/exports/invoices.csv")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "No invoices to export")
