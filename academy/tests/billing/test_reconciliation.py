"""
Tests for payout grouping, reconcile / unreconcile and the Stripe payout sync.
"""

from datetime import datetime, timezone as dt_timezone
from types import SimpleNamespace
from unittest import mock

import stripe
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase

from academy.billing.services.reconciliation import (
    group_transactions_by_payout,
    reconcile_transaction,
    sync_payouts,
    unreconcile_transaction,
    unreconciled_payout_groups,
)
from academy.models import Transaction
from academy.tests.fixtures import create_class, create_course, create_enrollment, create_transaction


def _row(payout_id, payout_date=None, amount=1000, created_day=1):
    return SimpleNamespace(
        payout_id=payout_id,
        payout_date=payout_date,
        payment_amount=amount,
        created_at=datetime(2025, 5, created_day, tzinfo=dt_timezone.utc),
    )


class GroupTransactionsByPayoutTests(SimpleTestCase):
    def test_groups_totals_and_order(self):
        may = datetime(2025, 5, 10, tzinfo=dt_timezone.utc)
        june = datetime(2025, 6, 10, tzinfo=dt_timezone.utc)
        rows = [
            _row("po_old", may, 1000, created_day=1),
            _row("po_new", june, 2500, created_day=2),
            _row("po_old", None, 500, created_day=3),
            _row("po_undated", None, 700),
            _row(None, None, 9999),
        ]
        groups = group_transactions_by_payout(rows)

        self.assertEqual([group.payout_id for group in groups], ["po_new", "po_old", "po_undated"])
        old = groups[1]
        self.assertEqual(old.payout_total, 1500)
        self.assertEqual(old.payout_date, may)
        self.assertEqual([row.payment_amount for row in old.transactions], [500, 1000])

    def test_empty(self):
        self.assertEqual(group_transactions_by_payout([]), [])

    def test_to_dict_with_serializer(self):
        group = group_transactions_by_payout([_row("po_1", amount=100)])[0]
        data = group.to_dict(lambda rows: [row.payment_amount for row in rows])
        self.assertEqual(data["payout_id"], "po_1")
        self.assertEqual(data["transactions"], [100])


class ReconcileTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        enrollment = create_enrollment(create_class(create_course()))
        cls.row = create_transaction(enrollment, transaction_status="paid", payout_id="po_1")
        cls.other = create_transaction(
            enrollment, transaction_type="tuition_a", transaction_status="paid", payout_id="po_1"
        )

    def test_reconcile_sets_flag_and_date(self):
        result = reconcile_transaction(self.row.pk)
        self.assertTrue(result.success)
        self.row.refresh_from_db()
        self.assertTrue(self.row.reconciled)
        self.assertIsNotNone(self.row.reconciliation_date)

    def test_reconcile_twice_keeps_first_date(self):
        reconcile_transaction(self.row.pk)
        self.row.refresh_from_db()
        first_date = self.row.reconciliation_date

        result = reconcile_transaction(self.row.pk)
        self.assertTrue(result.success)
        self.row.refresh_from_db()
        self.assertEqual(self.row.reconciliation_date, first_date)

    def test_unreconcile(self):
        reconcile_transaction(self.row.pk)
        result = unreconcile_transaction(self.row.pk)
        self.assertTrue(result.success)
        self.row.refresh_from_db()
        self.assertFalse(self.row.reconciled)
        self.assertIsNone(self.row.reconciliation_date)
        self.assertTrue(unreconcile_transaction(self.row.pk).success)

    def test_unknown_transaction(self):
        self.assertEqual(reconcile_transaction(999999).status_code, 404)
        self.assertEqual(unreconcile_transaction(999999).status_code, 404)

    def test_reconciled_rows_leave_the_open_groups(self):
        reconcile_transaction(self.row.pk)
        groups = unreconciled_payout_groups()
        self.assertEqual(len(groups), 1)
        self.assertEqual([row.pk for row in groups[0].transactions], [self.other.pk])
        self.assertEqual(len(unreconciled_payout_groups(include_reconciled=True)[0].transactions), 2)


class SyncPayoutsTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        enrollment = create_enrollment(create_class(create_course()))
        cls.matching = create_transaction(
            enrollment, transaction_status="paid", stripe_payment_intent_id="pi_match"
        )
        cls.unrelated = create_transaction(
            enrollment,
            transaction_type="tuition_a",
            transaction_status="paid",
            stripe_payment_intent_id="pi_other",
        )

    @mock.patch("academy.billing.services.reconciliation.stripe.BalanceTransaction.list")
    @mock.patch("academy.billing.services.reconciliation.stripe.Payout.list")
    def test_stamps_matching_transactions(self, payout_list, balance_list):
        payout_list.return_value = {"data": [{"id": "po_1", "arrival_date": 1748736000}]}
        balance_list.return_value = {
            "data": [
                {"source": {"payment_intent": "pi_match"}},
                {"source": {"payment_intent": {"id": "pi_unknown"}}},
                {"source": "ch_without_expansion"},
            ]
        }

        result = sync_payouts(limit=5)

        self.assertTrue(result.success)
        self.assertEqual(result.data, {"payouts": 1, "updated": 1})
        self.matching.refresh_from_db()
        self.assertEqual(self.matching.payout_id, "po_1")
        self.assertEqual(self.matching.payout_date, datetime(2025, 6, 1, tzinfo=dt_timezone.utc))
        self.unrelated.refresh_from_db()
        self.assertIsNone(self.unrelated.payout_id)
        payout_list.assert_called_once_with(limit=5, status="paid")

    @mock.patch("academy.billing.services.reconciliation.stripe.BalanceTransaction.list")
    @mock.patch("academy.billing.services.reconciliation.stripe.Payout.list")
    def test_already_stamped_rows_are_left_alone(self, payout_list, balance_list):
        Transaction.objects.filter(pk=self.matching.pk).update(payout_id="po_earlier")
        payout_list.return_value = {"data": [{"id": "po_1", "arrival_date": 1748736000}]}
        balance_list.return_value = {"data": [{"source": {"payment_intent": "pi_match"}}]}

        result = sync_payouts()

        self.assertEqual(result.data["updated"], 0)
        self.matching.refresh_from_db()
        self.assertEqual(self.matching.payout_id, "po_earlier")

    @mock.patch(
        "academy.billing.services.reconciliation.stripe.Payout.list",
        side_effect=stripe.error.APIConnectionError("network down"),
    )
    def test_stripe_failure(self, payout_list):
        result = sync_payouts()
        self.assertFalse(result.success)
        self.assertEqual(result.status_code, 502)

    @mock.patch("academy.billing.services.reconciliation.stripe.BalanceTransaction.list")
    @mock.patch("academy.billing.services.reconciliation.stripe.Payout.list")
    def test_management_command(self, payout_list, balance_list):
        payout_list.return_value = {"data": []}
        call_command("sync_stripe_payouts", "--limit", "3", stdout=mock.MagicMock())
        payout_list.assert_called_once_with(limit=3, status="paid")
        balance_list.assert_not_called()
