"""
Payout Reconciliation Service
=============================

Groups paid-out transactions by their Stripe payout so an operator can
check each payout against the bank statement and mark the transactions
as reconciled one by one.

Features:
- Pure grouping of transactions into payout groups (total, date, rows)
- Idempotent reconcile / unreconcile operations
- Payout sync: stamps ``payout_id`` and ``payout_date`` on transactions by
  matching the payout's balance transactions on the payment intent id

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Iterable, List, Optional

import stripe
from django.db import transaction
from django.utils import timezone

from core.exceptions import NotFoundException
from core.results import OperationResult
from core.stripe_integration.client import configure_stripe
from ..models import Transaction

logger = logging.getLogger(__name__)


@dataclass
class PayoutGroup:
    payout_id: str
    payout_date: Optional[datetime] = None
    payout_total: int = 0
    transactions: List[Any] = field(default_factory=list)

    def to_dict(self, serialize=None) -> Dict[str, Any]:
        rows = self.transactions
        if serialize is not None:
            rows = serialize(rows)
        return {
            "payout_id": self.payout_id,
            "payout_date": self.payout_date,
            "payout_total": self.payout_total,
            "transactions": rows,
        }


def _min_datetime() -> datetime:
    return datetime.min.replace(tzinfo=dt_timezone.utc)


def group_transactions_by_payout(transactions: Iterable[Any]) -> List[PayoutGroup]:
    """
    Group transactions by ``payout_id``.

    ``payout_total`` is the sum of the group's payment amounts and
    ``payout_date`` the first non-empty payout date found. Groups are
    ordered newest payout first (groups without a date last), rows inside
    a group newest first.
    """
    groups: Dict[str, PayoutGroup] = {}
    for row in transactions:
        payout_id = getattr(row, "payout_id", None)
        if not payout_id:
            continue
        group = groups.get(payout_id)
        if group is None:
            group = groups[payout_id] = PayoutGroup(payout_id=payout_id)
        group.transactions.append(row)
        group.payout_total += getattr(row, "payment_amount", 0) or 0
        if group.payout_date is None and getattr(row, "payout_date", None):
            group.payout_date = row.payout_date

    for group in groups.values():
        group.transactions.sort(
            key=lambda row: getattr(row, "created_at", None) or _min_datetime(),
            reverse=True,
        )

    dated = [group for group in groups.values() if group.payout_date is not None]
    undated = [group for group in groups.values() if group.payout_date is None]
    dated.sort(key=lambda group: group.payout_date, reverse=True)
    return dated + undated


def unreconciled_payout_groups(include_reconciled: bool = False) -> List[PayoutGroup]:
    queryset = Transaction.objects.exclude(payout_id__isnull=True).exclude(payout_id="")
    if not include_reconciled:
        queryset = queryset.filter(reconciled=False)
    queryset = queryset.select_related("student", "klass", "enrollment")
    return group_transactions_by_payout(queryset)


def reconcile_transaction(transaction_id: int) -> OperationResult:
    """
    Mark a transaction as reconciled.

    Reconciling twice is a no-op; the first reconciliation date is kept.
    """
    with transaction.atomic():
        row = (
            Transaction.objects.select_for_update().filter(pk=transaction_id).first()
        )
        if row is None:
            return OperationResult.from_exception(
                NotFoundException("Transaction not found", resource="transaction")
            )
        if not row.reconciled:
            row.reconciled = True
            row.reconciliation_date = timezone.now()
            row.save(update_fields=["reconciled", "reconciliation_date", "updated_at"])
            logger.info("Reconciled transaction %s", row.pk)

    return OperationResult.ok(
        transaction_id=row.pk,
        reconciled=True,
        reconciliation_date=row.reconciliation_date,
    )


def unreconcile_transaction(transaction_id: int) -> OperationResult:
    """Clear the reconciliation flag and date of a transaction."""
    updated = Transaction.objects.filter(pk=transaction_id).update(
        reconciled=False, reconciliation_date=None, updated_at=timezone.now()
    )
    if not updated:
        return OperationResult.from_exception(
            NotFoundException("Transaction not found", resource="transaction")
        )
    logger.info("Unreconciled transaction %s", transaction_id)
    return OperationResult.ok(transaction_id=transaction_id, reconciled=False)


def _payout_datetime(payout) -> Optional[datetime]:
    timestamp = payout.get("arrival_date") or payout.get("created")
    if not timestamp:
        return None
    return datetime.fromtimestamp(timestamp, tz=dt_timezone.utc)


def _payment_intent_of(balance_transaction) -> Optional[str]:
    source = balance_transaction.get("source")
    if isinstance(source, dict):
        payment_intent = source.get("payment_intent")
        if isinstance(payment_intent, dict):
            return payment_intent.get("id")
        return payment_intent
    return None


def sync_payouts(limit: int = 20) -> OperationResult:
    """
    Pull the latest Stripe payouts and stamp them on matching transactions.

    Each payout's charge balance transactions are matched on the
    transaction's payment intent id. Already stamped rows are left alone.

    Returns:
        OperationResult with ``payouts`` (count checked) and ``updated``
        (transactions stamped)
    """
    configure_stripe()
    try:
        payouts = stripe.Payout.list(limit=limit, status="paid")
    except stripe.error.StripeError as exc:
        logger.error("Listing Stripe payouts failed: %s", exc)
        return OperationResult.fail(
            getattr(exc, "user_message", None) or str(exc), status_code=502
        )

    checked = 0
    updated = 0
    for payout in payouts.get("data", []):
        checked += 1
        payout_id = payout.get("id")
        payout_date = _payout_datetime(payout)
        try:
            balance_transactions = stripe.BalanceTransaction.list(
                payout=payout_id, type="charge", limit=100, expand=["data.source"]
            )
        except stripe.error.StripeError as exc:
            logger.error("Listing balance transactions of %s failed: %s", payout_id, exc)
            continue

        intent_ids = {
            intent_id
            for intent_id in (
                _payment_intent_of(item) for item in balance_transactions.get("data", [])
            )
            if intent_id
        }
        if not intent_ids:
            continue

        stamped = Transaction.objects.filter(
            stripe_payment_intent_id__in=intent_ids, payout_id__isnull=True
        ).update(payout_id=payout_id, payout_date=payout_date, updated_at=timezone.now())
        updated += stamped
        logger.info("Payout %s: %s transaction(s) stamped", payout_id, stamped)

    return OperationResult.ok(payouts=checked, updated=updated)
