"""
Enrollment Payment Status

The payment status of an enrollment is never stored. It is derived from
the enrollment's transactions by ``derive_payment_status``, a pure function
over plain ``TransactionRecord`` values, so it can be used (and tested)
without the database.

Author: DSP Development Team
Version: 1.0.0
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from django.utils import timezone

from ..models import Transaction

NO_PAYMENTS = "No payments yet"
REGISTRATION_FEE_PAST_DUE = "Registration fee past due"
TUITION_A_PAST_DUE = "Tuition A past due"
TUITION_B_PAST_DUE = "Tuition B past due"
ALL_PAID = "All paid"
FIRST_PAYMENT_PAID = "First payment paid"
REGISTRATION_FEE_PAID = "Registration fee paid"
PENDING = "Pending"

REGISTRATION_FEE = "registration_fee"
TUITION_A = "tuition_a"
TUITION_B = "tuition_b"
PAID = "paid"


@dataclass(frozen=True)
class TransactionRecord:
    type: str
    status: str
    due_date: Optional[date] = None

    @property
    def is_paid(self) -> bool:
        return self.status == PAID

    def is_past_due(self, today: date) -> bool:
        return not self.is_paid and self.due_date is not None and self.due_date < today


def derive_payment_status(
    records: Iterable[TransactionRecord], today: Optional[date] = None
) -> str:
    """
    Derive the payment status label of one enrollment.

    First match wins: past-due registration fee, past-due tuition A,
    past-due tuition B, everything paid, registration fee and tuition A
    paid, registration fee paid, otherwise ``Pending``.
    """
    records = list(records)
    if not records:
        return NO_PAYMENTS

    today = today or timezone.localdate()
    by_type: Dict[str, TransactionRecord] = {}
    for record in records:
        by_type.setdefault(record.type, record)

    registration = by_type.get(REGISTRATION_FEE)
    tuition_a = by_type.get(TUITION_A)
    tuition_b = by_type.get(TUITION_B)

    if registration and registration.is_past_due(today):
        return REGISTRATION_FEE_PAST_DUE
    if tuition_a and tuition_a.is_past_due(today):
        return TUITION_A_PAST_DUE
    if tuition_b and tuition_b.is_past_due(today):
        return TUITION_B_PAST_DUE

    relevant = [record for record in (registration, tuition_a, tuition_b) if record]
    if relevant and all(record.is_paid for record in relevant):
        return ALL_PAID

    registration_paid = bool(registration and registration.is_paid)
    tuition_a_paid = bool(tuition_a and tuition_a.is_paid)
    tuition_b_paid = bool(tuition_b and tuition_b.is_paid)

    if registration_paid and tuition_a_paid and not tuition_b_paid:
        return FIRST_PAYMENT_PAID
    if registration_paid and not tuition_a_paid:
        return REGISTRATION_FEE_PAID
    return PENDING


def batch_fetch_transaction_records(
    enrollment_ids: Iterable[int],
) -> Dict[int, List[TransactionRecord]]:
    """Transaction records of many enrollments in a single query."""
    ids = list(enrollment_ids)
    records: Dict[int, List[TransactionRecord]] = defaultdict(list)
    if not ids:
        return {}

    rows = (
        Transaction.objects.filter(enrollment_id__in=ids)
        .order_by("created_at", "id")
        .values_list("enrollment_id", "transaction_type", "transaction_status", "due_date")
    )
    for enrollment_id, transaction_type, status, due_date in rows:
        records[enrollment_id].append(TransactionRecord(transaction_type, status, due_date))
    return dict(records)


def payment_statuses_for(
    enrollment_ids: Iterable[int], today: Optional[date] = None
) -> Dict[int, str]:
    """Payment status label for each enrollment id."""
    ids = list(enrollment_ids)
    records = batch_fetch_transaction_records(ids)
    return {
        enrollment_id: derive_payment_status(records.get(enrollment_id, []), today)
        for enrollment_id in ids
    }
