"""
Tuition Installment Service
===========================

Splits a class's tuition into two installment invoices and stages them
for the accounting import.

Features:
- Integer split: first half ``price // 2``, second half the remainder, so
  both invoices always add up to the class price
- Due dates from per-class overrides, else relative to the class start
  (21 days before, 7 days after), else relative to the payment date
  (30 and 60 days after)
- Idempotent staging keyed on the Stripe payment intent id

Usage:
    >>> split_price(100001)
    (50000, 50001)

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from django.db import transaction

from core.results import OperationResult
from ..models import InvoiceToImport
from .invoice_numbers import allocate_invoice_numbers

logger = logging.getLogger(__name__)

FIRST_INSTALLMENT_DAYS_BEFORE_START = 21
SECOND_INSTALLMENT_DAYS_AFTER_START = 7
FIRST_INSTALLMENT_DAYS_AFTER_PAYMENT = 30
SECOND_INSTALLMENT_DAYS_AFTER_PAYMENT = 60

INSTALLMENT_RATE = Decimal("0.5")


@dataclass
class InstallmentInvoice:
    """One of the two tuition invoices, before it is persisted."""

    invoice_sequence: int
    invoice_number: int
    customer_email: str
    invoice_date: date
    due_date: date
    item: str
    memo: str
    item_amount: int
    item_quantity: int = 1
    item_rate: Decimal = INSTALLMENT_RATE
    category: str = ""
    subcategory: str = ""


def split_price(price: Optional[int]) -> Tuple[int, int]:
    """Split ``price`` (cents) into two halves that always sum to ``price``."""
    if not price:
        return 0, 0
    half = price // 2
    return half, price - half


def compute_due_dates(klass, payment_date: date) -> Tuple[date, date]:
    """
    Due dates of the two installments for ``klass``.

    Each override (``invoice_1_due_date`` / ``invoice_2_due_date``) wins on
    its own; missing ones are computed from ``class_start_date`` or, when
    the class has no start date, from ``payment_date``.
    """
    start = getattr(klass, "class_start_date", None)
    if start:
        computed_first = start - timedelta(days=FIRST_INSTALLMENT_DAYS_BEFORE_START)
        computed_second = start + timedelta(days=SECOND_INSTALLMENT_DAYS_AFTER_START)
    else:
        computed_first = payment_date + timedelta(days=FIRST_INSTALLMENT_DAYS_AFTER_PAYMENT)
        computed_second = payment_date + timedelta(days=SECOND_INSTALLMENT_DAYS_AFTER_PAYMENT)

    first = getattr(klass, "invoice_1_due_date", None) or computed_first
    second = getattr(klass, "invoice_2_due_date", None) or computed_second
    return first, second


def build_item(klass) -> str:
    return f"{klass.course_code}:{klass.class_id}:registration"


def build_memo(klass) -> str:
    parts = ["Registration", klass.class_name, klass.course_code, klass.class_id]
    return ", ".join(str(part) for part in parts if part)


def build_installment_invoices(
    klass,
    customer_email: str,
    payment_date: date,
    invoice_numbers: Sequence[int],
) -> List[InstallmentInvoice]:
    """
    Build the two installment invoices for a class (not persisted).

    Args:
        klass: Class providing price, dates and identifiers
        customer_email: Billing email of the student
        payment_date: Date of the registration fee payment
        invoice_numbers: Two pre-allocated invoice numbers
    """
    if len(invoice_numbers) != 2:
        raise ValueError("Two invoice numbers are required")

    if not klass.price:
        logger.warning(
            "Class %s has no price, creating zero-amount installment invoices",
            klass.class_id,
        )

    amounts = split_price(klass.price)
    due_dates = compute_due_dates(klass, payment_date)
    item = build_item(klass)
    memo = build_memo(klass)

    return [
        InstallmentInvoice(
            invoice_sequence=sequence,
            invoice_number=invoice_numbers[sequence - 1],
            customer_email=customer_email,
            invoice_date=payment_date,
            due_date=due_dates[sequence - 1],
            item=item,
            memo=memo,
            item_amount=amounts[sequence - 1],
            category=klass.course_code or "",
            subcategory=klass.class_id or "",
        )
        for sequence in (1, 2)
    ]


def create_registration_fee_invoices(
    *,
    klass,
    customer_email: str,
    payment_date: date,
    transaction_id: str,
    payment=None,
) -> OperationResult:
    """
    Persist the two ``InvoiceToImport`` rows for a registration fee payment.

    Calling this again for the same ``transaction_id`` returns the rows
    created the first time.

    Returns:
        OperationResult with ``invoices`` (list of InvoiceToImport) and
        ``created`` (bool)
    """
    if not transaction_id:
        return OperationResult.fail("transaction_id is required", status_code=400)

    with transaction.atomic():
        existing = list(
            InvoiceToImport.objects.select_for_update()
            .filter(transaction_id=transaction_id)
            .order_by("invoice_sequence")
        )
        if existing:
            logger.info(
                "Invoices for transaction %s already exist, skipping", transaction_id
            )
            return OperationResult.ok(invoices=existing, created=False)

        numbers = allocate_invoice_numbers(2)
        invoices = [
            InvoiceToImport.objects.create(
                invoice_number=planned.invoice_number,
                invoice_sequence=planned.invoice_sequence,
                customer_email=planned.customer_email,
                invoice_date=planned.invoice_date,
                due_date=planned.due_date,
                item=planned.item,
                memo=planned.memo,
                item_amount=planned.item_amount,
                item_quantity=planned.item_quantity,
                item_rate=planned.item_rate,
                payment=payment,
                klass=klass,
                category=planned.category,
                subcategory=planned.subcategory,
                transaction_id=transaction_id,
            )
            for planned in build_installment_invoices(
                klass, customer_email, payment_date, numbers
            )
        ]

    logger.info(
        "Created invoices %s for transaction %s",
        [invoice.invoice_number for invoice in invoices],
        transaction_id,
    )
    return OperationResult.ok(invoices=invoices, created=True)
