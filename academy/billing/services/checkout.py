"""
Checkout Completion Service
===========================

Turns a completed Stripe Checkout Session into ledger rows.

Steps of ``record_checkout``:
1. Validate the buyer email and find the purchased class
2. Find or create the student, create the enrollment
3. Record the payment (idempotent on the payment intent id)
4. Create the transactions: the paid registration fee and, for programs,
   the two pending tuition installments with their staged invoices
5. Audit log entries and the enrollment confirmation email

Steps 2-4 run in one database transaction. Audit logging and the email
are best effort and never undo a recorded payment.

Author: DSP Development Team
Date: 2025-09-03
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_timezone
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from core.audit_logs.models import Log
from core.audit_logs.services import insert_log
from core.email_service.enrollment_emails import (
    send_course_enrollment_email,
    send_program_enrollment_email,
)
from core.email_service.sending import validate_email
from core.exceptions import NotFoundException, ValidationException, map_database_error
from core.results import OperationResult
from ...catalog.models import Class
from ...enrollments.services import create_enrollment, find_or_create_student
from ..models import Payment, Transaction
from .installments import INSTALLMENT_RATE, create_registration_fee_invoices
from .invoice_numbers import allocate_invoice_number

logger = logging.getLogger(__name__)


@dataclass
class CheckoutDetails:
    """What we need from a Checkout Session to record an enrollment."""

    email: Optional[str]
    class_id: Optional[str]
    payment_intent_id: Optional[str]
    amount_cents: int = 0
    full_name: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    receipt_url: Optional[str] = None
    paid_at: Optional[datetime] = None


def _stripe_id(value) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def checkout_details_from_session(session: Dict[str, Any]) -> CheckoutDetails:
    """Read buyer, class and payment from a ``checkout.session.completed`` payload."""
    metadata = session.get("metadata") or {}
    customer_details = session.get("customer_details") or {}
    created = session.get("created")
    return CheckoutDetails(
        email=session.get("customer_email") or customer_details.get("email") or metadata.get("email"),
        class_id=metadata.get("class_id"),
        # Sessions without a payment intent fall back to the session id
        payment_intent_id=_stripe_id(session.get("payment_intent")) or session.get("id"),
        amount_cents=session.get("amount_total") or 0,
        full_name=metadata.get("full_name") or customer_details.get("name"),
        stripe_customer_id=_stripe_id(session.get("customer")),
        paid_at=datetime.fromtimestamp(created, tz=dt_timezone.utc) if created else None,
    )


def _create_transactions(enrollment, klass, details: CheckoutDetails, payment_date: date, invoices) -> List[Transaction]:
    common = dict(enrollment=enrollment, student=enrollment.student, klass=klass)
    rows = [
        Transaction.objects.create(
            transaction_type=Transaction.Type.REGISTRATION_FEE,
            transaction_status=Transaction.Status.PAID,
            amount_due=details.amount_cents,
            due_date=payment_date,
            stripe_payment_intent_id=details.payment_intent_id,
            invoice_number=allocate_invoice_number(),
            **common,
        )
    ]
    # Tuition transactions share the invoice numbers of their staged invoices
    for invoice, transaction_type in zip(invoices, (Transaction.Type.TUITION_A, Transaction.Type.TUITION_B)):
        rows.append(
            Transaction.objects.create(
                transaction_type=transaction_type,
                transaction_status=Transaction.Status.PENDING,
                amount_due=invoice.item_amount,
                quantity=INSTALLMENT_RATE,
                due_date=invoice.due_date,
                invoice_number=invoice.invoice_number,
                **common,
            )
        )
    return rows


def record_checkout(details: CheckoutDetails, send_email: bool = True) -> OperationResult:
    """
    Record a completed checkout.

    Processing the same payment intent twice returns the existing records
    with ``duplicate=True``.

    Returns:
        OperationResult with ``student_id``, ``enrollment_id``,
        ``payment_id``, ``transaction_ids`` and ``invoice_numbers``
    """
    try:
        email = validate_email(details.email, "customer")
        if not details.class_id:
            raise ValidationException("class_id is missing from the checkout metadata", field="class_id")
        if not details.payment_intent_id:
            raise ValidationException("payment intent id is missing", field="payment_intent")
    except ValidationException as e:
        logger.warning(f"Checkout not recorded: {e.message}")
        return OperationResult.from_exception(e)

    klass = Class.objects.select_related("course").filter(class_id=details.class_id).first()
    if klass is None:
        logger.error(f"Checkout for unknown class {details.class_id}")
        return OperationResult.from_exception(
            NotFoundException(map_database_error("class"), resource="class")
        )

    existing = Payment.objects.filter(stripe_payment_intent_id=details.payment_intent_id).first()
    if existing is not None:
        logger.info(f"Payment {details.payment_intent_id} already recorded, skipping")
        return OperationResult.ok(
            duplicate=True,
            payment_id=existing.pk,
            enrollment_id=existing.enrollment_id,
        )

    paid_at = details.paid_at or timezone.now()
    payment_date = timezone.localtime(paid_at).date()

    with transaction.atomic():
        student, student_created = find_or_create_student(
            email, full_name=details.full_name, stripe_customer_id=details.stripe_customer_id
        )
        enrollment, _ = create_enrollment(student, klass)
        payment = Payment.objects.create(
            enrollment=enrollment,
            amount_cents=details.amount_cents,
            stripe_payment_intent_id=details.payment_intent_id,
            stripe_receipt_url=details.receipt_url,
            paid_at=paid_at,
        )

        invoices = []
        if klass.course.is_program:
            result = create_registration_fee_invoices(
                klass=klass,
                customer_email=email,
                payment_date=payment_date,
                transaction_id=details.payment_intent_id,
                payment=payment,
            )
            invoices = result.data.get("invoices", [])

        transactions = _create_transactions(enrollment, klass, details, payment_date, invoices)

    logger.info(
        f"Recorded checkout {details.payment_intent_id}: student {student.pk}, "
        f"enrollment {enrollment.pk}, class {klass.class_id}"
    )

    _write_audit_logs(student, klass, details, student_created)

    email_sent = False
    if send_email:
        email_sent = _send_confirmation(student, enrollment, klass, transactions, payment_date)

    return OperationResult.ok(
        duplicate=False,
        student_id=student.pk,
        enrollment_id=enrollment.pk,
        payment_id=payment.pk,
        transaction_ids=[row.pk for row in transactions],
        invoice_numbers=[row.invoice_number for row in transactions],
        email_sent=email_sent,
    )


def _write_audit_logs(student, klass, details: CheckoutDetails, student_created: bool) -> None:
    reference_type = Log.ReferenceType.PROGRAM if klass.course.is_program else Log.ReferenceType.COURSE
    if student_created:
        insert_log(
            reference_id=student.pk,
            reference_type=Log.ReferenceType.STUDENT,
            action_type=Log.ActionType.STUDENT_ADDED,
            student_id=student.pk,
            class_id=klass.pk,
        )
    insert_log(
        reference_id=klass.pk,
        reference_type=Log.ReferenceType.CLASS,
        action_type=Log.ActionType.STUDENT_REGISTERED,
        new_value=student.display_name,
        student_id=student.pk,
        class_id=klass.pk,
    )
    insert_log(
        reference_id=klass.course_id,
        reference_type=reference_type,
        action_type=Log.ActionType.PAYMENT_SUCCESS,
        new_value=details.payment_intent_id,
        student_id=student.pk,
        class_id=klass.pk,
        amount=details.amount_cents,
    )


def _send_confirmation(student, enrollment, klass, transactions: List[Transaction], payment_date: date) -> bool:
    registration = transactions[0]
    if klass.course.is_program:
        outstanding = [
            {
                "invoice_number": row.invoice_number,
                "transaction_type": row.transaction_type,
                "amount_due": row.amount_due,
                "due_date": row.due_date,
            }
            for row in transactions
            if row.transaction_status == Transaction.Status.PENDING
        ]
        result = send_program_enrollment_email(
            student,
            enrollment,
            klass,
            amount_paid=registration.amount_due,
            invoice_number=registration.invoice_number,
            payment_date=payment_date,
            outstanding_invoices=outstanding,
        )
    else:
        result = send_course_enrollment_email(
            student,
            enrollment,
            klass,
            amount_paid=registration.amount_due,
            invoice_number=registration.invoice_number,
            payment_date=payment_date,
        )
    if not result.success:
        logger.error(f"Enrollment email for enrollment {enrollment.pk} failed: {result.error}")
    return result.success


def mark_transactions_paid(payment_intent_id: str, transaction_id: Optional[int] = None) -> OperationResult:
    """
    Mark pending transactions paid after a separate tuition payment.

    With ``transaction_id`` (from payment intent metadata) that transaction
    is stamped with the payment intent; otherwise transactions already
    carrying the payment intent id are updated.
    """
    with transaction.atomic():
        queryset = Transaction.objects.select_for_update()
        if transaction_id:
            queryset = queryset.filter(pk=transaction_id)
        else:
            queryset = queryset.filter(stripe_payment_intent_id=payment_intent_id)

        updated = []
        for row in queryset:
            if not row.can_transition_to(Transaction.Status.PAID):
                continue
            row.transaction_status = Transaction.Status.PAID
            row.stripe_payment_intent_id = payment_intent_id
            row.save(update_fields=["transaction_status", "stripe_payment_intent_id", "updated_at"])
            updated.append(row.pk)

    if updated:
        logger.info(f"Marked transactions {updated} paid ({payment_intent_id})")
    return OperationResult.ok(updated=updated)


def refund_payment(payment_intent_id: str) -> OperationResult:
    """
    Mark a payment and its transactions refunded.

    Transactions already refunded are left alone, so repeated refund
    events are harmless.
    """
    if not payment_intent_id:
        return OperationResult.fail("payment intent id is required", status_code=400)

    with transaction.atomic():
        payments = Payment.objects.filter(stripe_payment_intent_id=payment_intent_id)
        payment_count = payments.exclude(payment_status=Payment.Status.REFUNDED).update(
            payment_status=Payment.Status.REFUNDED
        )
        refunded = []
        for row in Transaction.objects.select_for_update().filter(stripe_payment_intent_id=payment_intent_id):
            if row.can_transition_to(Transaction.Status.REFUNDED):
                row.transaction_status = Transaction.Status.REFUNDED
                row.save(update_fields=["transaction_status", "updated_at"])
                refunded.append(row.pk)

    logger.info(f"Refund {payment_intent_id}: {payment_count} payment(s), transactions {refunded}")
    return OperationResult.ok(payments=payment_count, transactions=refunded)
