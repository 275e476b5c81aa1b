"""
Enrollment Emails
=================

Confirmation emails sent after a successful checkout, plus the EmailLog
bookkeeping used by the admin endpoints.

Features:
- Course enrollment confirmation (amount paid, invoice number, date)
- Program enrollment confirmation with the outstanding tuition invoices
- Preview mode: render only, nothing is sent or logged
- Delivery metrics and manual retry of failed emails

All interpolated values go through Django's template auto-escaping.

Author: DSP Development Team
Date: 2025-09-03
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.template.loader import render_to_string
from django.utils import timezone

from core.exceptions import NotFoundException, ValidationException
from core.results import OperationResult
from .models import EmailLog
from .sending import EmailSendResult, send_email, validate_email

logger = logging.getLogger(__name__)

COURSE_ENROLLMENT = "course_enrollment"
PROGRAM_ENROLLMENT = "program_enrollment"

SITE_NAME = "MidwestEA"

TRANSACTION_DESCRIPTIONS = {
    "tuition_a": "Tuition A (Due 3 weeks before start)",
    "tuition_b": "Tuition B (Due 1 week after start)",
}


def format_currency(cents: Optional[int]) -> str:
    """
    >>> format_currency(100000)
    '$1,000.00'
    """
    return f"${(cents or 0) / 100:,.2f}"


def format_long_date(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def enrollment_subject(name: str) -> str:
    return f"Welcome to {name} - Enrollment Confirmed"


def _student_name(student) -> str:
    name = " ".join(
        part for part in [getattr(student, "first_name", None), getattr(student, "last_name", None)] if part
    ).strip()
    return name or getattr(student, "full_name", None) or "Student"


def _base_context(student_name: str, subject: str) -> Dict[str, Any]:
    return {
        "student_name": student_name,
        "subject": subject,
        "site_name": SITE_NAME,
        "current_year": timezone.now().year,
    }


def render_course_enrollment_email(
    *,
    student_name: str,
    course_name: str,
    course_code: str,
    amount: int,
    invoice_number: Optional[int],
    payment_date,
) -> Dict[str, str]:
    subject = enrollment_subject(course_name)
    context = _base_context(student_name, subject)
    context.update(
        {
            "course_name": course_name,
            "course_code": course_code,
            "amount": format_currency(amount),
            "invoice_number": invoice_number or "",
            "payment_date": format_long_date(payment_date),
        }
    )
    return {"subject": subject, "html": render_to_string("email_service/course_enrollment.html", context)}


def render_program_enrollment_email(
    *,
    student_name: str,
    program_name: str,
    course_code: str,
    start_date,
    paid_amount: int,
    invoice_number: Optional[int],
    payment_date,
    outstanding_invoices: Iterable[Dict[str, Any]] = (),
) -> Dict[str, str]:
    """
    Each outstanding invoice is a dict with ``invoice_number``,
    ``transaction_type``, ``amount_due`` (cents) and ``due_date``.
    """
    outstanding_invoices = list(outstanding_invoices)
    subject = enrollment_subject(program_name)
    rows = [
        {
            "invoice_number": invoice.get("invoice_number") or "",
            "description": TRANSACTION_DESCRIPTIONS.get(
                invoice.get("transaction_type"), invoice.get("transaction_type") or ""
            ),
            "amount": format_currency(invoice.get("amount_due")),
            "due_date": format_long_date(invoice.get("due_date")),
        }
        for invoice in outstanding_invoices
    ]
    total = sum(invoice.get("amount_due") or 0 for invoice in outstanding_invoices)

    context = _base_context(student_name, subject)
    context.update(
        {
            "program_name": program_name,
            "course_code": course_code,
            "start_date": format_long_date(start_date),
            "paid_amount": format_currency(paid_amount),
            "invoice_number": invoice_number or "",
            "payment_date": format_long_date(payment_date),
            "outstanding_invoices": rows,
            "total_outstanding": format_currency(total),
        }
    )
    return {"subject": subject, "html": render_to_string("email_service/program_enrollment.html", context)}


def log_email_to_database(
    *,
    recipient_email: str,
    subject: str,
    email_type: str,
    result: EmailSendResult,
    recipient_name: Optional[str] = None,
    enrollment_id: Optional[int] = None,
    student_id: Optional[int] = None,
    html_body: str = "",
) -> Optional[EmailLog]:
    """Store the outcome of a send. Logging problems never fail the send."""
    try:
        with transaction.atomic():
            return EmailLog.objects.create(
                recipient_email=recipient_email,
                recipient_name=recipient_name,
                subject=subject,
                email_type=email_type,
                enrollment_id=enrollment_id,
                student_id=student_id,
                success=result.success,
                email_id=result.id,
                error=result.error,
                retries=result.retries,
                html_body=html_body,
            )
    except DatabaseError as exc:
        logger.error("Failed to write email log for %s: %s", recipient_email, exc)
        return None


def _send_and_log(
    *,
    student,
    enrollment,
    klass,
    email_type: str,
    rendered: Dict[str, str],
    student_name: str,
    invoice_number: Optional[int],
) -> EmailSendResult:
    result = send_email(
        to=student.email,
        subject=rendered["subject"],
        html=rendered["html"],
        reply_to=getattr(settings, "EMAIL_REPLY_TO", None) or None,
        tags=[email_type],
        metadata={
            "email_type": email_type,
            "enrollment_id": getattr(enrollment, "id", ""),
            "student_id": getattr(student, "id", ""),
            "class_id": getattr(klass, "class_id", ""),
            "invoice_number": invoice_number or "",
        },
    )
    log_email_to_database(
        recipient_email=student.email,
        recipient_name=student_name,
        subject=rendered["subject"],
        email_type=email_type,
        result=result,
        enrollment_id=getattr(enrollment, "id", None),
        student_id=getattr(student, "id", None),
        html_body=rendered["html"],
    )
    return result


def send_course_enrollment_email(
    student,
    enrollment,
    klass,
    *,
    amount_paid: int,
    invoice_number: Optional[int],
    payment_date=None,
    preview: bool = False,
) -> EmailSendResult:
    """
    Confirmation email for a course enrollment.

    With ``preview=True`` only the rendered HTML is returned.
    """
    try:
        validate_email(getattr(student, "email", None), "student")
    except ValidationException as exc:
        return EmailSendResult(success=False, error=f"Invalid student email: {exc.message}")

    student_name = _student_name(student)
    rendered = render_course_enrollment_email(
        student_name=student_name,
        course_name=klass.class_name or "Course",
        course_code=klass.course_code or "",
        amount=amount_paid,
        invoice_number=invoice_number,
        payment_date=payment_date or timezone.localdate(),
    )
    if preview:
        return EmailSendResult(success=True, preview_html=rendered["html"])

    return _send_and_log(
        student=student,
        enrollment=enrollment,
        klass=klass,
        email_type=COURSE_ENROLLMENT,
        rendered=rendered,
        student_name=student_name,
        invoice_number=invoice_number,
    )


def send_program_enrollment_email(
    student,
    enrollment,
    klass,
    *,
    amount_paid: int,
    invoice_number: Optional[int],
    payment_date=None,
    outstanding_invoices: Optional[List[Dict[str, Any]]] = None,
    preview: bool = False,
) -> EmailSendResult:
    """Confirmation email for a program enrollment, listing open tuition invoices."""
    try:
        validate_email(getattr(student, "email", None), "student")
    except ValidationException as exc:
        return EmailSendResult(success=False, error=f"Invalid student email: {exc.message}")

    if amount_paid is None or amount_paid < 0:
        return EmailSendResult(success=False, error="Invalid amount_paid: must be a non-negative number")

    student_name = _student_name(student)
    rendered = render_program_enrollment_email(
        student_name=student_name,
        program_name=klass.class_name or "Program",
        course_code=klass.course_code or "",
        start_date=klass.class_start_date or timezone.localdate(),
        paid_amount=amount_paid,
        invoice_number=invoice_number,
        payment_date=payment_date or timezone.localdate(),
        outstanding_invoices=outstanding_invoices or [],
    )
    if preview:
        return EmailSendResult(success=True, preview_html=rendered["html"])

    return _send_and_log(
        student=student,
        enrollment=enrollment,
        klass=klass,
        email_type=PROGRAM_ENROLLMENT,
        rendered=rendered,
        student_name=student_name,
        invoice_number=invoice_number,
    )


def get_email_delivery_metrics(start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
    """Success/failure counts for a time window (default: the last 24 hours)."""
    end = end or timezone.now()
    start = start or end - timedelta(hours=24)
    logs = list(
        EmailLog.objects.filter(created_at__gte=start, created_at__lte=end).order_by("-created_at", "-id")
    )

    total_sent = sum(1 for log in logs if log.success)
    total_failed = len(logs) - total_sent
    total = len(logs)

    by_type: Dict[str, Dict[str, int]] = {}
    for log in logs:
        counts = by_type.setdefault(log.email_type or "unknown", {"sent": 0, "failed": 0})
        counts["sent" if log.success else "failed"] += 1

    recent_failures = [
        {
            "id": log.id,
            "recipient_email": log.recipient_email,
            "email_type": log.email_type or "unknown",
            "error": log.error or "Unknown error",
            "created_at": log.created_at,
        }
        for log in logs
        if not log.success
    ][:10]

    return {
        "start": start,
        "end": end,
        "total_sent": total_sent,
        "total_failed": total_failed,
        "success_rate": round(total_sent / total * 100, 2) if total else 0,
        "failure_rate": round(total_failed / total * 100, 2) if total else 0,
        "emails_by_type": by_type,
        "recent_failures": recent_failures,
    }


def retry_failed_email(log_id: int) -> OperationResult:
    """Send a failed email again using its stored HTML."""
    log = EmailLog.objects.filter(pk=log_id).first()
    if log is None:
        return OperationResult.from_exception(NotFoundException("Email log not found", resource="email_log"))
    if log.success:
        return OperationResult.fail("Email was already sent successfully", status_code=409)
    if not log.html_body:
        return OperationResult.fail("The original email body was not stored", status_code=400)

    result = send_email(
        to=log.recipient_email,
        subject=log.subject,
        html=log.html_body,
        tags=[log.email_type, "retry"],
        metadata={"original_log_id": log.id},
    )
    log.retries += 1 + result.retries
    if result.success:
        log.success = True
        log.email_id = result.id
        log.error = None
    else:
        log.error = result.error
    log.save(update_fields=["retries", "success", "email_id", "error"])

    if not result.success:
        return OperationResult.fail(f"Failed to retry email: {result.error}", status_code=502)
    return OperationResult.ok(message="Email retry sent successfully", email_id=result.id)
