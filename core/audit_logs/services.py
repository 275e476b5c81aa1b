"""
Audit Log Service

Best-effort helpers for writing and presenting audit log entries.

Functions:
- insert_log: Write one entry, never raises
- log_field_changes: One ``detail_updated`` entry per changed field
- format_timestamp: Human readable relative time for list views

Author: DSP Development Team
Version: 1.0.0
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from core.results import OperationResult
from .models import Log

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def insert_log(
    *,
    reference_id: Any,
    reference_type: str,
    action_type: str,
    admin_user=None,
    field_name: Optional[str] = None,
    old_value: Any = None,
    new_value: Any = None,
    batch_id: Optional[uuid.UUID] = None,
    student_id: Optional[int] = None,
    class_id: Optional[int] = None,
    amount: Optional[int] = None,
) -> OperationResult:
    """
    Insert an audit log entry.

    Failures are logged and reported in the result, they never propagate to
    the caller.
    """
    if admin_user is not None and not getattr(admin_user, "is_authenticated", False):
        admin_user = None

    try:
        with transaction.atomic():
            entry = Log.objects.create(
                admin_user=admin_user,
                reference_id=str(reference_id),
                reference_type=reference_type,
                action_type=action_type,
                field_name=field_name or None,
                old_value=_stringify(old_value),
                new_value=_stringify(new_value),
                batch_id=batch_id,
                student_id=student_id,
                class_id=class_id,
                amount=amount,
            )
    except (DatabaseError, ValueError, TypeError) as exc:
        logger.warning(
            "Failed to insert audit log (%s %s:%s): %s",
            action_type,
            reference_type,
            reference_id,
            exc,
        )
        return OperationResult.fail(str(exc))

    return OperationResult.ok(log_id=entry.id)


def log_field_changes(
    *,
    reference_id: Any,
    reference_type: str,
    old_values: Dict[str, Any],
    new_values: Dict[str, Any],
    fields: Iterable[str],
    admin_user=None,
    class_id: Optional[int] = None,
    student_id: Optional[int] = None,
) -> int:
    """
    Write one ``detail_updated`` entry for every field whose value changed.
    All entries of one save share a ``batch_id``.

    Returns:
        Number of entries written
    """
    batch_id = uuid.uuid4()
    written = 0
    for field_name in fields:
        old = old_values.get(field_name)
        new = new_values.get(field_name)
        if _stringify(old) == _stringify(new):
            continue
        result = insert_log(
            reference_id=reference_id,
            reference_type=reference_type,
            action_type=Log.ActionType.DETAIL_UPDATED,
            admin_user=admin_user,
            field_name=field_name,
            old_value=old,
            new_value=new,
            batch_id=batch_id,
            class_id=class_id,
            student_id=student_id,
        )
        if result.success:
            written += 1
    return written


MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit if count == 1 else unit + 's'} ago"


def format_timestamp(value: datetime, now: Optional[datetime] = None) -> str:
    """
    Format a timestamp relative to ``now``:
    ``just now`` (< 5s), ``N seconds ago``, ``N minutes ago``,
    ``N hours ago``, ``N days ago`` (< 7 days), else ``Mon D, YYYY``.
    """
    now = now or timezone.now()
    seconds = int((now - value).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 5:
        return "just now"
    if seconds < 60:
        return f"{seconds} seconds ago"
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 7:
        return _plural(days, "day")

    local = timezone.localtime(value) if timezone.is_aware(value) else value
    return f"{MONTH_ABBREVIATIONS[local.month - 1]} {local.day}, {local.year}"


def get_admin_display_name(user) -> Optional[str]:
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return user.get_full_name() or user.get_username()
