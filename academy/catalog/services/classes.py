"""
Class Lifecycle Service
=======================

Create, update and delete scheduled classes together with their side
effects: class id allocation, defaults from the course, audit logging and
the Webflow CMS item.

Webflow and audit logging are best effort. A class is saved even when
Webflow is down; the sync can be repeated from the back office.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging
import uuid
from typing import Any, Dict

from django.db import IntegrityError, transaction

from core.audit_logs.models import Log
from core.audit_logs.services import insert_log, log_field_changes
from core.exceptions import ConflictException
from core.results import OperationResult
from core.webflow_sync.services import delete_class_item, sync_class
from ..models import Class
from .class_ids import allocate_class_id

logger = logging.getLogger(__name__)

# Copied from the course when a new class leaves them empty
COURSE_DEFAULT_FIELDS = (
    "length_of_class",
    "certification_length",
    "graduation_rate",
    "registration_limit",
    "price",
    "registration_fee",
    "stripe_product_id",
)

AUDITED_FIELDS = (
    "class_name",
    "enrollment_start",
    "enrollment_close",
    "class_start_date",
    "class_close_date",
    "location",
    "is_online",
    "product_id",
    "length_of_class",
    "certification_length",
    "graduation_rate",
    "registration_limit",
    "stripe_product_id",
    "price",
    "registration_fee",
    "invoice_1_due_date",
    "invoice_2_due_date",
)


def _course_reference_type(course) -> str:
    return Log.ReferenceType.PROGRAM if course.is_program else Log.ReferenceType.COURSE


def create_class(data: Dict[str, Any], admin_user=None, sync_webflow: bool = True) -> OperationResult:
    """
    Create a class for ``data["course"]``.

    Returns:
        OperationResult with ``klass`` and ``webflow`` (the sync result as dict)
    """
    data = dict(data)
    course = data.pop("course")
    data.pop("course_code", None)
    data.pop("class_id", None)
    for field in COURSE_DEFAULT_FIELDS:
        if data.get(field) in (None, ""):
            data[field] = getattr(course, field)

    try:
        with transaction.atomic():
            class_id = allocate_class_id(course.course_code)
            klass = Class.objects.create(
                course=course, course_code=course.course_code, class_id=class_id, **data
            )
    except IntegrityError as e:
        logger.warning(f"Class id collision for course {course.course_code}: {e}")
        return OperationResult.from_exception(
            ConflictException("Another class was created at the same time, please try again")
        )

    logger.info(f"Created class {klass.class_id} for course {course.course_code}")

    batch_id = uuid.uuid4()
    insert_log(
        reference_id=klass.pk,
        reference_type=Log.ReferenceType.CLASS,
        action_type=Log.ActionType.CLASS_CREATED,
        admin_user=admin_user,
        new_value=klass.class_id,
        batch_id=batch_id,
        class_id=klass.pk,
    )
    insert_log(
        reference_id=course.pk,
        reference_type=_course_reference_type(course),
        action_type=Log.ActionType.CLASS_CREATED,
        admin_user=admin_user,
        new_value=klass.class_id,
        batch_id=batch_id,
        class_id=klass.pk,
    )

    webflow = sync_class(klass) if sync_webflow else None
    if webflow is not None and not webflow.success:
        logger.warning(f"Webflow sync after creating {klass.class_id} failed: {webflow.error}")

    return OperationResult.ok(klass=klass, webflow=webflow.to_dict() if webflow else None)


def update_class(klass: Class, data: Dict[str, Any], admin_user=None, sync_webflow: bool = True) -> OperationResult:
    """
    Apply ``data`` to ``klass``. The course linkage and the generated
    identifiers never change.
    """
    for field in ("course", "course_code", "class_id"):
        data.pop(field, None)

    old_values = {field: getattr(klass, field) for field in AUDITED_FIELDS}
    for field, value in data.items():
        setattr(klass, field, value)
    klass.save()

    changed = log_field_changes(
        reference_id=klass.pk,
        reference_type=Log.ReferenceType.CLASS,
        old_values=old_values,
        new_values={field: getattr(klass, field) for field in AUDITED_FIELDS},
        fields=AUDITED_FIELDS,
        admin_user=admin_user,
        class_id=klass.pk,
    )

    webflow = sync_class(klass) if sync_webflow and changed else None
    if webflow is not None and not webflow.success:
        logger.warning(f"Webflow sync after updating {klass.class_id} failed: {webflow.error}")

    return OperationResult.ok(klass=klass, changed=changed, webflow=webflow.to_dict() if webflow else None)


def delete_class(klass: Class, admin_user=None) -> OperationResult:
    """
    Delete a class without enrollments and remove its Webflow item.
    """
    if klass.enrollments.exists():
        return OperationResult.from_exception(
            ConflictException("Classes with enrolled students cannot be deleted")
        )

    webflow = delete_class_item(klass)
    if not webflow.success:
        logger.warning(f"Could not delete Webflow item of {klass.class_id}: {webflow.error}")

    pk, class_id, course = klass.pk, klass.class_id, klass.course
    klass.delete()

    batch_id = uuid.uuid4()
    for reference_id, reference_type in (
        (pk, Log.ReferenceType.CLASS),
        (course.pk, _course_reference_type(course)),
    ):
        insert_log(
            reference_id=reference_id,
            reference_type=reference_type,
            action_type=Log.ActionType.CLASS_DELETED,
            admin_user=admin_user,
            old_value=class_id,
            batch_id=batch_id,
            class_id=pk,
        )

    logger.info(f"Deleted class {class_id}")
    return OperationResult.ok(class_id=class_id, webflow=webflow.to_dict())
