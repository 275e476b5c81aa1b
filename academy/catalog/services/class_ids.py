"""
Class ID Allocation

Class identifiers have the form ``{course_code}-{NNN}`` (e.g. ``EMR-003``).
Older classes were stored without the dash and with four digits
(``EMR0003``); both formats count when looking for the current maximum.

Functions:
- parse_class_id_suffix: Numeric suffix of one identifier
- next_class_id: Next identifier for a set of existing ones (pure)
- allocate_class_id: Next identifier for a course, computed under a row lock

Author: DSP Development Team
Version: 1.0.0
"""

import logging
import re
from typing import Iterable, Optional

from django.db import transaction

from ..models import Class, Course

logger = logging.getLogger(__name__)

SUFFIX_WIDTH = 3

_DIGITS = re.compile(r"^\d+$")


def parse_class_id_suffix(class_id: Optional[str], course_code: str) -> Optional[int]:
    """
    Return the numeric suffix of ``class_id`` for ``course_code``.

    >>> parse_class_id_suffix("EMR-003", "EMR")
    3
    >>> parse_class_id_suffix("EMR0007", "EMR")
    7
    >>> parse_class_id_suffix("CABS-001", "EMR") is None
    True
    """
    if not class_id or not isinstance(class_id, str):
        return None
    if not class_id.startswith(course_code):
        return None

    rest = class_id[len(course_code):]
    if rest.startswith("-"):
        rest = rest[1:]
    if not _DIGITS.match(rest):
        return None
    return int(rest)


def next_class_id(course_code: str, existing_ids: Iterable[Optional[str]]) -> str:
    """Next sequential class id after the highest existing suffix, starting at 001."""
    suffixes = [
        suffix
        for suffix in (parse_class_id_suffix(value, course_code) for value in existing_ids)
        if suffix is not None
    ]
    next_number = max(suffixes, default=0) + 1
    return f"{course_code}-{next_number:0{SUFFIX_WIDTH}d}"


def allocate_class_id(course_code: str) -> str:
    """
    Compute the next class id for ``course_code``.

    The owning course row is locked for the rest of the surrounding
    transaction, so concurrent creations for one course are serialized.
    Call this inside the ``transaction.atomic()`` block that also inserts
    the class; ``Class.class_id`` is unique as a last line of defence.
    """
    with transaction.atomic():
        list(Course.objects.select_for_update().filter(course_code=course_code))
        existing = Class.objects.filter(course_code=course_code).values_list(
            "class_id", flat=True
        )
        class_id = next_class_id(course_code, existing)

    logger.debug("Allocated class id %s", class_id)
    return class_id
