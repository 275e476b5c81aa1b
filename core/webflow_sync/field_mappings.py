"""
Class → Webflow CMS field mapping.

Every field is always sent so that clearing a value in the back office also
clears it on the site; empty values become ``""``.
"""

import re
from typing import Any, Dict, Optional


def _text(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _money(cents: Optional[int]) -> str:
    if cents is None:
        return ""
    return f"{cents / 100:.2f}"


def slugify_class_id(value: str) -> str:
    """
    >>> slugify_class_id("EMR-001")
    'emr-001'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
    return slug or "untitled-class"


def map_class_to_webflow_fields(klass, is_program: bool = False) -> Dict[str, Any]:
    # The code field is named differently in the programs collection
    code_field = "program-code" if is_program else "course-code"
    return {
        "name": klass.class_name or klass.class_id or "Untitled Class",
        "slug": slugify_class_id(klass.class_id or klass.class_name),
        code_field: _text(klass.course_code),
        "class-id": _text(klass.class_id),
        "enrollment-start": _text(klass.enrollment_start),
        "enrollment-close": _text(klass.enrollment_close),
        "class-start-date": _text(klass.class_start_date),
        "class-close-date": _text(klass.class_close_date),
        "location": _text(klass.location),
        "is-online": bool(klass.is_online),
        "product-id": _text(klass.product_id),
        "length-of-class": _text(klass.length_of_class),
        "certification-length": _text(klass.certification_length),
        "graduation-rate": _text(klass.graduation_rate),
        "registration-limit": _text(klass.registration_limit),
        "price": _money(klass.price),
        "registration-fee": _money(klass.registration_fee),
    }
