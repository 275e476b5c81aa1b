"""
Invoice Number Allocation

Invoice numbers come from the single-row ``InvoiceNumberSequence`` table.
The row is locked with ``select_for_update()`` for the duration of the
surrounding transaction, so concurrent checkouts never hand out the same
number. Numbers are consecutive and start at ``INVOICE_NUMBER_FLOOR``.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from typing import List

from django.conf import settings
from django.db import transaction
from django.db.models import Max

from ..models import InvoiceNumberSequence, InvoiceToImport, Transaction

logger = logging.getLogger(__name__)

SEQUENCE_ROW_ID = 1


def _highest_existing_number() -> int:
    highest = 0
    for model in (InvoiceToImport, Transaction):
        value = model.objects.aggregate(highest=Max("invoice_number"))["highest"]
        if value and value > highest:
            highest = value
    return highest


def allocate_invoice_numbers(count: int = 1) -> List[int]:
    """
    Reserve ``count`` consecutive invoice numbers.

    On first use the counter is seeded from the highest number already
    stored, so existing data keeps its numbering.
    """
    if count < 1:
        raise ValueError("count must be at least 1")

    floor = getattr(settings, "INVOICE_NUMBER_FLOOR", 100001)

    with transaction.atomic():
        sequence = (
            InvoiceNumberSequence.objects.select_for_update()
            .filter(pk=SEQUENCE_ROW_ID)
            .first()
        )
        if sequence is None:
            sequence, _ = InvoiceNumberSequence.objects.get_or_create(
                pk=SEQUENCE_ROW_ID,
                defaults={"last_number": _highest_existing_number()},
            )
            sequence = InvoiceNumberSequence.objects.select_for_update().get(pk=sequence.pk)

        first = max(sequence.last_number + 1, floor)
        numbers = list(range(first, first + count))
        sequence.last_number = numbers[-1]
        sequence.save(update_fields=["last_number"])

    logger.debug("Allocated invoice numbers %s", numbers)
    return numbers


def allocate_invoice_number() -> int:
    return allocate_invoice_numbers(1)[0]
