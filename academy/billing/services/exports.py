"""
Accounting CSV Exports

Builds the CSV files imported into the accounting system.

Exports:
- Transactions: every transaction not yet downloaded; the exported rows
  are flagged ``downloaded`` so the next export only contains new ones
- Invoices to import: all staged installment invoices

Amounts are exported in dollars with two decimals, dates as ``M/D/YYYY``.

Author: DSP Development Team
Version: 1.0.0
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional

from django.db import transaction
from django.utils import timezone

from ..models import InvoiceToImport, Transaction

logger = logging.getLogger(__name__)

TRANSACTION_HEADERS = [
    "InvoiceNo",
    "Customer",
    "InvoiceDate",
    "DueDate",
    "Terms",
    "Location",
    "Memo",
    "Item(Product/Service)",
    "ItemDescription",
    "ItemQuantity",
    "ItemRate",
    "ItemAmount",
    "Taxable",
    "TaxRate",
    "Service Date",
]

INVOICE_HEADERS = [
    "InvoiceNo",
    "Customer",
    "InvoiceDate",
    "DueDate",
    "Item",
    "ItemDescription",
    "ItemQuantity",
    "ItemRate",
    "ItemAmount",
    "Taxable",
]


@dataclass
class CsvExport:
    filename: str
    content: str
    row_count: int


def format_amount(cents: Optional[int]) -> str:
    return f"{(cents or 0) / 100:.2f}"


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    return value


def format_csv_date(value) -> str:
    value = _as_date(value)
    if value is None:
        return ""
    return f"{value.month}/{value.day}/{value.year}"


def format_long_date(value) -> str:
    value = _as_date(value)
    if value is None:
        return ""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_rate(value) -> str:
    if value is None:
        return "1"
    return format(value.normalize(), "f") if hasattr(value, "normalize") else str(value)


def _item_type(transaction_type: str) -> str:
    if transaction_type in (Transaction.Type.TUITION_A, Transaction.Type.TUITION_B):
        return "Tuition"
    return "Registration Fee"


def describe_transaction(row: Transaction) -> str:
    """E.g. ``First payment for EMR Basics starting on June 1, 2025``."""
    if row.transaction_type == Transaction.Type.TUITION_A:
        description = "First payment"
    elif row.transaction_type == Transaction.Type.TUITION_B:
        description = "Final payment"
    else:
        description = _item_type(row.transaction_type)

    klass = row.klass
    if klass is not None and klass.class_name:
        description += f" for {klass.class_name}"
    if klass is not None and klass.class_start_date:
        description += f" starting on {format_long_date(klass.class_start_date)}"
    return description


def _write(headers: List[str], rows: Iterable[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def _filename_date(value: Optional[datetime]) -> str:
    value = _as_date(value)
    return value.strftime("%m%d%y") if value else "010101"


def export_transactions_csv(mark_downloaded: bool = True) -> Optional[CsvExport]:
    """
    Export all transactions with ``downloaded=False``.

    Returns:
        CsvExport, or None if there is nothing new to export
    """
    with transaction.atomic():
        rows = list(
            Transaction.objects.select_for_update()
            .filter(downloaded=False)
            .select_related("student", "klass")
            .order_by("created_at", "id")
        )
        if not rows:
            return None

        lines = []
        for row in rows:
            klass = row.klass
            lines.append(
                [
                    row.invoice_number or "",
                    row.student.full_name or row.student.display_name,
                    format_csv_date(row.created_at),
                    format_csv_date(row.due_date),
                    "",
                    "",
                    klass.class_id if klass else "",
                    _item_type(row.transaction_type),
                    describe_transaction(row),
                    "1",
                    format_rate(row.quantity),
                    format_amount(row.amount_due),
                    "N",
                    "",
                    format_csv_date(klass.class_start_date if klass else None),
                ]
            )

        created = [row.created_at for row in rows if row.created_at]
        filename = "invoices-{}-{}.csv".format(
            _filename_date(min(created) if created else None),
            _filename_date(max(created) if created else None),
        )

        if mark_downloaded:
            Transaction.objects.filter(pk__in=[row.pk for row in rows]).update(
                downloaded=True
            )

    logger.info("Exported %s transaction(s) to %s", len(rows), filename)
    return CsvExport(filename=filename, content=_write(TRANSACTION_HEADERS, lines), row_count=len(rows))


def export_invoices_csv() -> Optional[CsvExport]:
    """Export every staged ``InvoiceToImport`` row ordered by invoice number."""
    invoices = list(InvoiceToImport.objects.order_by("invoice_number"))
    if not invoices:
        return None

    lines = [
        [
            invoice.invoice_number,
            invoice.customer_email,
            format_csv_date(invoice.invoice_date),
            format_csv_date(invoice.due_date),
            "Registration",
            invoice.subcategory,
            invoice.item_quantity,
            format_rate(invoice.item_rate),
            format_amount(invoice.item_amount),
            "N",
        ]
        for invoice in invoices
    ]
    filename = f"invoices_export_{timezone.localdate().isoformat()}.csv"
    return CsvExport(filename=filename, content=_write(INVOICE_HEADERS, lines), row_count=len(invoices))
