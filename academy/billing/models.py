"""
Academy Billing Models

Models:
- Transaction: One billable obligation of an enrollment (registration fee
  or one of the two tuition installments)
- Payment: A captured Stripe charge
- InvoiceToImport: Accounting staging rows generated from a registration
  fee payment, exported as CSV
- InvoiceNumberSequence: Single-row counter for invoice numbers

Features:
- All amounts in integer cents
- Transactions are never deleted, only moved through their status values
- Payout and reconciliation bookkeeping on the transaction row
- Invoice numbers unique per table, allocated from one shared counter

Author: DSP Development Team
Version: 1.0.0
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from ..catalog.models import Class
from ..enrollments.models import Enrollment, Student

__all__ = ["Transaction", "Payment", "InvoiceToImport", "InvoiceNumberSequence"]


class Transaction(models.Model):
    """
    One financial obligation of an enrollment.

    Status transitions: pending → paid, pending → cancelled, any → refunded.
    """

    class Type(models.TextChoices):
        REGISTRATION_FEE = "registration_fee", _("Registration fee")
        TUITION_A = "tuition_a", _("Tuition A")
        TUITION_B = "tuition_b", _("Tuition B")

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        CANCELLED = "cancelled", _("Cancelled")
        REFUNDED = "refunded", _("Refunded")

    ALLOWED_TRANSITIONS = {
        Status.PENDING: {Status.PAID, Status.CANCELLED, Status.REFUNDED},
        Status.PAID: {Status.REFUNDED},
        Status.CANCELLED: {Status.REFUNDED},
        Status.REFUNDED: set(),
    }

    enrollment = models.ForeignKey(
        Enrollment, on_delete=models.PROTECT, related_name="transactions"
    )
    student = models.ForeignKey(
        Student, on_delete=models.PROTECT, related_name="transactions"
    )
    klass = models.ForeignKey(
        Class,
        on_delete=models.PROTECT,
        related_name="transactions",
        db_column="class_id",
        verbose_name=_("Class"),
    )
    transaction_type = models.CharField(max_length=20, choices=Type.choices)
    transaction_status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING
    )
    amount_due = models.PositiveIntegerField(default=0, help_text=_("Amount in cents"))
    quantity = models.DecimalField(
        max_digits=4,
        decimal_places=2,
        default=Decimal("1"),
        help_text=_("Item rate: 1 for the registration fee, 0.5 per tuition half"),
    )
    due_date = models.DateField(blank=True, null=True)
    stripe_payment_intent_id = models.CharField(max_length=255, blank=True, null=True)
    invoice_number = models.PositiveBigIntegerField(unique=True, blank=True, null=True)
    payout_id = models.CharField(max_length=255, blank=True, null=True)
    payout_date = models.DateTimeField(blank=True, null=True)
    reconciled = models.BooleanField(default=False)
    reconciliation_date = models.DateTimeField(blank=True, null=True)
    downloaded = models.BooleanField(
        default=False, help_text=_("Included in an accounting CSV export")
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Transaction")
        verbose_name_plural = _("Transactions")
        indexes = [
            models.Index(fields=["payout_id"], name="academy_tra_payout__7a1f20_idx"),
            models.Index(
                fields=["stripe_payment_intent_id"], name="academy_tra_stripe__c3e58b_idx"
            ),
            models.Index(
                fields=["transaction_status"], name="academy_tra_transac_0e94d6_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_transaction_type_display()} #{self.invoice_number or self.pk}"

    @property
    def payment_amount(self) -> int:
        return self.amount_due or 0

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.ALLOWED_TRANSITIONS.get(self.transaction_status, set())


class Payment(models.Model):
    """Captured Stripe charge for an enrollment."""

    class Status(models.TextChoices):
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")

    enrollment = models.ForeignKey(
        Enrollment, on_delete=models.PROTECT, related_name="payments"
    )
    amount_cents = models.PositiveIntegerField(default=0)
    stripe_payment_intent_id = models.CharField(max_length=255, unique=True)
    stripe_receipt_url = models.URLField(max_length=500, blank=True, null=True)
    payment_status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PAID
    )
    paid_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")

    def __str__(self) -> str:
        return f"{self.stripe_payment_intent_id} ({self.amount_cents})"


class InvoiceToImport(models.Model):
    """
    Accounting staging row. A registration fee payment produces two rows,
    one per tuition installment (``invoice_sequence`` 1 and 2).
    """

    invoice_number = models.PositiveBigIntegerField(unique=True)
    invoice_sequence = models.PositiveSmallIntegerField()
    customer_email = models.EmailField()
    invoice_date = models.DateField()
    due_date = models.DateField()
    item = models.CharField(max_length=255)
    memo = models.CharField(max_length=500, blank=True, default="")
    item_amount = models.PositiveIntegerField(default=0, help_text=_("Amount in cents"))
    item_quantity = models.PositiveIntegerField(default=1)
    item_rate = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.5"))
    payment = models.ForeignKey(
        Payment,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="invoices_to_import",
    )
    klass = models.ForeignKey(
        Class,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="invoices_to_import",
        db_column="class_id",
        verbose_name=_("Class"),
    )
    category = models.CharField(max_length=32, blank=True, default="")
    subcategory = models.CharField(max_length=64, blank=True, default="")
    transaction_id = models.CharField(
        max_length=255, help_text=_("Stripe payment intent id, used for de-duplication")
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["invoice_number"]
        verbose_name = _("Invoice to import")
        verbose_name_plural = _("Invoices to import")
        constraints = [
            models.UniqueConstraint(
                fields=["transaction_id", "invoice_sequence"],
                name="unique_invoice_per_transaction_sequence",
            )
        ]

    def __str__(self) -> str:
        return f"Invoice {self.invoice_number} ({self.item})"


class InvoiceNumberSequence(models.Model):
    """Single-row counter holding the last invoice number handed out."""

    last_number = models.PositiveBigIntegerField(default=0)

    class Meta:
        verbose_name = _("Invoice number sequence")
        verbose_name_plural = _("Invoice number sequence")

    def __str__(self) -> str:
        return str(self.last_number)
