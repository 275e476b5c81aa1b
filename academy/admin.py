"""
Academy Django Admin Configuration

Admin interface for the catalog, students and the billing ledger.

Sections:
- Catalog: Courses with their classes inline, classes
- Students & enrollments
- Billing: Transactions (status only editable), payments, invoice staging

Transactions and payments are never deleted from the admin.

Author: DSP Development Team
Version: 1.0.0
"""

from typing import Optional

from django.contrib import admin
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from .models import (
    Class,
    Course,
    Enrollment,
    InvoiceNumberSequence,
    InvoiceToImport,
    Payment,
    Student,
    Transaction,
    WaitlistEntry,
)

# --- Catalog ---


class ClassInline(admin.TabularInline):
    model = Class
    extra = 0
    fields = ["class_id", "class_name", "class_start_date", "class_close_date", "is_online"]
    readonly_fields = ["class_id"]
    show_change_link = True


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ["course_code", "course_name", "program_type", "price", "registration_fee"]
    list_filter = ["program_type"]
    search_fields = ["course_code", "course_name"]
    ordering = ["course_code"]
    inlines = [ClassInline]


@admin.register(Class)
class ClassAdmin(admin.ModelAdmin):
    list_display = [
        "class_id",
        "class_name",
        "course",
        "enrollment_start",
        "enrollment_close",
        "class_start_date",
        "webflow_item_id",
    ]
    list_filter = ["course__program_type", "is_online", "course"]
    search_fields = ["class_id", "class_name", "course_code"]
    readonly_fields = ["course_code", "class_id", "webflow_item_id", "created_at", "updated_at"]
    date_hierarchy = "class_start_date"
    fieldsets = (
        (None, {"fields": ("course", "course_code", "class_id", "class_name")}),
        (
            _("Schedule"),
            {
                "fields": (
                    "enrollment_start",
                    "enrollment_close",
                    "class_start_date",
                    "class_close_date",
                    "location",
                    "is_online",
                )
            },
        ),
        (
            _("Pricing"),
            {
                "fields": (
                    "price",
                    "registration_fee",
                    "product_id",
                    "stripe_product_id",
                    "invoice_1_due_date",
                    "invoice_2_due_date",
                )
            },
        ),
        (
            _("Details"),
            {
                "classes": ("collapse",),
                "fields": (
                    "length_of_class",
                    "certification_length",
                    "graduation_rate",
                    "registration_limit",
                    "webflow_item_id",
                    "created_at",
                    "updated_at",
                ),
            },
        ),
    )


# --- Students & enrollments ---


class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    extra = 0
    fields = ["klass", "enrollment_status", "onboarding_complete", "enrolled_at"]
    readonly_fields = ["enrolled_at"]


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ["email", "first_name", "last_name", "full_name", "has_required_info", "created_at"]
    list_filter = ["has_required_info"]
    search_fields = ["email", "first_name", "last_name", "full_name", "stripe_customer_id"]
    readonly_fields = ["stripe_customer_id", "created_at", "updated_at"]
    inlines = [EnrollmentInline]


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ["student", "klass", "enrollment_status", "onboarding_complete", "enrolled_at"]
    list_filter = ["enrollment_status", "onboarding_complete"]
    search_fields = ["student__email", "student__full_name", "klass__class_id"]
    raw_id_fields = ["student", "klass"]


@admin.register(WaitlistEntry)
class WaitlistEntryAdmin(admin.ModelAdmin):
    list_display = ["student", "course_code", "created_at"]
    list_filter = ["course_code"]
    search_fields = ["student__email", "student__full_name", "course_code"]
    raw_id_fields = ["student"]
    readonly_fields = ["created_at", "updated_at"]


# --- Billing ---


class NoDeleteAdminMixin:
    def has_delete_permission(self, request: HttpRequest, obj: Optional[object] = None) -> bool:
        return False


@admin.register(Transaction)
class TransactionAdmin(NoDeleteAdminMixin, admin.ModelAdmin):
    list_display = [
        "invoice_number",
        "transaction_type",
        "transaction_status",
        "student",
        "klass",
        "amount_due",
        "due_date",
        "payout_id",
        "reconciled",
    ]
    list_filter = ["transaction_type", "transaction_status", "reconciled", "downloaded"]
    search_fields = ["invoice_number", "student__email", "stripe_payment_intent_id", "payout_id"]
    readonly_fields = [
        "enrollment",
        "student",
        "klass",
        "transaction_type",
        "amount_due",
        "quantity",
        "invoice_number",
        "stripe_payment_intent_id",
        "payout_id",
        "payout_date",
        "reconciliation_date",
        "created_at",
        "updated_at",
    ]


@admin.register(Payment)
class PaymentAdmin(NoDeleteAdminMixin, admin.ModelAdmin):
    list_display = ["stripe_payment_intent_id", "enrollment", "amount_cents", "payment_status", "paid_at"]
    list_filter = ["payment_status"]
    search_fields = ["stripe_payment_intent_id", "enrollment__student__email"]
    readonly_fields = [
        "enrollment",
        "amount_cents",
        "stripe_payment_intent_id",
        "stripe_receipt_url",
        "paid_at",
        "created_at",
    ]


@admin.register(InvoiceToImport)
class InvoiceToImportAdmin(admin.ModelAdmin):
    list_display = ["invoice_number", "invoice_sequence", "customer_email", "item", "item_amount", "due_date"]
    search_fields = ["invoice_number", "customer_email", "transaction_id"]
    ordering = ["invoice_number"]


@admin.register(InvoiceNumberSequence)
class InvoiceNumberSequenceAdmin(admin.ModelAdmin):
    list_display = ["id", "last_number"]
