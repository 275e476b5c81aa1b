"""
Academy Application URL Configuration

URL Structure (mounted under /api/academy/):
- courses/, classes/: Catalog (admin CRUD plus public lookups)
- students/, enrollments/: Students and their class enrollments
- waitlist/: Interest in courses without an open class
- transactions/, payments/: Billing ledger and reconciliation
- exports/: Accounting CSV downloads

Author: DSP Development Team
Version: 1.0.0
"""

from typing import List

from django.urls import URLPattern, include, path
from rest_framework.routers import DefaultRouter

from .billing import views as billing_views
from .catalog import views as catalog_views
from .enrollments import views as enrollment_views

app_name = "academy"

router = DefaultRouter()
router.register(r"courses", catalog_views.CourseViewSet, basename="course")
router.register(r"classes", catalog_views.ClassViewSet, basename="class")
router.register(r"students", enrollment_views.StudentViewSet, basename="student")
router.register(r"enrollments", enrollment_views.EnrollmentViewSet, basename="enrollment")
router.register(r"waitlist", enrollment_views.WaitlistViewSet, basename="waitlist")
router.register(r"transactions", billing_views.TransactionViewSet, basename="transaction")
router.register(r"payments", billing_views.PaymentViewSet, basename="payment")

# --- Accounting exports ---

export_urlpatterns: List[URLPattern] = [
    path(
        "exports/transactions.csv",
        billing_views.TransactionExportView.as_view(),
        name="export-transactions",
    ),
    path(
        "exports/invoices.csv",
        billing_views.InvoiceExportView.as_view(),
        name="export-invoices",
    ),
]

urlpatterns = export_urlpatterns + [
    path("", include(router.urls)),
]

# GET    /api/academy/courses/                              - Kurse und Programme
# GET    /api/academy/courses/by-course-code/{code}/        - Kurs per Code (öffentlich)
# GET    /api/academy/classes/active/                       - Offene Klassen (öffentlich)
# GET    /api/academy/classes/by-class-id/{class_id}/       - Klasse per Class-ID (öffentlich)
# GET    /api/academy/classes/by-course-code/{code}/        - Klassen eines Kurses (öffentlich)
# POST   /api/academy/classes/{id}/sync-webflow/            - Webflow Sync einer Klasse
# GET    /api/academy/students/{id}/enrollments/            - Anmeldungen eines Studenten
# POST   /api/academy/waitlist/                             - Auf Warteliste setzen (öffentlich)
# GET    /api/academy/waitlist/by-course-code/{code}/       - Warteliste eines Kurses
# PATCH  /api/academy/transactions/{id}/status/             - Statuswechsel
# POST   /api/academy/transactions/reconcile/               - Abgleich setzen
# POST   /api/academy/transactions/unreconcile/             - Abgleich entfernen
# GET    /api/academy/transactions/payouts/                 - Gruppiert nach Payout
# POST   /api/academy/transactions/sync-payouts/            - Payouts von Stripe laden
# GET    /api/academy/exports/transactions.csv              - Buchhaltungsexport
# GET    /api/academy/exports/invoices.csv                  - Rechnungsexport
