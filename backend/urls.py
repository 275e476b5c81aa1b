"""
Backend URL Configuration

URL Structure:
- /admin/: Django admin (Jazzmin)
- /api/auth/: Cookie based JWT login, refresh, logout
- /api/academy/: Catalog, enrollments, billing
- /api/logs/: Audit log
- /api/email/: Email logs, retries, previews
- /api/payments/: Public Stripe checkout endpoints
- /stripe/: dj-stripe webhook receiver

Author: DSP Development Team
Version: 1.0.0
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/", include("core.authentication.urls")),
    path("api/academy/", include("academy.urls")),
    path("api/", include("core.audit_logs.urls")),
    path("api/email/", include("core.email_service.urls")),
    path("api/payments/", include("core.stripe_integration.urls")),
    path("stripe/", include("djstripe.urls", namespace="djstripe")),
]
