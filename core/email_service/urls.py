from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import EmailLogViewSet, EmailPreviewView

router = DefaultRouter()
router.register(r"email-logs", EmailLogViewSet, basename="email-log")

app_name = "email_service"

urlpatterns = [
    path("preview/", EmailPreviewView.as_view(), name="email-preview"),
    path("", include(router.urls)),
]

# GET  /api/email/email-logs/             - Liste aller Email-Logs
# GET  /api/email/email-logs/{id}/        - Einzelner Log
# POST /api/email/email-logs/{id}/retry/  - Erneut senden
# GET  /api/email/email-logs/metrics/     - Zustellstatistik
# GET  /api/email/preview/?type=course    - Vorschau
