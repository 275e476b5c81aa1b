from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import LogViewSet

router = DefaultRouter()
router.register(r"logs", LogViewSet, basename="log")

app_name = "audit_logs"

urlpatterns = [
    path("", include(router.urls)),
]

# GET /api/logs/        - Liste aller Einträge (gefiltert)
# GET /api/logs/{id}/   - Einzelner Eintrag
