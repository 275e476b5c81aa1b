"""
Audit Log Views

Read-only API over the audit trail for the back office.

API Endpoints:
- /api/logs/ - List entries (filters: reference_type, reference_id, class_id, student_id, action_type)
- /api/logs/{id}/ - Single entry

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

from rest_framework import permissions, viewsets

from .models import Log
from .serializers import LogSerializer


class LogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet für Audit-Log Einträge (nur lesend)
    """

    queryset = Log.objects.select_related("admin_user").all()
    serializer_class = LogSerializer
    permission_classes = [permissions.IsAdminUser]

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        for param in ("reference_type", "reference_id", "action_type"):
            value = params.get(param)
            if value:
                queryset = queryset.filter(**{param: value})

        for param in ("class_id", "student_id"):
            value = params.get(param)
            if value and value.isdigit():
                queryset = queryset.filter(**{param: int(value)})

        return queryset
