"""
Email Service Views

Admin endpoints to monitor and repair transactional email delivery.

API Endpoints:
- GET  /api/email/email-logs/               - List logs (filters: success, email_type, recipient_email)
- GET  /api/email/email-logs/{id}/          - Single log
- POST /api/email/email-logs/{id}/retry/    - Send a failed email again
- GET  /api/email/email-logs/metrics/       - Delivery metrics (?hours=24)
- GET  /api/email/preview/?type=course      - Render an enrollment email with sample data

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

from datetime import timedelta
from types import SimpleNamespace

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from .enrollment_emails import (
    get_email_delivery_metrics,
    retry_failed_email,
    send_course_enrollment_email,
    send_program_enrollment_email,
)
from .models import EmailLog
from .serializers import EmailLogSerializer


class EmailLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet für Email-Logs
    """

    queryset = EmailLog.objects.all()
    serializer_class = EmailLogSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        success = params.get("success")
        if success in ("true", "false"):
            queryset = queryset.filter(success=success == "true")

        for param in ("email_type", "recipient_email"):
            value = params.get(param)
            if value:
                queryset = queryset.filter(**{param: value})

        return queryset

    @action(detail=True, methods=["post"])
    def retry(self, request, pk=None):
        """Failed email erneut senden"""
        result = retry_failed_email(pk)
        return result.to_response()

    @action(detail=False, methods=["get"])
    def metrics(self, request):
        """Zustellstatistik der letzten N Stunden"""
        hours = request.query_params.get("hours", "24")
        if not hours.isdigit() or int(hours) < 1:
            return Response(
                {"error": "hours must be a positive integer"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        end = timezone.now()
        return Response(get_email_delivery_metrics(end - timedelta(hours=int(hours)), end))


class EmailPreviewView(APIView):
    """
    Renders an enrollment email with sample data so template changes can be
    checked in the browser.
    """

    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        email_type = request.query_params.get("type", "course")
        today = timezone.localdate()
        student = SimpleNamespace(id=0, email="student@example.com", first_name="Jane", last_name="Doe")
        enrollment = SimpleNamespace(id=0)
        klass = SimpleNamespace(
            class_id="EMR-001",
            class_name="Emergency Medical Responder",
            course_code="EMR",
            class_start_date=today + timedelta(days=30),
        )

        if email_type == "course":
            result = send_course_enrollment_email(
                student, enrollment, klass, amount_paid=50000, invoice_number=100001, preview=True
            )
        elif email_type == "program":
            result = send_program_enrollment_email(
                student,
                enrollment,
                klass,
                amount_paid=25000,
                invoice_number=100001,
                outstanding_invoices=[
                    {
                        "invoice_number": 100002,
                        "transaction_type": "tuition_a",
                        "amount_due": 50000,
                        "due_date": klass.class_start_date - timedelta(days=21),
                    },
                    {
                        "invoice_number": 100003,
                        "transaction_type": "tuition_b",
                        "amount_due": 50000,
                        "due_date": klass.class_start_date + timedelta(days=7),
                    },
                ],
                preview=True,
            )
        else:
            return Response(
                {"error": "type must be 'course' or 'program'"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return HttpResponse(result.preview_html, content_type="text/html; charset=utf-8")
