"""
Academy Student & Enrollment Views

API Endpoints:
- /api/academy/students/                      - Students with their enrollments (admin)
- /api/academy/students/{id}/enrollments/     - Enrollments of one student
- /api/academy/enrollments/                   - Enrollments (filters: klass, student, status)
- /api/academy/waitlist/                      - Waitlist submit (public POST), list (admin)
- /api/academy/waitlist/by-course-code/{code}/ - Waitlist of one course (admin)

Every enrollment carries its derived payment status; list endpoints fetch
the transactions of all listed enrollments in one query.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging

from django.db.models import Q
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.audit_logs.models import Log
from core.audit_logs.services import insert_log, log_field_changes
from ..billing.services.payment_status import payment_statuses_for
from .models import Enrollment, Student, WaitlistEntry
from .serializers import (
    EnrollmentSerializer,
    StudentEnrollmentSerializer,
    StudentSerializer,
    WaitlistEntrySerializer,
    WaitlistSubmitSerializer,
)
from .services import add_to_waitlist, create_enrollment

logger = logging.getLogger(__name__)

STUDENT_AUDITED_FIELDS = (
    "email",
    "first_name",
    "last_name",
    "full_name",
    "phone",
    "has_required_info",
    "t_shirt_size",
    "emergency_contact_name",
    "emergency_contact_phone",
)


def _context_with_statuses(view, enrollment_ids):
    context = view.get_serializer_context()
    context["payment_statuses"] = payment_statuses_for(enrollment_ids)
    return context


class StudentViewSet(viewsets.ModelViewSet):
    """
    ViewSet für Studenten
    """

    queryset = Student.objects.prefetch_related("enrollments__klass").all()
    serializer_class = StudentSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        queryset = super().get_queryset()
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(
                Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(full_name__icontains=search)
            )
        return queryset

    def list(self, request, *args, **kwargs):
        students = list(self.filter_queryset(self.get_queryset()))
        enrollment_ids = [enrollment.id for student in students for enrollment in student.enrollments.all()]
        serializer = self.get_serializer(
            students, many=True, context=_context_with_statuses(self, enrollment_ids)
        )
        return Response(serializer.data)

    def perform_create(self, serializer):
        student = serializer.save()
        insert_log(
            reference_id=student.pk,
            reference_type=Log.ReferenceType.STUDENT,
            action_type=Log.ActionType.STUDENT_ADDED,
            admin_user=self.request.user,
            new_value=student.email,
            student_id=student.pk,
        )

    def perform_update(self, serializer):
        old_values = {field: getattr(serializer.instance, field) for field in STUDENT_AUDITED_FIELDS}
        student = serializer.save()
        log_field_changes(
            reference_id=student.pk,
            reference_type=Log.ReferenceType.STUDENT,
            old_values=old_values,
            new_values={field: getattr(student, field) for field in STUDENT_AUDITED_FIELDS},
            fields=STUDENT_AUDITED_FIELDS,
            admin_user=self.request.user,
            student_id=student.pk,
        )

    def destroy(self, request, *args, **kwargs):
        student = self.get_object()
        if student.transactions.exists():
            return Response(
                {"error": "Students with transactions cannot be deleted"},
                status=status.HTTP_409_CONFLICT,
            )
        return super().destroy(request, *args, **kwargs)

    @action(detail=True, methods=["get"])
    def enrollments(self, request, pk=None):
        """Anmeldungen eines Studenten"""
        student = self.get_object()
        enrollments = list(student.enrollments.select_related("klass").all())
        serializer = StudentEnrollmentSerializer(
            enrollments,
            many=True,
            context=_context_with_statuses(self, [enrollment.id for enrollment in enrollments]),
        )
        return Response(serializer.data)


class EnrollmentViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet für Anmeldungen
    """

    queryset = Enrollment.objects.select_related("student", "klass").all()
    serializer_class = EnrollmentSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        for param in ("klass", "student"):
            value = params.get(param)
            if value and value.isdigit():
                queryset = queryset.filter(**{f"{param}_id": int(value)})
        enrollment_status = params.get("status")
        if enrollment_status:
            queryset = queryset.filter(enrollment_status=enrollment_status)
        return queryset

    def list(self, request, *args, **kwargs):
        enrollments = list(self.filter_queryset(self.get_queryset()))
        serializer = self.get_serializer(
            enrollments,
            many=True,
            context=_context_with_statuses(self, [enrollment.id for enrollment in enrollments]),
        )
        return Response(serializer.data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        student = serializer.validated_data["student"]
        klass = serializer.validated_data["klass"]

        enrollment, created = create_enrollment(student, klass)
        if created:
            insert_log(
                reference_id=klass.pk,
                reference_type=Log.ReferenceType.CLASS,
                action_type=Log.ActionType.STUDENT_ADDED,
                admin_user=request.user,
                new_value=student.display_name,
                student_id=student.pk,
                class_id=klass.pk,
            )
        return Response(
            self.get_serializer(enrollment).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def destroy(self, request, *args, **kwargs):
        enrollment = self.get_object()
        if enrollment.transactions.exists() or enrollment.payments.exists():
            return Response(
                {"error": "Enrollments with transactions or payments cannot be removed"},
                status=status.HTTP_409_CONFLICT,
            )
        student, klass = enrollment.student, enrollment.klass
        enrollment.delete()
        insert_log(
            reference_id=klass.pk,
            reference_type=Log.ReferenceType.CLASS,
            action_type=Log.ActionType.STUDENT_REMOVED,
            admin_user=request.user,
            old_value=student.display_name,
            student_id=student.pk,
            class_id=klass.pk,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class WaitlistViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    ViewSet für die Warteliste

    Das Eintragen ist öffentlich, die Listen nur für Admins.
    """

    queryset = WaitlistEntry.objects.select_related("student").all()
    serializer_class = WaitlistEntrySerializer
    permission_classes = [permissions.IsAdminUser]

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == "create":
            return WaitlistSubmitSerializer
        return super().get_serializer_class()

    def get_queryset(self):
        queryset = super().get_queryset()
        course_code = self.request.query_params.get("course_code")
        if course_code:
            queryset = queryset.filter(course_code=course_code.strip().upper())
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            field, messages = next(iter(serializer.errors.items()))
            return Response({"error": str(messages[0]), "field": field}, status=status.HTTP_400_BAD_REQUEST)

        entry, created = add_to_waitlist(**serializer.validated_data)
        if not created:
            return Response(
                {
                    "success": True,
                    "message": "You are already on the waitlist for this course",
                    "already_on_waitlist": True,
                }
            )
        return Response(
            {
                "success": True,
                "message": "Successfully added to waitlist",
                "already_on_waitlist": False,
                "waitlist_entry": WaitlistEntrySerializer(entry).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"], url_path=r"by-course-code/(?P<course_code>[^/]+)")
    def by_course_code(self, request, course_code=None):
        """Warteliste eines Kurses, neueste zuerst"""
        entries = self.get_queryset().filter(course_code=course_code.strip().upper())
        return Response({"waitlist": WaitlistEntrySerializer(entries, many=True).data})
