"""
Academy Catalog Views

API Endpoints:
- /api/academy/courses/                                  - Courses and programs (admin)
- /api/academy/courses/by-course-code/{code}/            - Course by code (public)
- /api/academy/classes/                                  - Scheduled classes (admin)
- /api/academy/classes/active/                           - Classes open for enrollment today (public)
- /api/academy/classes/by-class-id/{class_id}/           - Class by public id (public)
- /api/academy/classes/by-course-code/{code}/            - Classes of a course (public)
- /api/academy/classes/{id}/sync-webflow/                - Push a class to Webflow (admin)

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging

from django.db.models import Q
from django.utils import timezone
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.audit_logs.models import Log
from core.audit_logs.services import insert_log
from core.exceptions import map_database_error
from core.webflow_sync.services import sync_class
from .models import Class, Course
from .serializers import ClassSerializer, CourseSerializer, PublicClassSerializer
from .services.classes import create_class, delete_class, update_class

logger = logging.getLogger(__name__)

PUBLIC_ACTIONS = ("active", "by_class_id", "by_course_code")


class CourseViewSet(viewsets.ModelViewSet):
    """
    ViewSet für Kurse und Programme
    """

    queryset = Course.objects.all()
    serializer_class = CourseSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action == "by_course_code":
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        program_type = self.request.query_params.get("program_type")
        if program_type:
            queryset = queryset.filter(program_type=program_type)
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(
                Q(course_code__icontains=search) | Q(course_name__icontains=search)
            )
        return queryset

    def destroy(self, request, *args, **kwargs):
        course = self.get_object()
        if course.classes.exists():
            return Response(
                {"error": "Courses with classes cannot be deleted"},
                status=status.HTTP_409_CONFLICT,
            )
        return super().destroy(request, *args, **kwargs)

    @action(detail=False, methods=["get"], url_path=r"by-course-code/(?P<course_code>[^/]+)")
    def by_course_code(self, request, course_code=None):
        """Kurs anhand des Kurscodes"""
        course = Course.objects.filter(course_code__iexact=course_code).first()
        if course is None:
            return Response({"error": map_database_error("course")}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(course).data)


class ClassViewSet(viewsets.ModelViewSet):
    """
    ViewSet für Klassen (geplante Kurstermine)
    """

    queryset = Class.objects.select_related("course").all()
    serializer_class = ClassSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS:
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        course = params.get("course")
        if course and course.isdigit():
            queryset = queryset.filter(course_id=int(course))
        program_type = params.get("program_type")
        if program_type:
            queryset = queryset.filter(course__program_type=program_type)
        search = params.get("search")
        if search:
            queryset = queryset.filter(
                Q(class_id__icontains=search) | Q(class_name__icontains=search)
            )
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = create_class(serializer.validated_data, admin_user=request.user)
        if not result.success:
            return result.to_response()
        data = self.get_serializer(result.data["klass"]).data
        data["webflow"] = result.data["webflow"]
        return Response(data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        klass = self.get_object()
        serializer = self.get_serializer(klass, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        result = update_class(klass, dict(serializer.validated_data), admin_user=request.user)
        data = self.get_serializer(result.data["klass"]).data
        data["webflow"] = result.data["webflow"]
        return Response(data)

    def destroy(self, request, *args, **kwargs):
        result = delete_class(self.get_object(), admin_user=request.user)
        if not result.success:
            return result.to_response()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def active(self, request):
        """Klassen mit offenem Anmeldezeitraum"""
        today = timezone.localdate()
        queryset = (
            Class.objects.select_related("course")
            .filter(Q(enrollment_start__isnull=True) | Q(enrollment_start__lte=today))
            .filter(Q(enrollment_close__isnull=True) | Q(enrollment_close__gte=today))
            .order_by("class_start_date", "class_id")
        )
        return Response(PublicClassSerializer(queryset, many=True).data)

    @action(detail=False, methods=["get"], url_path=r"by-class-id/(?P<class_id>[^/]+)")
    def by_class_id(self, request, class_id=None):
        klass = Class.objects.select_related("course").filter(class_id=class_id).first()
        if klass is None:
            return Response({"error": map_database_error("class")}, status=status.HTTP_404_NOT_FOUND)
        return Response(PublicClassSerializer(klass).data)

    @action(detail=False, methods=["get"], url_path=r"by-course-code/(?P<course_code>[^/]+)")
    def by_course_code(self, request, course_code=None):
        queryset = (
            Class.objects.select_related("course")
            .filter(course_code__iexact=course_code)
            .order_by("class_start_date", "class_id")
        )
        return Response(PublicClassSerializer(queryset, many=True).data)

    @action(detail=True, methods=["post"], url_path="sync-webflow")
    def sync_webflow(self, request, pk=None):
        """Klasse mit Webflow synchronisieren"""
        klass = self.get_object()
        result = sync_class(klass)
        if result.success:
            insert_log(
                reference_id=klass.pk,
                reference_type=Log.ReferenceType.CLASS,
                action_type=Log.ActionType.WEBFLOW_SYNCED,
                admin_user=request.user,
                new_value=result.data["action"],
                class_id=klass.pk,
            )
            result.data["message"] = "Class synced to Webflow successfully"
        return result.to_response()
