from rest_framework import serializers

from ..billing.services.payment_status import payment_statuses_for
from .models import Enrollment, Student, WaitlistEntry


class PaymentStatusMixin:
    """
    Reads the derived payment status from ``context["payment_statuses"]``
    (filled by the view in one query), falling back to a single lookup.
    """

    def get_payment_status(self, obj):
        statuses = self.context.get("payment_statuses")
        if statuses is None or obj.id not in statuses:
            statuses = payment_statuses_for([obj.id])
        return statuses[obj.id]


class EnrollmentSerializer(PaymentStatusMixin, serializers.ModelSerializer):
    """
    Serializer für Enrollment Model inkl. abgeleitetem Zahlungsstatus
    """

    class_id = serializers.CharField(source="klass.class_id", read_only=True)
    class_name = serializers.CharField(source="klass.class_name", read_only=True)
    student_name = serializers.CharField(source="student.display_name", read_only=True)
    student_email = serializers.EmailField(source="student.email", read_only=True)
    payment_status = serializers.SerializerMethodField()

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "student",
            "student_name",
            "student_email",
            "klass",
            "class_id",
            "class_name",
            "enrollment_status",
            "onboarding_complete",
            "payment_status",
            "enrolled_at",
            "updated_at",
        ]
        read_only_fields = ["id", "enrolled_at", "updated_at"]
        # Duplicates are resolved by create_enrollment, not rejected
        validators = []


class StudentEnrollmentSerializer(PaymentStatusMixin, serializers.ModelSerializer):
    class_id = serializers.CharField(source="klass.class_id", read_only=True)
    class_name = serializers.CharField(source="klass.class_name", read_only=True)
    payment_status = serializers.SerializerMethodField()

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "klass",
            "class_id",
            "class_name",
            "enrollment_status",
            "onboarding_complete",
            "payment_status",
            "enrolled_at",
        ]
        read_only_fields = fields


class StudentSerializer(serializers.ModelSerializer):
    """
    Serializer für Student Model
    """

    display_name = serializers.CharField(read_only=True)
    enrollments = StudentEnrollmentSerializer(many=True, read_only=True)

    class Meta:
        model = Student
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "display_name",
            "phone",
            "stripe_customer_id",
            "has_required_info",
            "t_shirt_size",
            "emergency_contact_name",
            "emergency_contact_phone",
            "enrollments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "display_name", "enrollments", "created_at", "updated_at"]

    def validate_email(self, value):
        value = value.strip().lower()
        queryset = Student.objects.filter(email__iexact=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A student with this email already exists.")
        return value


class WaitlistSubmitSerializer(serializers.Serializer):
    """
    Öffentliches Wartelisten-Formular
    """

    email = serializers.EmailField(
        error_messages={"required": "Email is required", "blank": "Email is required"}
    )
    full_name = serializers.CharField(
        max_length=255,
        error_messages={"required": "Full name is required", "blank": "Full name is required"},
    )
    course_code = serializers.CharField(
        max_length=32,
        error_messages={"required": "Course code is required", "blank": "Course code is required"},
    )

    def validate_email(self, value):
        return value.strip().lower()

    def validate_course_code(self, value):
        return value.strip().upper()


class WaitlistEntrySerializer(serializers.ModelSerializer):
    student_id = serializers.IntegerField(read_only=True)
    full_name = serializers.CharField(source="student.display_name", read_only=True)
    email = serializers.EmailField(source="student.email", read_only=True)

    class Meta:
        model = WaitlistEntry
        fields = ["id", "student_id", "course_code", "full_name", "email", "created_at", "updated_at"]
        read_only_fields = fields
