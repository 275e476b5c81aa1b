from django.utils import timezone
from rest_framework import serializers

from .models import Class, Course


class CourseSerializer(serializers.ModelSerializer):
    """
    Serializer für Course Model
    """

    class_count = serializers.IntegerField(source="classes.count", read_only=True)

    class Meta:
        model = Course
        fields = [
            "id",
            "course_code",
            "course_name",
            "program_type",
            "wf_class_link",
            "length_of_class",
            "certification_length",
            "graduation_rate",
            "registration_limit",
            "price",
            "registration_fee",
            "stripe_product_id",
            "class_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "class_count", "created_at", "updated_at"]

    def validate_course_code(self, value):
        value = value.strip().upper()
        if self.instance and self.instance.course_code != value and self.instance.classes.exists():
            raise serializers.ValidationError(
                "The course code cannot change once classes exist."
            )
        return value


class ClassSerializer(serializers.ModelSerializer):
    """
    Serializer für Class Model

    ``course_code`` and ``class_id`` are generated, the course cannot be
    changed after creation.
    """

    course_name = serializers.CharField(source="course.course_name", read_only=True)
    program_type = serializers.CharField(source="course.program_type", read_only=True)
    enrollment_open = serializers.SerializerMethodField()

    class Meta:
        model = Class
        fields = [
            "id",
            "course",
            "course_code",
            "course_name",
            "program_type",
            "class_name",
            "class_id",
            "enrollment_start",
            "enrollment_close",
            "enrollment_open",
            "class_start_date",
            "class_close_date",
            "location",
            "is_online",
            "product_id",
            "length_of_class",
            "certification_length",
            "graduation_rate",
            "registration_limit",
            "stripe_product_id",
            "price",
            "registration_fee",
            "invoice_1_due_date",
            "invoice_2_due_date",
            "webflow_item_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "course_code",
            "class_id",
            "webflow_item_id",
            "created_at",
            "updated_at",
        ]

    def get_enrollment_open(self, obj):
        return obj.is_enrollment_open(self.context.get("today") or timezone.localdate())

    def validate_course(self, value):
        if self.instance is not None and self.instance.course_id != value.pk:
            raise serializers.ValidationError("A class cannot be moved to another course.")
        return value

    def validate(self, attrs):
        start = attrs.get("enrollment_start", getattr(self.instance, "enrollment_start", None))
        close = attrs.get("enrollment_close", getattr(self.instance, "enrollment_close", None))
        if start and close and close < start:
            raise serializers.ValidationError(
                {"enrollment_close": "Enrollment cannot close before it starts."}
            )
        class_start = attrs.get("class_start_date", getattr(self.instance, "class_start_date", None))
        class_close = attrs.get("class_close_date", getattr(self.instance, "class_close_date", None))
        if class_start and class_close and class_close < class_start:
            raise serializers.ValidationError(
                {"class_close_date": "A class cannot end before it starts."}
            )
        return attrs


class PublicClassSerializer(serializers.ModelSerializer):
    """Fields the public checkout pages may see."""

    course_name = serializers.CharField(source="course.course_name", read_only=True)
    program_type = serializers.CharField(source="course.program_type", read_only=True)

    class Meta:
        model = Class
        fields = [
            "class_id",
            "class_name",
            "course_code",
            "course_name",
            "program_type",
            "enrollment_start",
            "enrollment_close",
            "class_start_date",
            "class_close_date",
            "location",
            "is_online",
            "length_of_class",
            "certification_length",
            "graduation_rate",
            "registration_limit",
            "price",
            "registration_fee",
            "invoice_1_due_date",
            "invoice_2_due_date",
        ]
        read_only_fields = fields
