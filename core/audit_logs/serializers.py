from rest_framework import serializers

from .models import Log
from .services import format_timestamp, get_admin_display_name


class LogSerializer(serializers.ModelSerializer):
    """
    Serializer für Log Model, inklusive relativer Zeitangabe
    """

    admin_name = serializers.SerializerMethodField()
    relative_time = serializers.SerializerMethodField()

    class Meta:
        model = Log
        fields = [
            "id",
            "admin_user",
            "admin_name",
            "reference_id",
            "reference_type",
            "action_type",
            "field_name",
            "old_value",
            "new_value",
            "batch_id",
            "student_id",
            "class_id",
            "amount",
            "timestamp",
            "relative_time",
        ]
        read_only_fields = fields

    def get_admin_name(self, obj):
        return get_admin_display_name(obj.admin_user)

    def get_relative_time(self, obj):
        return format_timestamp(obj.timestamp)
