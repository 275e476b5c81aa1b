from rest_framework import serializers

from .models import EmailLog


class EmailLogSerializer(serializers.ModelSerializer):
    """
    Serializer für EmailLog Model (ohne gespeichertes HTML)
    """

    class Meta:
        model = EmailLog
        fields = [
            "id",
            "recipient_email",
            "recipient_name",
            "subject",
            "email_type",
            "enrollment_id",
            "student_id",
            "success",
            "email_id",
            "error",
            "retries",
            "created_at",
        ]
        read_only_fields = fields
