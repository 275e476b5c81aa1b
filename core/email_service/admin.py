from django.contrib import admin

from .models import EmailLog


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ["created_at", "email_type", "recipient_email", "success", "retries"]
    list_filter = ["success", "email_type", "created_at"]
    search_fields = ["recipient_email", "recipient_name", "subject", "email_id"]
    ordering = ["-created_at"]
    readonly_fields = ["created_at", "email_id", "retries"]
