from django.contrib import admin

from .models import Log


@admin.register(Log)
class LogAdmin(admin.ModelAdmin):
    list_display = [
        "timestamp",
        "action_type",
        "reference_type",
        "reference_id",
        "field_name",
        "admin_user",
    ]
    list_filter = ["action_type", "reference_type", "timestamp"]
    search_fields = ["reference_id", "field_name", "old_value", "new_value"]
    ordering = ["-timestamp"]
    readonly_fields = [field.name for field in Log._meta.fields]

    def has_add_permission(self, request):
        return False
