from django.apps import AppConfig


class AuditLogsConfig(AppConfig):
    """
    App configuration for the `core.audit_logs` package.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "core.audit_logs"
    label = "audit_logs"
    verbose_name = "Audit Logs"
