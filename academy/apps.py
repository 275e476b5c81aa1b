"""
Academy Application Configuration

Django application configuration for the course business: catalog
(courses and scheduled classes), students and enrollments, and the billing
ledger (transactions, payments, invoice staging).

Author: DSP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class AcademyConfig(AppConfig):
    """
    Configuration class for the Academy Django application.

    Attributes:
        default_auto_field: Default primary key field type for models
        name: Application name for Django registration
        verbose_name: Human-readable application name for admin interface
    """

    default_auto_field: str = "django.db.models.BigAutoField"
    name: str = "academy"
    verbose_name: str = "Academy"
