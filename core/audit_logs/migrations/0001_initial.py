from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Log",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference_id", models.CharField(max_length=64, verbose_name="Reference ID")),
                (
                    "reference_type",
                    models.CharField(
                        choices=[
                            ("program", "Program"),
                            ("course", "Course"),
                            ("class", "Class"),
                            ("student", "Student"),
                        ],
                        max_length=20,
                        verbose_name="Reference type",
                    ),
                ),
                (
                    "action_type",
                    models.CharField(
                        choices=[
                            ("detail_updated", "Detail updated"),
                            ("class_created", "Class created"),
                            ("class_deleted", "Class deleted"),
                            ("student_added", "Student added"),
                            ("student_removed", "Student removed"),
                            ("student_registered", "Student registered"),
                            ("payment_success", "Payment success"),
                            ("webflow_synced", "Webflow synced"),
                        ],
                        max_length=32,
                        verbose_name="Action",
                    ),
                ),
                ("field_name", models.CharField(blank=True, max_length=100, null=True)),
                ("old_value", models.TextField(blank=True, null=True)),
                ("new_value", models.TextField(blank=True, null=True)),
                ("batch_id", models.UUIDField(blank=True, null=True)),
                ("student_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("class_id", models.PositiveBigIntegerField(blank=True, null=True)),
                (
                    "amount",
                    models.IntegerField(
                        blank=True, help_text="Amount in cents, if the action involves money", null=True
                    ),
                ),
                ("timestamp", models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")),
                (
                    "admin_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_logs",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Admin",
                    ),
                ),
            ],
            options={
                "verbose_name": "Audit log",
                "verbose_name_plural": "Audit logs",
                "ordering": ["-timestamp", "-id"],
                "indexes": [
                    models.Index(fields=["reference_type", "reference_id"], name="audit_logs__referen_4c1a2e_idx"),
                    models.Index(fields=["class_id"], name="audit_logs__class_i_8f0b3d_idx"),
                    models.Index(fields=["student_id"], name="audit_logs__student_5e2c7a_idx"),
                    models.Index(fields=["batch_id"], name="audit_logs__batch_i_9d4e1f_idx"),
                ],
            },
        ),
    ]
