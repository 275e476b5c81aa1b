from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="EmailLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("recipient_email", models.EmailField(max_length=254)),
                ("recipient_name", models.CharField(blank=True, max_length=255, null=True)),
                ("subject", models.CharField(max_length=255)),
                ("email_type", models.CharField(help_text="course_enrollment, program_enrollment, ...", max_length=50)),
                ("enrollment_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("student_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("success", models.BooleanField(default=False)),
                ("email_id", models.CharField(blank=True, help_text="Provider message id", max_length=255, null=True)),
                ("error", models.TextField(blank=True, null=True)),
                ("retries", models.PositiveIntegerField(default=0)),
                ("html_body", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Email log",
                "verbose_name_plural": "Email logs",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["recipient_email"], name="email_servi_recipie_3f1d2a_idx"),
                    models.Index(fields=["email_type"], name="email_servi_email_t_8c4b1e_idx"),
                    models.Index(fields=["success", "created_at"], name="email_servi_success_5a7e90_idx"),
                ],
            },
        ),
    ]
