from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ("academy", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="WaitlistEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("course_code", models.CharField(max_length=32, verbose_name="Course code")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="waitlist_entries",
                        to="academy.student",
                    ),
                ),
            ],
            options={
                "verbose_name": "Waitlist entry",
                "verbose_name_plural": "Waitlist entries",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["course_code"], name="academy_wai_course__4f1a9c_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("student", "course_code"), name="unique_student_course_waitlist")
                ],
            },
        ),
    ]
