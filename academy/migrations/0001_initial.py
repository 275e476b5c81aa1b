from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "course_code",
                    models.CharField(
                        help_text="Short unique code, used as prefix of class ids (e.g. EMR)",
                        max_length=32,
                        unique=True,
                        verbose_name="Course Code",
                    ),
                ),
                ("course_name", models.CharField(max_length=255, verbose_name="Course Name")),
                (
                    "program_type",
                    models.CharField(
                        choices=[("course", "Course"), ("program", "Program")],
                        default="course",
                        max_length=20,
                        verbose_name="Program Type",
                    ),
                ),
                ("wf_class_link", models.URLField(blank=True, null=True, verbose_name="Webflow Link")),
                ("length_of_class", models.CharField(blank=True, max_length=100, null=True)),
                ("certification_length", models.PositiveIntegerField(blank=True, null=True)),
                ("graduation_rate", models.PositiveIntegerField(blank=True, null=True)),
                ("registration_limit", models.PositiveIntegerField(blank=True, null=True)),
                ("price", models.PositiveIntegerField(blank=True, help_text="Tuition in cents", null=True)),
                (
                    "registration_fee",
                    models.PositiveIntegerField(blank=True, help_text="Registration fee in cents", null=True),
                ),
                ("stripe_product_id", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Course",
                "verbose_name_plural": "Courses",
                "ordering": ["course_code"],
            },
        ),
        migrations.CreateModel(
            name="InvoiceNumberSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("last_number", models.PositiveBigIntegerField(default=0)),
            ],
            options={
                "verbose_name": "Invoice number sequence",
                "verbose_name_plural": "Invoice number sequence",
            },
        ),
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email", models.EmailField(max_length=254, unique=True, verbose_name="Email")),
                ("first_name", models.CharField(blank=True, max_length=150, null=True)),
                ("last_name", models.CharField(blank=True, max_length=150, null=True)),
                ("full_name", models.CharField(blank=True, max_length=255, null=True)),
                ("phone", models.CharField(blank=True, max_length=50, null=True)),
                ("stripe_customer_id", models.CharField(blank=True, max_length=64, null=True)),
                ("has_required_info", models.BooleanField(default=False)),
                ("t_shirt_size", models.CharField(blank=True, max_length=10, null=True)),
                ("emergency_contact_name", models.CharField(blank=True, max_length=255, null=True)),
                ("emergency_contact_phone", models.CharField(blank=True, max_length=50, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Student",
                "verbose_name_plural": "Students",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Class",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("course_code", models.CharField(editable=False, max_length=32)),
                ("class_name", models.CharField(max_length=255, verbose_name="Class Name")),
                (
                    "class_id",
                    models.CharField(
                        help_text="Generated identifier, e.g. EMR-003",
                        max_length=64,
                        unique=True,
                        verbose_name="Class ID",
                    ),
                ),
                ("enrollment_start", models.DateField(blank=True, null=True)),
                ("enrollment_close", models.DateField(blank=True, null=True)),
                ("class_start_date", models.DateField(blank=True, null=True)),
                ("class_close_date", models.DateField(blank=True, null=True)),
                ("location", models.CharField(blank=True, max_length=255, null=True)),
                ("is_online", models.BooleanField(default=False)),
                ("product_id", models.CharField(blank=True, max_length=64, null=True)),
                ("length_of_class", models.CharField(blank=True, max_length=100, null=True)),
                ("certification_length", models.PositiveIntegerField(blank=True, null=True)),
                ("graduation_rate", models.PositiveIntegerField(blank=True, null=True)),
                ("registration_limit", models.PositiveIntegerField(blank=True, null=True)),
                ("stripe_product_id", models.CharField(blank=True, max_length=64, null=True)),
                ("price", models.PositiveIntegerField(blank=True, help_text="Tuition in cents", null=True)),
                (
                    "registration_fee",
                    models.PositiveIntegerField(blank=True, help_text="Registration fee in cents", null=True),
                ),
                (
                    "invoice_1_due_date",
                    models.DateField(
                        blank=True, help_text="Overrides the computed due date of tuition A", null=True
                    ),
                ),
                (
                    "invoice_2_due_date",
                    models.DateField(
                        blank=True, help_text="Overrides the computed due date of tuition B", null=True
                    ),
                ),
                ("webflow_item_id", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="classes",
                        to="academy.course",
                        verbose_name="Course",
                    ),
                ),
            ],
            options={
                "verbose_name": "Class",
                "verbose_name_plural": "Classes",
                "ordering": ["-class_start_date", "class_id"],
                "indexes": [
                    models.Index(fields=["course_code"], name="academy_cla_course__2b7e41_idx"),
                    models.Index(
                        fields=["enrollment_start", "enrollment_close"],
                        name="academy_cla_enrollm_6d0c93_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "enrollment_status",
                    models.CharField(
                        choices=[
                            ("registered", "Registered"),
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("withdrawn", "Withdrawn"),
                        ],
                        default="registered",
                        max_length=20,
                    ),
                ),
                ("onboarding_complete", models.BooleanField(default=False)),
                ("enrolled_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "klass",
                    models.ForeignKey(
                        db_column="class_id",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="enrollments",
                        to="academy.class",
                        verbose_name="Class",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollments",
                        to="academy.student",
                    ),
                ),
            ],
            options={
                "verbose_name": "Enrollment",
                "verbose_name_plural": "Enrollments",
                "ordering": ["-enrolled_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("student", "klass"), name="unique_student_class_enrollment")
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount_cents", models.PositiveIntegerField(default=0)),
                ("stripe_payment_intent_id", models.CharField(max_length=255, unique=True)),
                ("stripe_receipt_url", models.URLField(blank=True, max_length=500, null=True)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("paid", "Paid"), ("refunded", "Refunded")],
                        default="paid",
                        max_length=20,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "enrollment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="academy.enrollment",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="InvoiceToImport",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.PositiveBigIntegerField(unique=True)),
                ("invoice_sequence", models.PositiveSmallIntegerField()),
                ("customer_email", models.EmailField(max_length=254)),
                ("invoice_date", models.DateField()),
                ("due_date", models.DateField()),
                ("item", models.CharField(max_length=255)),
                ("memo", models.CharField(blank=True, default="", max_length=500)),
                ("item_amount", models.PositiveIntegerField(default=0, help_text="Amount in cents")),
                ("item_quantity", models.PositiveIntegerField(default=1)),
                (
                    "item_rate",
                    models.DecimalField(decimal_places=2, default=Decimal("0.5"), max_digits=4),
                ),
                ("category", models.CharField(blank=True, default="", max_length=32)),
                ("subcategory", models.CharField(blank=True, default="", max_length=64)),
                (
                    "transaction_id",
                    models.CharField(
                        help_text="Stripe payment intent id, used for de-duplication", max_length=255
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "klass",
                    models.ForeignKey(
                        blank=True,
                        db_column="class_id",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="invoices_to_import",
                        to="academy.class",
                        verbose_name="Class",
                    ),
                ),
                (
                    "payment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="invoices_to_import",
                        to="academy.payment",
                    ),
                ),
            ],
            options={
                "verbose_name": "Invoice to import",
                "verbose_name_plural": "Invoices to import",
                "ordering": ["invoice_number"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("transaction_id", "invoice_sequence"),
                        name="unique_invoice_per_transaction_sequence",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("registration_fee", "Registration fee"),
                            ("tuition_a", "Tuition A"),
                            ("tuition_b", "Tuition B"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "transaction_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("cancelled", "Cancelled"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("amount_due", models.PositiveIntegerField(default=0, help_text="Amount in cents")),
                (
                    "quantity",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("1"),
                        help_text="Item rate: 1 for the registration fee, 0.5 per tuition half",
                        max_digits=4,
                    ),
                ),
                ("due_date", models.DateField(blank=True, null=True)),
                ("stripe_payment_intent_id", models.CharField(blank=True, max_length=255, null=True)),
                ("invoice_number", models.PositiveBigIntegerField(blank=True, null=True, unique=True)),
                ("payout_id", models.CharField(blank=True, max_length=255, null=True)),
                ("payout_date", models.DateTimeField(blank=True, null=True)),
                ("reconciled", models.BooleanField(default=False)),
                ("reconciliation_date", models.DateTimeField(blank=True, null=True)),
                (
                    "downloaded",
                    models.BooleanField(default=False, help_text="Included in an accounting CSV export"),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "enrollment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="academy.enrollment",
                    ),
                ),
                (
                    "klass",
                    models.ForeignKey(
                        db_column="class_id",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="academy.class",
                        verbose_name="Class",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="academy.student",
                    ),
                ),
            ],
            options={
                "verbose_name": "Transaction",
                "verbose_name_plural": "Transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["payout_id"], name="academy_tra_payout__7a1f20_idx"),
                    models.Index(fields=["stripe_payment_intent_id"], name="academy_tra_stripe__c3e58b_idx"),
                    models.Index(fields=["transaction_status"], name="academy_tra_transac_0e94d6_idx"),
                ],
            },
        ),
    ]
