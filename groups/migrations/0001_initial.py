from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("students", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Group",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "monthly_fee",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        default=None,
                        help_text="Legacy flat fee per cycle; per-session price = monthly_fee / payment_threshold",
                        max_digits=10,
                        null=True,
                    ),
                ),
                (
                    "session_fee",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        default=None,
                        help_text="Price of one session; takes precedence over monthly_fee when > 0",
                        max_digits=10,
                        null=True,
                    ),
                ),
                (
                    "payment_threshold",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Sessions per payment cycle (default 8 with session_fee, 4 with monthly_fee)",
                        null=True,
                    ),
                ),
                (
                    "registration_fee",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        default=None,
                        help_text="One-time registration fee",
                        max_digits=10,
                        null=True,
                    ),
                ),
                (
                    "count_absences",
                    models.BooleanField(
                        default=False,
                        help_text="If True, absences consume a cycle slot like attended sessions",
                    ),
                ),
                (
                    "grace_period_days",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Days after a cycle completes before payment is overdue (default 30)",
                        null=True,
                    ),
                ),
                ("semester_start", models.DateField(blank=True, null=True)),
                ("semester_end", models.DateField(blank=True, null=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        db_column="teacher_id",
                        limit_choices_to={"role": "teacher"},
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_groups",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Group",
                "verbose_name_plural": "Groups",
                "db_table": "groups",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="GroupStudent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                ("left_at", models.DateTimeField(blank=True, null=True)),
                ("active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="group_students",
                        to="groups.group",
                    ),
                ),
                (
                    "student_profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="group_memberships",
                        to="students.studentprofile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Group Student",
                "verbose_name_plural": "Group Students",
                "db_table": "group_students",
                "ordering": ["-joined_at"],
                "unique_together": {("group", "student_profile")},
            },
        ),
    ]
