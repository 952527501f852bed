from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.AddConstraint(
            model_name="payment",
            constraint=models.UniqueConstraint(
                condition=models.Q(("deleted_at__isnull", True), ("status", "pending"), ("type", "session_cycle")),
                fields=("student_profile", "group"),
                name="payments_one_open_cycle_pending",
            ),
        ),
    ]
