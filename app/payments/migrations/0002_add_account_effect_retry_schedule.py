"""
Add celery-beat schedule for retrying owed account effects.

This migration creates the periodic task schedule for the
retry_open_account_effects task, which runs every 5 minutes to
re-apply subscription upgrades that failed after a payment completed.
"""

from django.db import migrations


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for retrying account effects."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # Create interval schedule: every 5 minutes
    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=5,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name="Retry Open Account Effects",
        defaults={
            "task": "payments.tasks.retry_open_account_effects",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Scans for open AccountEffectDebts that are due and queues "
                "a retry of the subscription upgrade for each."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(
        name="Retry Open Account Effects",
    ).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
