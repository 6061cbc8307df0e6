"""Data migration: register the daily number purchase and release
Celery-beat periodic tasks via django-celery-beat PeriodicTask model.
"""
from django.db import migrations


def create_periodic_tasks(apps, schema_editor):
    CrontabSchedule = apps.get_model('django_celery_beat', 'CrontabSchedule')
    PeriodicTask = apps.get_model('django_celery_beat', 'PeriodicTask')

    # Purchase scan at 06:00 UTC every day
    purchase_schedule, _ = CrontabSchedule.objects.get_or_create(
        minute='0',
        hour='6',
        day_of_week='*',
        day_of_month='*',
        month_of_year='*',
    )

    PeriodicTask.objects.get_or_create(
        name='purchase_upcoming_numbers',
        defaults={
            'crontab': purchase_schedule,
            'task': 'apps.telephony.tasks.purchase_upcoming_numbers',
            'enabled': True,
            'description': 'Assign numbers to events inside the purchase window (06:00 UTC).',
        },
    )

    # Release sweep at 03:00 UTC every day
    release_schedule, _ = CrontabSchedule.objects.get_or_create(
        minute='0',
        hour='3',
        day_of_week='*',
        day_of_month='*',
        month_of_year='*',
    )

    PeriodicTask.objects.get_or_create(
        name='release_expired_numbers',
        defaults={
            'crontab': release_schedule,
            'task': 'apps.telephony.tasks.release_expired_numbers',
            'enabled': True,
            'description': 'Release numbers past their retention window (03:00 UTC).',
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    PeriodicTask = apps.get_model('django_celery_beat', 'PeriodicTask')
    PeriodicTask.objects.filter(
        name__in=['purchase_upcoming_numbers', 'release_expired_numbers']
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('telephony', '0001_initial'),
        ('django_celery_beat', '0018_improve_crontab_helptext'),
    ]

    operations = [
        migrations.RunPython(
            create_periodic_tasks,
            reverse_code=remove_periodic_tasks,
        ),
    ]
