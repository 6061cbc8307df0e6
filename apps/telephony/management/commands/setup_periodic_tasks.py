"""
Management command: setup_periodic_tasks

Idempotently creates (or updates) the django-celery-beat PeriodicTask
records for the number lifecycle tasks:
  - purchase_upcoming_numbers
  - release_expired_numbers

Usage:
    python manage.py setup_periodic_tasks
    python manage.py setup_periodic_tasks --purchase-hour 7 --release-hour 2
"""
from django.core.management.base import BaseCommand
from django.conf import settings
from django_celery_beat.models import CrontabSchedule, PeriodicTask


class Command(BaseCommand):
    help = 'Create or update django-celery-beat schedules for phone number tasks.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--purchase-hour',
            type=int,
            default=getattr(settings, 'PURCHASE_TASK_HOUR', 6),
            help='UTC hour for the daily purchase scan (default: 6)',
        )
        parser.add_argument(
            '--release-hour',
            type=int,
            default=getattr(settings, 'RELEASE_TASK_HOUR', 3),
            help='UTC hour for the daily release sweep (default: 3)',
        )

    def _schedule(self, name, task, hour, description):
        schedule, _ = CrontabSchedule.objects.get_or_create(
            minute='0',
            hour=str(hour),
            day_of_week='*',
            day_of_month='*',
            month_of_year='*',
        )
        _, created = PeriodicTask.objects.update_or_create(
            name=name,
            defaults={
                'crontab': schedule,
                'task': task,
                'enabled': True,
                'description': description,
            },
        )
        self.stdout.write(
            self.style.SUCCESS(
                f'{"Created" if created else "Updated"} periodic task: '
                f'{name} (hour={hour})'
            )
        )

    def handle(self, *args, **options):
        purchase_hour = options['purchase_hour']
        release_hour = options['release_hour']

        self._schedule(
            'purchase_upcoming_numbers',
            'apps.telephony.tasks.purchase_upcoming_numbers',
            purchase_hour,
            f'Assign numbers to events inside the purchase window at {purchase_hour:02d}:00 UTC.',
        )
        self._schedule(
            'release_expired_numbers',
            'apps.telephony.tasks.release_expired_numbers',
            release_hour,
            f'Release numbers past their retention window at {release_hour:02d}:00 UTC.',
        )
