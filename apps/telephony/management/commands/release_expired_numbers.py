"""
Management command: release_expired_numbers

Runs the release sweep once, outside Celery beat:

    python manage.py release_expired_numbers
    python manage.py release_expired_numbers --dry-run
    python manage.py release_expired_numbers --batch-size 10

--dry-run lists the numbers that would be released without contacting
the carrier. Failed releases are logged and left for the next run.
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.telephony.release import run_release_batch, select_release_candidates


class Command(BaseCommand):
    help = 'Release phone numbers whose retention window has passed.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            default=False,
            help='List the numbers that would be released without calling the carrier.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=None,
            help='Maximum numbers to release in this run (default: RELEASE_BATCH_SIZE).',
        )

    def handle(self, *args, **options):
        batch_size = options.get('batch_size') or settings.RELEASE_BATCH_SIZE

        if options.get('dry_run'):
            operations = select_release_candidates(timezone.now(), batch_size)
            for op in operations:
                self.stdout.write(f'[dry-run] would release {op.phone_number} (event {op.event_id})')
            self.stdout.write(self.style.SUCCESS(f'{len(operations)} number(s) due for release.'))
            return

        summary = run_release_batch(batch_limit=batch_size)
        for error in summary.errors:
            self.stderr.write(self.style.ERROR(error))
        self.stdout.write(
            self.style.SUCCESS(f'Released {summary.succeeded} number(s), {summary.failed} failed.')
        )
