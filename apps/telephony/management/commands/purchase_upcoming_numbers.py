"""
Management command: purchase_upcoming_numbers

Runs the purchase scan once, outside Celery beat:

    python manage.py purchase_upcoming_numbers
    python manage.py purchase_upcoming_numbers --dry-run
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.telephony.provisioning import run_purchase_batch, select_provisioning_candidates


class Command(BaseCommand):
    help = 'Assign phone numbers to active events inside the purchase window.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            default=False,
            help='List the events that would get a number without calling the carrier.',
        )

    def handle(self, *args, **options):
        if options.get('dry_run'):
            operations = select_provisioning_candidates(
                timezone.localdate(), settings.PURCHASE_BATCH_SIZE,
            )
            for op in operations:
                self.stdout.write(
                    f'[dry-run] would purchase a {op.country_code} number for event '
                    f'{op.event_id} ({op.event_date})'
                )
            self.stdout.write(self.style.SUCCESS(f'{len(operations)} event(s) need a number.'))
            return

        summary = run_purchase_batch()
        for error in summary.errors:
            self.stderr.write(self.style.ERROR(error))
        self.stdout.write(
            self.style.SUCCESS(f'Purchased {summary.succeeded} number(s), {summary.failed} failed.')
        )
