"""
Release scheduler: hands numbers back to the carrier once their retention
window has passed.

Selection (select_release_candidates) is kept apart from execution
(run_release_batch) so the choice of what to release is testable without a
carrier. A failed release leaves the event untouched; the next run retries
it. "Already released" at the carrier counts as success.
"""
import logging
from collections import namedtuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.events.models import Event

from .error_logging import record_error
from .exceptions import EventNotFound, NumberNotAssigned
from .inventory import NumberInventoryClient
from .summary import BatchSummary

logger = logging.getLogger(__name__)

ReleaseOperation = namedtuple('ReleaseOperation', ['event_id', 'phone_number', 'sid'])
ReleaseResult = namedtuple('ReleaseResult', ['phone_number', 'released_at', 'carrier_released'])


def select_release_candidates(now, batch_limit):
    events = (
        Event.objects.filter(
            phone_number__isnull=False,
            phone_number_sid__isnull=False,
            phone_released_at__isnull=True,
            phone_release_scheduled_for__lte=now,
        )
        .order_by('phone_release_scheduled_for')
        .values_list('pk', 'phone_number', 'phone_number_sid')[:batch_limit]
    )
    return [ReleaseOperation(*row) for row in events]


def release_one(op, inventory, now):
    """
    Release one number and stamp phone_released_at. Returns whether the
    carrier still had the number.
    """
    carrier_released = inventory.release(op.sid)
    Event.objects.filter(pk=op.event_id, phone_released_at__isnull=True).update(
        phone_released_at=now,
        updated_at=now,
    )
    return carrier_released


def run_release_batch(now=None, batch_limit=None, inventory=None):
    now = now or timezone.now()
    batch_limit = batch_limit or settings.RELEASE_BATCH_SIZE
    summary = BatchSummary('released')

    operations = select_release_candidates(now, batch_limit)
    if not operations:
        logger.info('run_release_batch: no phone numbers to release')
        return summary

    logger.info('run_release_batch: found %d phone number(s) to release', len(operations))
    inventory = inventory or NumberInventoryClient()

    for op in operations:
        try:
            release_one(op, inventory, now)
        except Exception as exc:
            summary.add_failure(f'Failed to release {op.phone_number}', exc)
            record_error('cron:release-numbers', exc, {
                'eventId': str(op.event_id),
                'phoneNumber': op.phone_number,
                'phoneSid': op.sid,
                'errorType': 'release_failed',
            })
            continue
        summary.add_success()
        logger.info('Released %s for event %s', op.phone_number, op.event_id)

    logger.info(
        'run_release_batch complete: %d released, %d failed.',
        summary.succeeded,
        summary.failed,
    )
    return summary


def release_event_number(event_id, inventory=None):
    """Release one event's number now, ahead of its schedule (admin action)."""
    try:
        event = Event.objects.get(pk=event_id)
    except (Event.DoesNotExist, ValidationError):
        raise EventNotFound(f'Event not found: {event_id}')

    if not event.phone_number or not event.phone_number_sid:
        raise NumberNotAssigned(f'Event {event.pk} does not have a phone number assigned')

    if event.phone_released_at is not None:
        logger.info('Number %s for event %s was already released', event.phone_number, event.pk)
        return ReleaseResult(event.phone_number, event.phone_released_at, False)

    now = timezone.now()
    op = ReleaseOperation(event.pk, event.phone_number, event.phone_number_sid)
    carrier_released = release_one(op, inventory or NumberInventoryClient(), now)
    logger.info('Released %s for event %s on request', event.phone_number, event.pk)
    return ReleaseResult(event.phone_number, now, carrier_released)
