"""
Number provisioning: decides when and for which event a number is bought.

provision_number() is the single entry point used by the event-creation
trigger, the daily purchase scan and the admin purchase endpoint.

Concurrency: a per-event lease (conditional UPDATE on provisioning_lease_until)
is taken before any carrier call, so two triggers firing together cannot both
reach the purchase step. The partial unique constraint on Event.phone_number
backs this at the storage layer.
"""
import datetime
import logging
from collections import namedtuple

import pytz
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.events.models import Event

from .error_logging import record_error, record_info, record_warning
from .exceptions import (
    EventCancelled,
    EventNotFound,
    ProvisioningInProgress,
    TelephonyError,
)
from .inventory import NumberInventoryClient
from .notifier import notify_number_assigned
from .summary import BatchSummary

logger = logging.getLogger(__name__)

SOURCE = 'phone-purchase'

ProvisionResult = namedtuple('ProvisionResult', ['phone_number', 'sid', 'created'])
ProvisioningOperation = namedtuple('ProvisioningOperation', ['event_id', 'country_code', 'event_date'])


def release_date_for(event_date):
    """Numbers stay reachable for NUMBER_RETENTION_DAYS after the event."""
    start = pytz.UTC.localize(datetime.datetime.combine(event_date, datetime.time.min))
    return start + datetime.timedelta(days=settings.NUMBER_RETENTION_DAYS)


def _acquire_lease(event_id, now):
    until = now + datetime.timedelta(seconds=settings.PROVISIONING_LEASE_SECONDS)
    updated = (
        Event.objects.filter(pk=event_id, phone_number__isnull=True)
        .filter(Q(provisioning_lease_until__isnull=True) | Q(provisioning_lease_until__lt=now))
        .update(provisioning_lease_until=until)
    )
    return updated == 1


def _clear_lease(event_id):
    try:
        Event.objects.filter(pk=event_id).update(provisioning_lease_until=None)
    except Exception:
        # An expired lease frees itself; nothing else to do here.
        logger.exception('Could not clear provisioning lease for event %s', event_id)


def _compensate(inventory, purchased, event_id, write_error):
    """Release a number we bought but could not record."""
    logger.error(
        'Saving %s to event %s failed (%s); releasing it at the carrier',
        purchased.phone_number,
        event_id,
        write_error,
    )
    try:
        inventory.release(purchased.sid)
    except Exception as exc:
        record_error(SOURCE, exc, {
            'eventId': str(event_id),
            'phoneNumber': purchased.phone_number,
            'phoneSid': purchased.sid,
            'errorType': 'compensating_release_failed',
        })
    else:
        logger.info('Compensating release of %s succeeded', purchased.phone_number)


def _save_assignment(event_id, purchased, now, release_at):
    """Record the purchased number on the event in a single write."""
    with transaction.atomic():
        updated = Event.objects.filter(pk=event_id, phone_number__isnull=True).update(
            phone_number=purchased.phone_number,
            phone_number_sid=purchased.sid,
            phone_purchased_at=now,
            phone_release_scheduled_for=release_at,
            provisioning_lease_until=None,
            updated_at=now,
        )
    if updated != 1:
        raise TelephonyError(f'Event {event_id} was assigned a number concurrently')


def _load_event(event_id):
    try:
        return Event.objects.select_related('venue', 'customer').get(pk=event_id)
    except (Event.DoesNotExist, ValidationError):
        raise EventNotFound(f'Event not found: {event_id}')


def provision_number(event_id, country_code=None, area_code=None, inventory=None,
                     send_notifications=True):
    """
    Buy a number for the event and record it on the event.

    Returns ProvisionResult. An event that already has a number is a no-op
    returning that number with created=False; the carrier is not contacted.

    Raises EventNotFound, EventCancelled, ProvisioningInProgress,
    NoInventoryAvailable, PurchaseRejected, TransientCarrierError, or the
    database error from a failed write (after releasing the bought number).
    """
    event = _load_event(event_id)

    if event.phone_number:
        logger.info('Event %s already has number %s; nothing to do', event.pk, event.phone_number)
        return ProvisionResult(event.phone_number, event.phone_number_sid, False)

    if event.status == Event.STATUS_CANCELLED:
        logger.info('Event %s is cancelled; not purchasing a number', event.pk)
        raise EventCancelled(f'Cannot purchase number for cancelled event {event.pk}')

    country_code = country_code or event.country_code
    now = timezone.now()

    if not _acquire_lease(event.pk, now):
        event.refresh_from_db(fields=['phone_number', 'phone_number_sid'])
        if event.phone_number:
            return ProvisionResult(event.phone_number, event.phone_number_sid, False)
        raise ProvisioningInProgress(f'Number purchase already in progress for event {event.pk}')

    inventory = inventory or NumberInventoryClient()
    context = {'eventId': str(event.pk), 'countryCode': country_code, 'areaCode': area_code}

    try:
        try:
            candidates = inventory.search_available(country_code, area_code=area_code)
            purchased = inventory.purchase(candidates[0], friendly_name=f'Event {event.pk}')
        except TelephonyError as exc:
            record_error(SOURCE, exc, dict(context, errorType='purchase_failed'))
            raise

        release_at = release_date_for(event.event_date)
        try:
            _save_assignment(event.pk, purchased, now, release_at)
        except Exception as exc:
            _compensate(inventory, purchased, event.pk, exc)
            record_error(SOURCE, exc, dict(
                context,
                phoneNumber=purchased.phone_number,
                errorType='save_failed',
            ))
            raise
    finally:
        _clear_lease(event.pk)

    event.phone_number = purchased.phone_number
    event.phone_number_sid = purchased.sid
    event.phone_purchased_at = now
    event.phone_release_scheduled_for = release_at

    if send_notifications:
        try:
            notify_number_assigned(event)
        except Exception as exc:
            record_warning(SOURCE, exc, dict(context, errorType='email_notification_failed'))

    record_info(SOURCE, 'Number purchased successfully', dict(
        context,
        phoneNumber=purchased.phone_number,
    ))
    return ProvisionResult(purchased.phone_number, purchased.sid, True)


# --------------------------------------------------------------------------- #
# Daily purchase scan
# --------------------------------------------------------------------------- #

def select_provisioning_candidates(today, batch_limit):
    """
    Active events without a number whose date falls inside the purchase
    threshold. Selection only; no carrier calls.
    """
    horizon = today + datetime.timedelta(days=settings.PURCHASE_THRESHOLD_DAYS)
    events = (
        Event.objects.select_related('venue')
        .filter(
            status=Event.STATUS_ACTIVE,
            phone_number__isnull=True,
            event_date__gte=today,
            event_date__lte=horizon,
        )
        .order_by('event_date', 'created_at')[:batch_limit]
    )
    return [
        ProvisioningOperation(event.pk, event.country_code, event.event_date)
        for event in events
    ]


def run_purchase_batch(today=None, batch_limit=None, inventory=None):
    """
    Provision every candidate, isolating failures per event. Failed events
    keep no number and are picked up again by the next run.
    """
    today = today or timezone.localdate()
    batch_limit = batch_limit or settings.PURCHASE_BATCH_SIZE
    summary = BatchSummary('purchased')

    operations = select_provisioning_candidates(today, batch_limit)
    if not operations:
        logger.info('run_purchase_batch: no events need numbers (today=%s)', today)
        return summary

    logger.info('run_purchase_batch: %d event(s) need numbers', len(operations))
    inventory = inventory or NumberInventoryClient()

    for op in operations:
        try:
            result = provision_number(op.event_id, country_code=op.country_code, inventory=inventory)
        except Exception as exc:
            logger.error('Failed to purchase number for event %s: %s', op.event_id, exc)
            summary.add_failure(f'event {op.event_id}', exc)
            continue
        if result.created:
            summary.add_success()

    logger.info(
        'run_purchase_batch complete: %d purchased, %d failed.',
        summary.succeeded,
        summary.failed,
    )
    if summary.failed:
        record_warning('cron:purchase-numbers', 'Some purchases failed', summary.as_dict())
    return summary
