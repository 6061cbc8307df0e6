import logging

from celery import shared_task

from apps.telephony.exceptions import (
    EventCancelled,
    EventNotFound,
    NoInventoryAvailable,
    ProvisioningInProgress,
    PurchaseRejected,
    TransientCarrierError,
)
from apps.telephony.provisioning import provision_number, run_purchase_batch
from apps.telephony.release import run_release_batch

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def provision_event_number(self, event_id):
    """
    Celery task: assign a phone number to a single event right after it is
    booked inside the purchase window.

    Retries up to 3 times (60 s apart) on transient carrier errors. Outcomes
    that another attempt cannot change are logged and dropped.
    """
    try:
        result = provision_number(event_id)
    except TransientCarrierError as exc:
        logger.warning('provision_event_number: transient error for %s: %s', event_id, exc)
        raise self.retry(exc=exc)
    except ProvisioningInProgress as exc:
        logger.info('provision_event_number: %s; leaving it to the running purchase', exc)
        return None
    except (EventNotFound, EventCancelled, NoInventoryAvailable, PurchaseRejected) as exc:
        logger.error('provision_event_number: giving up on %s: %s', event_id, exc)
        return None

    logger.info(
        'provision_event_number: event %s -> %s (created=%s)',
        event_id,
        result.phone_number,
        result.created,
    )
    return result.phone_number


@shared_task
def purchase_upcoming_numbers():
    """
    Celery beat task (daily): assign numbers to every active event inside the
    purchase window that does not have one yet.
    """
    summary = run_purchase_batch()
    logger.info(
        'purchase_upcoming_numbers complete: %d purchased, %d failed.',
        summary.succeeded,
        summary.failed,
    )
    return summary.as_dict()


@shared_task
def release_expired_numbers():
    """
    Celery beat task (daily): return numbers whose retention window has
    passed to the carrier.
    """
    summary = run_release_batch()
    logger.info(
        'release_expired_numbers complete: %d released, %d failed.',
        summary.succeeded,
        summary.failed,
    )
    return summary.as_dict()
