import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Event

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Event)
def purchase_number_if_near_term(sender, instance, created, **kwargs):
    """
    Enqueue an immediate number purchase for a newly created event that is
    already inside the purchase threshold. Events further out are picked up
    by the daily purchase scan, which also retries failures from here.
    """
    if not created or instance.status != Event.STATUS_ACTIVE or instance.phone_number:
        return

    days = instance.days_until_event()
    if not 0 <= days <= settings.PURCHASE_THRESHOLD_DAYS:
        logger.info(
            'Event %s is %d day(s) away; number purchase left to the daily scan',
            instance.pk,
            days,
        )
        return

    from apps.telephony.tasks import provision_event_number

    event_id = str(instance.pk)
    logger.info('Event %s is %d day(s) away; purchasing number immediately', event_id, days)

    def enqueue():
        try:
            provision_event_number.delay(event_id)
        except Exception:
            logger.exception(
                'Could not enqueue number purchase for event %s; the daily scan will retry',
                event_id,
            )

    transaction.on_commit(enqueue)
