import logging

from django.conf import settings
from django.core.mail import send_mail

from .error_logging import record_warning

logger = logging.getLogger(__name__)

CUSTOMER_SUBJECT = 'Your audio guestbook number is ready'
CUSTOMER_BODY = (
    'Hi {name},\n\n'
    'Your audio guestbook for {event_date} is live. Guests can call\n\n'
    '    {phone_number}\n\n'
    'to leave you a voice message. The number stays active until {release_date}, '
    'so late guests can still call after the day.\n'
)

VENUE_SUBJECT = 'Phone number ready for the event on {event_date}'
VENUE_BODY = (
    'Hello {venue_name},\n\n'
    'The guestbook phone number for the event on {event_date} is\n\n'
    '    {phone_number}\n\n'
    'Please set it up on the guestbook phone before the event.\n'
)


def _send(recipient, subject, body, event, kind):
    if not recipient:
        logger.warning('No %s email for event %s; skipping notification', kind, event.pk)
        return False
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient])
    except Exception as exc:
        record_warning('notifier', exc, {
            'eventId': str(event.pk),
            'phoneNumber': event.phone_number,
            'recipient': kind,
            'errorType': 'email_notification_failed',
        })
        return False
    logger.info('Sent %s number-assigned email for event %s', kind, event.pk)
    return True


def notify_number_assigned(event):
    """
    Tell the customer and the venue which number the event got.
    Best effort: failures are logged and never raised.
    """
    release_date = (
        event.phone_release_scheduled_for.date().isoformat()
        if event.phone_release_scheduled_for else 'further notice'
    )
    customer = event.customer
    _send(
        event.customer_email,
        CUSTOMER_SUBJECT,
        CUSTOMER_BODY.format(
            name=customer.first_name or customer.get_username(),
            event_date=event.event_date,
            phone_number=event.phone_number,
            release_date=release_date,
        ),
        event,
        'customer',
    )
    _send(
        event.venue_email,
        VENUE_SUBJECT.format(event_date=event.event_date),
        VENUE_BODY.format(
            venue_name=event.venue.name,
            event_date=event.event_date,
            phone_number=event.phone_number,
        ),
        event,
        'venue',
    )
