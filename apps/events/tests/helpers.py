"""Shared builders for event fixtures used across the app test suites."""
import datetime

from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.events.models import Event, Venue


def make_customer(username='customer', email='customer@example.com', **fields):
    User = get_user_model()
    user, _ = User.objects.get_or_create(
        username=username,
        defaults=dict({'email': email, 'first_name': 'Sam'}, **fields),
    )
    return user


def make_venue(name='The Barn', contact_email='venue@example.com', country_code='GB'):
    return Venue.objects.create(name=name, contact_email=contact_email, country_code=country_code)


def make_event(days_ahead=30, venue=None, customer=None, **fields):
    """Create an Event `days_ahead` days from today (negative for past events)."""
    event_date = timezone.localdate() + datetime.timedelta(days=days_ahead)
    return Event.objects.create(
        venue=venue or make_venue(),
        customer=customer or make_customer(),
        event_date=event_date,
        **fields,
    )


def assign_number(event, phone_number, sid, release_at=None, released_at=None):
    """Put an event directly into the purchased (or released) state."""
    now = timezone.now()
    Event.objects.filter(pk=event.pk).update(
        phone_number=phone_number,
        phone_number_sid=sid,
        phone_purchased_at=now,
        phone_release_scheduled_for=release_at or now + datetime.timedelta(days=30),
        phone_released_at=released_at,
    )
    event.refresh_from_db()
    return event
