import datetime
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Venue(models.Model):
    name = models.CharField(max_length=200)
    contact_email = models.EmailField(blank=True, default='')
    # ISO 3166-1 alpha-2; selects the numbering plan a number is bought from
    country_code = models.CharField(max_length=2, default='GB')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f'Venue({self.name}, {self.country_code})'


class Event(models.Model):
    STATUS_ACTIVE = 'active'
    STATUS_CANCELLED = 'cancelled'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    PHONE_STATE_UNASSIGNED = 'unassigned'
    PHONE_STATE_PURCHASED = 'purchased'
    PHONE_STATE_RELEASED = 'released'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    venue = models.ForeignKey(Venue, on_delete=models.PROTECT, related_name='events')
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='events',
    )
    title = models.CharField(max_length=200, blank=True, default='')
    event_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    greeting_text = models.TextField(blank=True, default='')
    custom_greeting_audio_url = models.URLField(max_length=1000, blank=True, default='')
    ai_greeting_audio_url = models.URLField(max_length=1000, blank=True, default='')
    max_message_duration = models.PositiveIntegerField(null=True, blank=True)

    # Phone assignment. Only provisioning writes phone_number/phone_number_sid,
    # only release writes phone_released_at.
    phone_number = models.CharField(max_length=30, null=True, blank=True)
    phone_number_sid = models.CharField(max_length=64, null=True, blank=True)
    phone_purchased_at = models.DateTimeField(null=True, blank=True)
    phone_release_scheduled_for = models.DateTimeField(null=True, blank=True)
    phone_released_at = models.DateTimeField(null=True, blank=True)
    provisioning_lease_until = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['event_date']
        constraints = [
            models.UniqueConstraint(
                fields=['phone_number'],
                condition=Q(phone_number__isnull=False, phone_released_at__isnull=True),
                name='events_live_phone_number_unique',
            ),
        ]
        indexes = [
            models.Index(fields=['phone_number', 'status'], name='events_phone_status_idx'),
            models.Index(fields=['status', 'event_date'], name='events_status_date_idx'),
            models.Index(fields=['phone_release_scheduled_for'], name='events_release_due_idx'),
        ]

    def __str__(self):
        return f'Event({self.id}, {self.event_date})'

    @property
    def phone_state(self):
        if self.phone_released_at is not None:
            return self.PHONE_STATE_RELEASED
        if self.phone_number:
            return self.PHONE_STATE_PURCHASED
        return self.PHONE_STATE_UNASSIGNED

    @property
    def country_code(self):
        return self.venue.country_code or settings.DEFAULT_COUNTRY_CODE

    @property
    def customer_email(self):
        return getattr(self.customer, 'email', '') or ''

    @property
    def venue_email(self):
        return self.venue.contact_email or ''

    def days_until_event(self, today=None):
        today = today or timezone.localdate()
        event_date = self.event_date
        if isinstance(event_date, str):
            event_date = datetime.date.fromisoformat(event_date)
        return (event_date - today).days


class Message(models.Model):
    """A guest voice message captured from one completed carrier recording."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='messages')
    call_sid = models.CharField(max_length=64)
    recording_sid = models.CharField(max_length=64, unique=True)
    carrier_recording_url = models.URLField(max_length=1000, blank=True, default='')
    audio_path = models.CharField(max_length=500)
    audio_url = models.CharField(max_length=1000)
    duration_seconds = models.PositiveIntegerField(default=0)
    caller_number = models.CharField(max_length=30, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['event', 'created_at'], name='messages_event_created_idx'),
        ]

    def __str__(self):
        return f'Message({self.recording_sid}, event={self.event_id})'
