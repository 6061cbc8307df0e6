from django.contrib import admin
from .models import Event, Message, Venue


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ('name', 'country_code', 'contact_email', 'created_at')
    search_fields = ('name', 'contact_email')
    list_filter = ('country_code',)


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'title', 'venue', 'event_date', 'status', 'phone_number',
        'phone_purchased_at', 'phone_release_scheduled_for', 'phone_released_at',
    )
    search_fields = ('id', 'title', 'phone_number', 'venue__name')
    list_filter = ('status', 'venue__country_code')
    readonly_fields = (
        'phone_number', 'phone_number_sid', 'phone_purchased_at',
        'phone_release_scheduled_for', 'phone_released_at', 'provisioning_lease_until',
    )
    ordering = ('-event_date',)


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('recording_sid', 'event', 'caller_number', 'duration_seconds', 'created_at')
    search_fields = ('recording_sid', 'call_sid', 'caller_number')
    ordering = ('-created_at',)
