"""
Recording ingestion: turns a completed-recording callback into a stored
audio file and a Message row.

Storage keys are derived from (event id, recording sid), so a redelivered
callback overwrites the same object instead of duplicating it, and the
unique recording_sid on Message makes the row insert idempotent.

Any failure after the callback has been validated and the event resolved
puts a guest's message at risk of permanent loss: the carrier keeps raw
recordings only briefly and does not redeliver. Those failures are recorded
as critical, which also alerts operators.
"""
import logging

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import IntegrityError, transaction

from apps.events.models import Message

from .error_logging import record_critical, record_error, record_warning
from .exceptions import EventNotFound, InvalidRecordingCallback
from .inventory import NumberInventoryClient
from .voice import find_active_event

logger = logging.getLogger(__name__)

SOURCE = 'webhook:recording'

REQUIRED_FIELDS = ('RecordingSid', 'RecordingUrl', 'CallSid')


def _parse_duration(value):
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class RecordingCallback:
    """The fields of a Twilio recording status callback we act on."""

    def __init__(self, recording_sid, recording_url, call_sid, duration_seconds=0,
                 called_number='', caller_number='', status='completed'):
        self.recording_sid = recording_sid
        self.recording_url = recording_url
        self.call_sid = call_sid
        self.duration_seconds = duration_seconds
        self.called_number = called_number
        self.caller_number = caller_number
        self.status = status

    @classmethod
    def from_payload(cls, data):
        missing = [name for name in REQUIRED_FIELDS if not (data.get(name) or '').strip()]
        if missing:
            raise InvalidRecordingCallback(missing)
        return cls(
            recording_sid=data['RecordingSid'].strip(),
            recording_url=data['RecordingUrl'].strip(),
            call_sid=data['CallSid'].strip(),
            duration_seconds=_parse_duration(data.get('RecordingDuration')),
            called_number=(data.get('To') or '').strip(),
            caller_number=(data.get('From') or '').strip(),
            status=(data.get('RecordingStatus') or 'completed').strip(),
        )

    def log_context(self):
        return {
            'recordingSid': self.recording_sid,
            'callSid': self.call_sid,
            'calledNumber': self.called_number or 'unknown',
            'callerNumber': self.caller_number or 'unknown',
        }


def recording_storage_path(event_id, recording_sid):
    return f'{settings.RECORDINGS_STORAGE_PREFIX}/{event_id}/{recording_sid}.mp3'


def store_recording_audio(event_id, recording_sid, audio):
    """Write audio under its deterministic key, replacing any earlier copy."""
    path = recording_storage_path(event_id, recording_sid)
    if default_storage.exists(path):
        default_storage.delete(path)
    saved_path = default_storage.save(path, ContentFile(audio))
    return saved_path, default_storage.url(saved_path)


def _create_message(event, callback, audio_path, audio_url):
    defaults = {
        'event': event,
        'call_sid': callback.call_sid,
        'carrier_recording_url': callback.recording_url,
        'audio_path': audio_path,
        'audio_url': audio_url,
        'duration_seconds': callback.duration_seconds,
        'caller_number': callback.caller_number,
    }
    try:
        with transaction.atomic():
            return Message.objects.get_or_create(
                recording_sid=callback.recording_sid,
                defaults=defaults,
            )
    except IntegrityError:
        # A concurrent delivery of the same callback won the insert.
        return Message.objects.get(recording_sid=callback.recording_sid), False


def ingest_recording(callback, inventory=None):
    """
    Store the recording and create its Message. Returns (message, created).

    Raises EventNotFound when no active event owns the called number.
    Other failures are recorded as critical and re-raised.
    """
    existing = Message.objects.filter(recording_sid=callback.recording_sid).first()
    if existing is not None:
        logger.info('Recording %s already ingested as message %s', callback.recording_sid, existing.pk)
        return existing, False

    inventory = inventory or NumberInventoryClient()

    if not callback.called_number or not callback.caller_number:
        # Recording status callbacks may omit To/From; recover them from the call.
        try:
            called_number, caller_number = inventory.fetch_call_parties(callback.call_sid)
        except Exception as exc:
            if not callback.called_number:
                record_critical(SOURCE, exc, dict(callback.log_context(), errorType='call_lookup_failed'))
                raise
            # Routing only needs To; a missing caller is recorded and tolerated.
            record_warning(SOURCE, exc, dict(callback.log_context(), errorType='caller_lookup_failed'))
        else:
            callback.called_number = callback.called_number or called_number
            callback.caller_number = callback.caller_number or caller_number

    event = find_active_event(callback.called_number)
    if event is None:
        record_error(SOURCE, 'No active event for called number; recording dropped', dict(
            callback.log_context(),
            errorType='event_not_found',
        ))
        raise EventNotFound(f'No active event for {callback.called_number}')

    context = dict(callback.log_context(), eventId=str(event.pk))
    try:
        audio = inventory.fetch_recording(callback.recording_url)
        audio_path, audio_url = store_recording_audio(event.pk, callback.recording_sid, audio)
        message, created = _create_message(event, callback, audio_path, audio_url)
    except Exception as exc:
        record_critical(SOURCE, exc, dict(context, errorType='ingestion_failed'))
        raise

    logger.info(
        'Stored recording %s (%ss) from %s as message %s for event %s',
        callback.recording_sid,
        callback.duration_seconds,
        callback.caller_number,
        message.pk,
        event.pk,
    )
    return message, created
