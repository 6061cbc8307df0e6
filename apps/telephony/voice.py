"""
Call treatment for inbound calls.

A treatment is a list of steps (PlayAudio | SayText | Record | Hangup)
built from the event, then rendered to TwiML. Building never touches the
carrier, so treatments are testable as plain data.
"""
import logging
from collections import namedtuple

from django.conf import settings
from twilio.twiml.voice_response import VoiceResponse

from apps.events.models import Event

from .inventory import recording_webhook_url, voice_complete_url

logger = logging.getLogger(__name__)

PlayAudio = namedtuple('PlayAudio', ['url'])
SayText = namedtuple('SayText', ['text', 'voice'])
Record = namedtuple('Record', ['max_length', 'callback_url', 'action_url'])
Hangup = namedtuple('Hangup', [])

FALLBACK_GREETING = 'Please leave your message after the beep.'
THANK_YOU_MESSAGE = 'Thank you for your message. Goodbye.'
STALE_NUMBER_MESSAGE = (
    'Sorry, this number is not currently active. Please contact the event organiser.'
)
ERROR_MESSAGE = 'An error occurred. Please try again later.'


def _say(text):
    return SayText(text, settings.GREETING_VOICE)


def select_greeting(event):
    """Custom upload, then AI audio, then spoken greeting text, then the fallback."""
    if event.custom_greeting_audio_url:
        return PlayAudio(event.custom_greeting_audio_url)
    if event.ai_greeting_audio_url:
        return PlayAudio(event.ai_greeting_audio_url)
    if event.greeting_text and event.greeting_text.strip():
        return _say(event.greeting_text.strip())
    return _say(FALLBACK_GREETING)


def build_call_treatment(event):
    max_length = event.max_message_duration or settings.DEFAULT_MAX_MESSAGE_SECONDS
    return [
        select_greeting(event),
        Record(max_length, recording_webhook_url(), voice_complete_url()),
        _say(THANK_YOU_MESSAGE),
        Hangup(),
    ]


def build_completion_treatment():
    return [_say(THANK_YOU_MESSAGE), Hangup()]


def build_stale_number_treatment():
    return [_say(STALE_NUMBER_MESSAGE), Hangup()]


def build_error_treatment():
    return [_say(ERROR_MESSAGE), Hangup()]


def render_twiml(steps):
    response = VoiceResponse()
    for step in steps:
        if isinstance(step, PlayAudio):
            response.play(step.url)
        elif isinstance(step, SayText):
            response.say(step.text, voice=step.voice)
        elif isinstance(step, Record):
            response.record(
                action=step.action_url,
                method='POST',
                max_length=step.max_length,
                play_beep=True,
                trim='trim-silence',
                transcribe=False,
                recording_status_callback=step.callback_url,
                recording_status_callback_event='completed',
                recording_status_callback_method='POST',
            )
        elif isinstance(step, Hangup):
            response.hangup()
        else:
            raise TypeError(f'Unknown call treatment step: {step!r}')
    return str(response)


def find_active_event(called_number):
    if not called_number:
        return None
    return (
        Event.objects.filter(
            phone_number=called_number,
            status=Event.STATUS_ACTIVE,
            phone_released_at__isnull=True,
        )
        .order_by('-phone_purchased_at')
        .first()
    )


def route_call(called_number, caller_number, call_sid):
    """Return the TwiML document for an inbound call. Never raises."""
    try:
        event = find_active_event(called_number)
        if event is None:
            logger.warning(
                'No active event for called number %s (call=%s from=%s)',
                called_number,
                call_sid,
                caller_number,
            )
            return render_twiml(build_stale_number_treatment())

        logger.info(
            'Routing call %s from %s to event %s',
            call_sid,
            caller_number,
            event.pk,
        )
        return render_twiml(build_call_treatment(event))
    except Exception:
        logger.exception('Error routing call %s to %s', call_sid, called_number)
        return render_twiml(build_error_treatment())
