"""
Thin wrapper over Twilio's number search / purchase / release API.

Twilio SDK exceptions are translated here into the telephony exception
hierarchy; nothing above this module handles SDK error types directly.
"""
import logging
from collections import namedtuple

import requests
from django.conf import settings
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from .exceptions import (
    NoInventoryAvailable,
    PurchaseRejected,
    RecordingFetchError,
    TelephonyError,
    TransientCarrierError,
)

logger = logging.getLogger(__name__)

# Twilio error code for "The requested resource was not found"
TWILIO_NOT_FOUND = 20404

SEARCH_LIMIT = 5

PurchasedNumber = namedtuple('PurchasedNumber', ['phone_number', 'sid'])


def webhook_url(path):
    base = getattr(settings, 'WEBHOOK_BASE_URL', '') or 'https://localhost'
    return base.rstrip('/') + path


def voice_webhook_url():
    return webhook_url('/telephony/twilio/voice/')


def voice_complete_url():
    return webhook_url('/telephony/twilio/voice/complete/')


def recording_webhook_url():
    return webhook_url('/telephony/twilio/recording/')


def status_webhook_url():
    return webhook_url('/telephony/twilio/status/')


def _is_transient(exc):
    status = getattr(exc, 'status', None) or 0
    return status == 429 or status >= 500


class NumberInventoryClient:

    def __init__(self, client=None):
        if client is None:
            client = Client(
                settings.TWILIO_ACCOUNT_SID,
                settings.TWILIO_AUTH_TOKEN,
                http_client=TwilioHttpClient(timeout=settings.TWILIO_HTTP_TIMEOUT),
            )
        self.client = client

    def search_available(self, country_code, area_code=None):
        """
        Return candidate E.164 numbers for the country, best match first.
        Raises NoInventoryAvailable when the carrier has nothing to offer.
        """
        params = {'voice_enabled': True, 'limit': SEARCH_LIMIT}
        if area_code:
            params['area_code'] = area_code

        try:
            numbers = self.client.available_phone_numbers(country_code).local.list(**params)
        except TwilioRestException as exc:
            if _is_transient(exc):
                raise TransientCarrierError(f'Number search failed: {exc.msg}') from exc
            raise TelephonyError(f'Number search failed: {exc.msg}') from exc
        except (TwilioException, requests.RequestException) as exc:
            raise TransientCarrierError(f'Number search failed: {exc}') from exc

        candidates = [n.phone_number for n in numbers or [] if n.phone_number]
        if not candidates:
            raise NoInventoryAvailable(
                f'No available numbers in {country_code}'
                + (f' (area code {area_code})' if area_code else '')
            )
        logger.info(
            'Found %d candidate number(s) in %s area_code=%s',
            len(candidates),
            country_code,
            area_code,
        )
        return candidates

    def purchase(self, phone_number, friendly_name=''):
        """Buy the number and point its voice and status webhooks at us."""
        params = {
            'phone_number': phone_number,
            'voice_url': voice_webhook_url(),
            'voice_method': 'POST',
            'status_callback': status_webhook_url(),
            'status_callback_method': 'POST',
        }
        if friendly_name:
            params['friendly_name'] = friendly_name
        if settings.TWILIO_REGULATORY_BUNDLE_SID:
            params['bundle_sid'] = settings.TWILIO_REGULATORY_BUNDLE_SID
        if settings.TWILIO_ADDRESS_SID:
            params['address_sid'] = settings.TWILIO_ADDRESS_SID

        try:
            purchased = self.client.incoming_phone_numbers.create(**params)
        except TwilioRestException as exc:
            if _is_transient(exc):
                raise TransientCarrierError(f'Purchase of {phone_number} failed: {exc.msg}') from exc
            raise PurchaseRejected(
                f'Carrier declined purchase of {phone_number} (code {exc.code}): {exc.msg}'
            ) from exc
        except (TwilioException, requests.RequestException) as exc:
            raise TransientCarrierError(f'Purchase of {phone_number} failed: {exc}') from exc

        logger.info('Purchased %s (sid=%s)', purchased.phone_number, purchased.sid)
        return PurchasedNumber(purchased.phone_number, purchased.sid)

    def release(self, sid):
        """
        Relinquish a purchased number. Returns False when the carrier no
        longer knows the number, which callers treat as success.
        """
        try:
            self.client.incoming_phone_numbers(sid).delete()
        except TwilioRestException as exc:
            if exc.status == 404 or exc.code == TWILIO_NOT_FOUND:
                logger.info('Number %s already released at the carrier', sid)
                return False
            if _is_transient(exc):
                raise TransientCarrierError(f'Release of {sid} failed: {exc.msg}') from exc
            raise TelephonyError(f'Release of {sid} failed (code {exc.code}): {exc.msg}') from exc
        except (TwilioException, requests.RequestException) as exc:
            raise TransientCarrierError(f'Release of {sid} failed: {exc}') from exc

        logger.info('Released number %s', sid)
        return True

    def fetch_call_parties(self, call_sid):
        """Return (called_number, caller_number) for a call."""
        try:
            call = self.client.calls(call_sid).fetch()
        except TwilioRestException as exc:
            if _is_transient(exc):
                raise TransientCarrierError(f'Call lookup {call_sid} failed: {exc.msg}') from exc
            raise TelephonyError(f'Call lookup {call_sid} failed: {exc.msg}') from exc
        except (TwilioException, requests.RequestException) as exc:
            raise TransientCarrierError(f'Call lookup {call_sid} failed: {exc}') from exc
        return call.to, call.from_

    def fetch_recording(self, recording_url):
        """Download recording media. Twilio recordings require account auth."""
        media_url = recording_url if recording_url.endswith('.mp3') else recording_url + '.mp3'
        try:
            response = requests.get(
                media_url,
                auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN),
                timeout=settings.TWILIO_HTTP_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise RecordingFetchError(f'Could not download {media_url}: {exc}') from exc

        if not response.ok:
            raise RecordingFetchError(
                f'Could not download {media_url}: HTTP {response.status_code}'
            )
        if not response.content:
            raise RecordingFetchError(f'Empty recording body from {media_url}')
        return response.content
