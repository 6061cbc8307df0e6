"""
Unit tests for apps.telephony.inventory.NumberInventoryClient.

The Twilio REST client is replaced with a MagicMock; these tests pin the
translation of SDK errors into the telephony exception hierarchy.
"""
from unittest.mock import MagicMock, patch

import requests
from django.test import SimpleTestCase, override_settings
from twilio.base.exceptions import TwilioRestException

from apps.telephony.exceptions import (
    NoInventoryAvailable,
    PurchaseRejected,
    RecordingFetchError,
    TelephonyError,
    TransientCarrierError,
)
from apps.telephony.inventory import NumberInventoryClient, PurchasedNumber


def rest_error(status, code=None, msg='error'):
    return TwilioRestException(status, 'https://api.twilio.com/x', msg=msg, code=code)


def available(*numbers):
    return [MagicMock(phone_number=n) for n in numbers]


@override_settings(
    TWILIO_REGULATORY_BUNDLE_SID='',
    TWILIO_ADDRESS_SID='',
    WEBHOOK_BASE_URL='https://example.com',
)
class NumberInventoryClientTests(SimpleTestCase):

    def setUp(self):
        self.twilio = MagicMock()
        self.inventory = NumberInventoryClient(client=self.twilio)

    # ------------------------------------------------------------------
    # search_available
    # ------------------------------------------------------------------

    def test_search_returns_candidates(self):
        self.twilio.available_phone_numbers.return_value.local.list.return_value = available(
            '+441110000001', '+441110000002',
        )
        result = self.inventory.search_available('GB')
        self.assertEqual(result, ['+441110000001', '+441110000002'])
        self.twilio.available_phone_numbers.assert_called_once_with('GB')
        self.twilio.available_phone_numbers.return_value.local.list.assert_called_once_with(
            voice_enabled=True, limit=5,
        )

    def test_search_passes_area_code_hint(self):
        self.twilio.available_phone_numbers.return_value.local.list.return_value = available('+12125550100')
        self.inventory.search_available('US', area_code='212')
        _, kwargs = self.twilio.available_phone_numbers.return_value.local.list.call_args
        self.assertEqual(kwargs['area_code'], '212')

    def test_empty_search_raises_no_inventory(self):
        self.twilio.available_phone_numbers.return_value.local.list.return_value = []
        with self.assertRaises(NoInventoryAvailable):
            self.inventory.search_available('GB')

    def test_search_5xx_is_transient(self):
        self.twilio.available_phone_numbers.return_value.local.list.side_effect = rest_error(503)
        with self.assertRaises(TransientCarrierError):
            self.inventory.search_available('GB')

    # ------------------------------------------------------------------
    # purchase
    # ------------------------------------------------------------------

    def test_purchase_configures_webhooks(self):
        self.twilio.incoming_phone_numbers.create.return_value = MagicMock(
            phone_number='+441110000001', sid='PN1',
        )
        result = self.inventory.purchase('+441110000001')

        self.assertEqual(result, PurchasedNumber('+441110000001', 'PN1'))
        kwargs = self.twilio.incoming_phone_numbers.create.call_args.kwargs
        self.assertEqual(kwargs['voice_url'], 'https://example.com/telephony/twilio/voice/')
        self.assertEqual(kwargs['voice_method'], 'POST')
        self.assertEqual(kwargs['status_callback'], 'https://example.com/telephony/twilio/status/')
        self.assertNotIn('bundle_sid', kwargs)

    @override_settings(TWILIO_REGULATORY_BUNDLE_SID='BU1', TWILIO_ADDRESS_SID='AD1')
    def test_purchase_attaches_regulatory_details(self):
        self.twilio.incoming_phone_numbers.create.return_value = MagicMock(
            phone_number='+441110000001', sid='PN1',
        )
        self.inventory.purchase('+441110000001')
        kwargs = self.twilio.incoming_phone_numbers.create.call_args.kwargs
        self.assertEqual(kwargs['bundle_sid'], 'BU1')
        self.assertEqual(kwargs['address_sid'], 'AD1')

    def test_purchase_4xx_is_rejected(self):
        self.twilio.incoming_phone_numbers.create.side_effect = rest_error(400, code=21649)
        with self.assertRaises(PurchaseRejected):
            self.inventory.purchase('+441110000001')

    def test_purchase_rate_limit_is_transient(self):
        self.twilio.incoming_phone_numbers.create.side_effect = rest_error(429)
        with self.assertRaises(TransientCarrierError):
            self.inventory.purchase('+441110000001')

    def test_purchase_network_error_is_transient(self):
        self.twilio.incoming_phone_numbers.create.side_effect = requests.ConnectionError('reset')
        with self.assertRaises(TransientCarrierError):
            self.inventory.purchase('+441110000001')

    # ------------------------------------------------------------------
    # release
    # ------------------------------------------------------------------

    def test_release_returns_true(self):
        self.assertTrue(self.inventory.release('PN1'))
        self.twilio.incoming_phone_numbers.assert_called_once_with('PN1')
        self.twilio.incoming_phone_numbers.return_value.delete.assert_called_once()

    def test_release_of_unknown_number_is_success(self):
        self.twilio.incoming_phone_numbers.return_value.delete.side_effect = rest_error(404, code=20404)
        self.assertFalse(self.inventory.release('PN1'))

    def test_release_5xx_is_transient(self):
        self.twilio.incoming_phone_numbers.return_value.delete.side_effect = rest_error(500)
        with self.assertRaises(TransientCarrierError):
            self.inventory.release('PN1')

    def test_release_other_4xx_raises(self):
        self.twilio.incoming_phone_numbers.return_value.delete.side_effect = rest_error(403)
        with self.assertRaises(TelephonyError):
            self.inventory.release('PN1')

    # ------------------------------------------------------------------
    # fetch_call_parties / fetch_recording
    # ------------------------------------------------------------------

    def test_fetch_call_parties(self):
        self.twilio.calls.return_value.fetch.return_value = MagicMock(to='+441110000001', from_='+447700900000')
        self.assertEqual(
            self.inventory.fetch_call_parties('CA1'),
            ('+441110000001', '+447700900000'),
        )

    @override_settings(TWILIO_ACCOUNT_SID='ACtest', TWILIO_AUTH_TOKEN='test_token')
    def test_fetch_recording_downloads_mp3_with_auth(self):
        response = MagicMock(ok=True, status_code=200, content=b'ID3audio')
        with patch('apps.telephony.inventory.requests.get', return_value=response) as mock_get:
            audio = self.inventory.fetch_recording('https://api.twilio.com/Recordings/RE1')
        self.assertEqual(audio, b'ID3audio')
        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], 'https://api.twilio.com/Recordings/RE1.mp3')
        self.assertEqual(kwargs['auth'], ('ACtest', 'test_token'))

    def test_fetch_recording_http_error(self):
        response = MagicMock(ok=False, status_code=404, content=b'')
        with patch('apps.telephony.inventory.requests.get', return_value=response):
            with self.assertRaises(RecordingFetchError):
                self.inventory.fetch_recording('https://api.twilio.com/Recordings/RE1')

    def test_fetch_recording_empty_body(self):
        response = MagicMock(ok=True, status_code=200, content=b'')
        with patch('apps.telephony.inventory.requests.get', return_value=response):
            with self.assertRaises(RecordingFetchError):
                self.inventory.fetch_recording('https://api.twilio.com/Recordings/RE1')


class DefaultClientTests(SimpleTestCase):

    def test_builds_twilio_client_from_settings(self):
        with patch('apps.telephony.inventory.Client') as MockClient:
            inventory = NumberInventoryClient()
        args, _ = MockClient.call_args
        self.assertEqual(args, ('ACtest', 'test_token'))
        self.assertIs(inventory.client, MockClient.return_value)
