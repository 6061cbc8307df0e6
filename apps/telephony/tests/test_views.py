"""
Tests for the HTTP surface in apps.telephony.views.

Twilio webhooks are exercised with TwilioSignaturePermission patched out
(one test keeps it in place to prove unsigned requests are refused).
Carrier calls are mocked at the module that makes them.
"""
from unittest.mock import MagicMock, patch

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from apps.events.models import Message
from apps.events.tests.helpers import assign_number, make_event
from apps.telephony.exceptions import (
    EventCancelled,
    EventNotFound,
    NoInventoryAvailable,
    NumberNotAssigned,
    ProvisioningInProgress,
    PurchaseRejected,
    TransientCarrierError,
)
from apps.telephony.models import ErrorLog
from apps.telephony.provisioning import ProvisionResult
from apps.telephony.summary import BatchSummary
from apps.telephony.voice import ERROR_MESSAGE, STALE_NUMBER_MESSAGE, THANK_YOU_MESSAGE

PATCH_SIGNATURE = 'apps.telephony.permissions.TwilioSignaturePermission.has_permission'
PATCH_INVENTORY = 'apps.telephony.recordings.NumberInventoryClient'

NUMBER = '+441110000001'
CALLER = '+447700900000'
CRON_HEADER = {'HTTP_AUTHORIZATION': 'Bearer cron-secret'}


class WebhookTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()

    def _post(self, name, data):
        with patch(PATCH_SIGNATURE, return_value=True):
            return self.client.post(reverse(name), data=data, format='multipart')


# ---------------------------------------------------------------------------
# Voice
# ---------------------------------------------------------------------------
@override_settings(WEBHOOK_BASE_URL='https://example.com')
class VoiceWebhookViewTests(WebhookTestCase):

    def test_active_number_returns_record_twiml(self):
        assign_number(make_event(greeting_text='Leave us a message!'), NUMBER, 'PN1')
        response = self._post('twilio-voice', {'To': NUMBER, 'From': CALLER, 'CallSid': 'CA1'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/xml')
        body = response.content.decode()
        self.assertIn('Leave us a message!', body)
        self.assertIn('<Record', body)

    def test_stale_number_returns_apology(self):
        response = self._post('twilio-voice', {'To': NUMBER, 'From': CALLER, 'CallSid': 'CA1'})
        self.assertEqual(response.status_code, 200)
        self.assertIn(STALE_NUMBER_MESSAGE, response.content.decode())

    def test_unsigned_request_is_refused(self):
        response = self.client.post(
            reverse('twilio-voice'),
            data={'To': NUMBER, 'From': CALLER, 'CallSid': 'CA1'},
            format='multipart',
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response['Content-Type'], 'text/xml')
        self.assertIn(ERROR_MESSAGE, response.content.decode())

    def test_unsigned_complete_request_gets_twiml(self):
        response = self.client.post(
            reverse('twilio-voice-complete'),
            data={'CallSid': 'CA1'},
            format='multipart',
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response['Content-Type'], 'text/xml')
        self.assertIn('<Hangup', response.content.decode())

    def test_complete_says_thank_you_and_hangs_up(self):
        response = self._post('twilio-voice-complete', {'CallSid': 'CA1'})
        body = response.content.decode()
        self.assertEqual(response.status_code, 200)
        self.assertIn(THANK_YOU_MESSAGE, body)
        self.assertIn('<Hangup', body)


# ---------------------------------------------------------------------------
# Recording callback
# ---------------------------------------------------------------------------
class RecordingWebhookViewTests(WebhookTestCase):

    def _payload(self, **overrides):
        data = {
            'RecordingSid': 'RE1',
            'RecordingUrl': 'https://api.twilio.com/2010-04-01/Accounts/ACtest/Recordings/RE1',
            'CallSid': 'CA1',
            'RecordingDuration': '12',
            'RecordingStatus': 'completed',
            'To': NUMBER,
            'From': CALLER,
        }
        data.update(overrides)
        return data

    def _post_recording(self, data, inventory=None):
        inventory = inventory or MagicMock(**{'fetch_recording.return_value': b'ID3audio'})
        with patch(PATCH_INVENTORY, return_value=inventory):
            return self._post('twilio-recording', data)

    def test_creates_message(self):
        event = assign_number(make_event(), NUMBER, 'PN1')
        response = self._post_recording(self._payload())

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['success'])
        message = Message.objects.get()
        self.assertEqual(response.json()['message_id'], str(message.pk))
        self.assertEqual(message.event, event)

    def test_missing_fields_returns_400(self):
        response = self._post_recording({'CallSid': 'CA1', 'To': NUMBER})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['missing'], ['RecordingSid', 'RecordingUrl'])

    def test_unknown_number_returns_404(self):
        response = self._post_recording(self._payload())
        self.assertEqual(response.status_code, 404)
        self.assertEqual(Message.objects.count(), 0)

    def test_storage_failure_returns_500(self):
        assign_number(make_event(), NUMBER, 'PN1')
        with patch(
            'apps.telephony.recordings.store_recording_audio',
            side_effect=OSError('bucket unavailable'),
        ):
            response = self._post_recording(self._payload())

        self.assertEqual(response.status_code, 500)
        self.assertTrue(
            ErrorLog.objects.filter(source='webhook:recording', severity=ErrorLog.SEVERITY_CRITICAL).exists()
        )

    def test_non_completed_status_is_ignored(self):
        inventory = MagicMock()
        response = self._post_recording(self._payload(RecordingStatus='absent'), inventory=inventory)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['ignored'])
        inventory.fetch_recording.assert_not_called()


# ---------------------------------------------------------------------------
# Status callback
# ---------------------------------------------------------------------------
class CallStatusCallbackViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.url = reverse('twilio-status')

    def test_completed_logs_info(self):
        with patch('apps.telephony.views.logger') as mock_logger:
            response = self.client.post(
                self.url,
                data={'CallSid': 'CA1', 'CallStatus': 'completed', 'CallDuration': '30'},
                format='multipart',
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True})
        mock_logger.info.assert_called_once()
        mock_logger.error.assert_not_called()

    def test_failed_logs_error(self):
        with patch('apps.telephony.views.logger') as mock_logger:
            response = self.client.post(
                self.url,
                data={'CallSid': 'CA1', 'CallStatus': 'failed'},
                format='multipart',
            )
        self.assertEqual(response.status_code, 200)
        mock_logger.error.assert_called_once()


# ---------------------------------------------------------------------------
# Purchase / release triggers
# ---------------------------------------------------------------------------
class PurchaseNumberViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.event = make_event()
        self.url = reverse('event-phone-purchase', kwargs={'event_id': self.event.pk})
        User = get_user_model()
        self.staff = User.objects.create_user('staff', 'staff@example.com', 'pw', is_staff=True)
        self.guest = User.objects.create_user('guest', 'guest@example.com', 'pw')

    def test_staff_can_purchase(self):
        self.client.force_authenticate(user=self.staff)
        with patch(
            'apps.telephony.views.provision_number',
            return_value=ProvisionResult(NUMBER, 'PN1', True),
        ) as mock_provision:
            response = self.client.post(self.url, {'area_code': '020'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'phoneNumber': NUMBER, 'created': True})
        mock_provision.assert_called_once_with(self.event.pk, country_code=None, area_code='020')

    def test_scheduler_secret_can_purchase(self):
        with patch(
            'apps.telephony.views.provision_number',
            return_value=ProvisionResult(NUMBER, 'PN1', False),
        ):
            response = self.client.post(self.url, {}, format='json', **CRON_HEADER)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()['created'])

    def test_numeric_area_code_is_accepted(self):
        with patch(
            'apps.telephony.views.provision_number',
            return_value=ProvisionResult('+14155550100', 'PN1', True),
        ) as mock_provision:
            response = self.client.post(
                self.url, {'area_code': 415, 'country_code': 'us'}, format='json', **CRON_HEADER,
            )

        self.assertEqual(response.status_code, 200)
        mock_provision.assert_called_once_with(self.event.pk, country_code='US', area_code='415')

    def test_non_staff_is_forbidden(self):
        self.client.force_authenticate(user=self.guest)
        response = self.client.post(self.url, {}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_anonymous_is_unauthorized(self):
        response = self.client.post(self.url, {}, format='json')
        self.assertEqual(response.status_code, 401)

    def test_error_mapping(self):
        self.client.force_authenticate(user=self.staff)
        cases = [
            (EventNotFound('gone'), 404),
            (EventCancelled('cancelled'), 400),
            (ProvisioningInProgress('busy'), 409),
            (NoInventoryAvailable('none'), 409),
            (PurchaseRejected('bundle'), 422),
            (TransientCarrierError('timeout'), 503),
            (RuntimeError('boom'), 500),
        ]
        for exc, status in cases:
            with self.subTest(exc=type(exc).__name__):
                with patch('apps.telephony.views.provision_number', side_effect=exc):
                    response = self.client.post(self.url, {}, format='json')
                self.assertEqual(response.status_code, status)
                self.assertFalse(response.json()['success'])


class ReleaseNumberViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.event = assign_number(make_event(), NUMBER, 'PN1')
        self.url = reverse('event-phone-release', kwargs={'event_id': self.event.pk})

    def test_release_now(self):
        inventory = MagicMock(**{'release.return_value': True})
        with patch('apps.telephony.release.NumberInventoryClient', return_value=inventory):
            response = self.client.post(self.url, {}, format='json', **CRON_HEADER)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['phoneNumber'], NUMBER)
        inventory.release.assert_called_once_with('PN1')
        self.event.refresh_from_db()
        self.assertIsNotNone(self.event.phone_released_at)

    def test_event_without_number_returns_400(self):
        url = reverse('event-phone-release', kwargs={'event_id': make_event().pk})
        with patch('apps.telephony.views.release_event_number', side_effect=NumberNotAssigned('none')):
            response = self.client.post(url, {}, format='json', **CRON_HEADER)
        self.assertEqual(response.status_code, 400)


# ---------------------------------------------------------------------------
# Scheduled job endpoints
# ---------------------------------------------------------------------------
class CronViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()

    def _summary(self, action, succeeded=0, failed=0):
        summary = BatchSummary(action)
        for _ in range(succeeded):
            summary.add_success()
        for i in range(failed):
            summary.add_failure(f'item {i}', Exception('failed'))
        return summary

    def test_release_with_secret(self):
        with patch(
            'apps.telephony.views.run_release_batch',
            return_value=self._summary('released', succeeded=2, failed=1),
        ):
            response = self.client.get(reverse('cron-release-expired-numbers'), **CRON_HEADER)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['released'], 2)
        self.assertEqual(body['failed'], 1)
        self.assertEqual(len(body['errors']), 1)

    def test_purchase_with_secret_via_post(self):
        with patch(
            'apps.telephony.views.run_purchase_batch',
            return_value=self._summary('purchased', succeeded=3),
        ):
            response = self.client.post(reverse('cron-purchase-upcoming-numbers'), **CRON_HEADER)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['purchased'], 3)

    def test_missing_secret_is_401(self):
        with patch('apps.telephony.views.run_release_batch') as mock_run:
            response = self.client.get(reverse('cron-release-expired-numbers'))
        self.assertEqual(response.status_code, 401)
        mock_run.assert_not_called()

    def test_wrong_secret_is_401(self):
        with patch('apps.telephony.views.run_release_batch') as mock_run:
            response = self.client.get(
                reverse('cron-release-expired-numbers'),
                HTTP_AUTHORIZATION='Bearer wrong',
            )
        self.assertEqual(response.status_code, 401)
        mock_run.assert_not_called()

    def test_staff_session_is_not_enough(self):
        User = get_user_model()
        staff = User.objects.create_user('staff', 'staff@example.com', 'pw', is_staff=True)
        self.client.force_login(staff)
        response = self.client.get(reverse('cron-release-expired-numbers'))
        self.assertEqual(response.status_code, 401)

    @override_settings(CRON_SECRET='')
    def test_unset_secret_rejects_everything(self):
        response = self.client.get(reverse('cron-release-expired-numbers'), **CRON_HEADER)
        self.assertEqual(response.status_code, 401)

    def test_unexpected_failure_is_critical(self):
        with patch('apps.telephony.views.run_release_batch', side_effect=Exception('db down')):
            response = self.client.get(reverse('cron-release-expired-numbers'), **CRON_HEADER)
        self.assertEqual(response.status_code, 500)
        entry = ErrorLog.objects.get(source='cron:release-numbers')
        self.assertEqual(entry.severity, ErrorLog.SEVERITY_CRITICAL)
