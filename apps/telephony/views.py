"""
HTTP surface of the telephony core.

Carrier webhooks (Twilio signature required):
  POST /telephony/twilio/voice/            inbound call -> TwiML treatment
  POST /telephony/twilio/voice/complete/   after <Record> -> thank-you + hangup
  POST /telephony/twilio/recording/        completed recording -> Message
  POST /telephony/twilio/status/           call status, logged only

Triggers (staff session or scheduler bearer secret):
  POST /telephony/events/<id>/phone/purchase/
  POST /telephony/events/<id>/phone/release/

Scheduled jobs (scheduler bearer secret only):
  GET|POST /telephony/cron/purchase-upcoming-numbers/
  GET|POST /telephony/cron/release-expired-numbers/
"""
import logging

from django.http import HttpResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import exceptions
from rest_framework.authentication import SessionAuthentication
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from .error_logging import record_critical
from .exceptions import (
    EventCancelled,
    EventNotFound,
    InvalidRecordingCallback,
    NoInventoryAvailable,
    NumberNotAssigned,
    ProvisioningInProgress,
    PurchaseRejected,
    TransientCarrierError,
)
from .permissions import CronSecretAuthentication, IsCronRequest, TwilioSignaturePermission
from .provisioning import provision_number, run_purchase_batch
from .recordings import RecordingCallback, ingest_recording
from .release import release_event_number, run_release_batch
from .voice import build_completion_treatment, build_error_treatment, render_twiml, route_call

logger = logging.getLogger(__name__)

CALL_STATUSES_OK = ('queued', 'initiated', 'ringing', 'in-progress', 'completed')


def _xml(twiml, status=200):
    return HttpResponse(twiml, content_type='text/xml', status=status)


def _form_data(request):
    try:
        return request.data
    except Exception:
        logger.exception('Unparseable webhook body on %s', request.path)
        return {}


# --------------------------------------------------------------------------- #
# Carrier webhooks
# --------------------------------------------------------------------------- #

class TwimlErrorMixin:
    """
    Voice webhooks answer a rejected signature with a spoken error document,
    so the carrier always receives TwiML instead of a JSON error body.
    """

    def handle_exception(self, exc):
        if isinstance(exc, (exceptions.PermissionDenied, exceptions.NotAuthenticated)):
            logger.warning('Rejected unsigned voice webhook on %s', self.request.path)
            return _xml(render_twiml(build_error_treatment()), status=403)
        return super().handle_exception(exc)


@method_decorator(csrf_exempt, name='dispatch')
class VoiceWebhookView(TwimlErrorMixin, APIView):
    authentication_classes = []
    permission_classes = [TwilioSignaturePermission]

    def post(self, request, *args, **kwargs):
        data = _form_data(request)
        called_number = data.get('To', '')
        caller_number = data.get('From', '')
        call_sid = data.get('CallSid', '')

        logger.info('Incoming call %s: %s -> %s', call_sid, caller_number, called_number)
        return _xml(route_call(called_number, caller_number, call_sid))


@method_decorator(csrf_exempt, name='dispatch')
class VoiceCompleteView(TwimlErrorMixin, APIView):
    authentication_classes = []
    permission_classes = [TwilioSignaturePermission]

    def post(self, request, *args, **kwargs):
        try:
            return _xml(render_twiml(build_completion_treatment()))
        except Exception:
            logger.exception('Error building completion treatment')
            return _xml(render_twiml(build_error_treatment()))


@method_decorator(csrf_exempt, name='dispatch')
class RecordingWebhookView(APIView):
    authentication_classes = []
    permission_classes = [TwilioSignaturePermission]

    def post(self, request, *args, **kwargs):
        data = _form_data(request)
        try:
            callback = RecordingCallback.from_payload(data)
        except InvalidRecordingCallback as exc:
            logger.error('Rejecting recording callback: %s', exc)
            return Response({'error': 'Missing data', 'missing': exc.missing_fields}, status=400)

        logger.info(
            'Recording %s %s (%ss) for call %s',
            callback.recording_sid,
            callback.status,
            callback.duration_seconds,
            callback.call_sid,
        )
        if callback.status != 'completed':
            logger.warning(
                'Ignoring recording %s with status %s',
                callback.recording_sid,
                callback.status,
            )
            return Response({'success': True, 'ignored': True})

        try:
            message, created = ingest_recording(callback)
        except EventNotFound:
            return Response({'error': 'Event not found'}, status=404)
        except Exception:
            # Already recorded as critical by the pipeline.
            return Response({'error': 'Internal server error'}, status=500)

        return Response({'success': True, 'message_id': str(message.pk), 'created': created})


@method_decorator(csrf_exempt, name='dispatch')
class CallStatusCallbackView(APIView):
    """
    POST /telephony/twilio/status/

    Receives Twilio call status callbacks and writes them to the
    application log. Always acknowledges with {"success": true}.
    """

    authentication_classes = []
    permission_classes = []

    def post(self, request, *args, **kwargs):
        data = _form_data(request)
        call_sid = data.get('CallSid', '')
        status = data.get('CallStatus', '')
        duration = data.get('CallDuration', '')
        to = data.get('To', '')
        from_number = data.get('From', '')

        if status in CALL_STATUSES_OK:
            logger.info(
                '[Twilio] call %s %s -> %s: %s (%ss)',
                call_sid,
                from_number,
                to,
                status,
                duration,
            )
        else:
            logger.error(
                '[Twilio] call %s %s -> %s: %s',
                call_sid,
                from_number,
                to,
                status,
            )
        return Response({'success': True})


# --------------------------------------------------------------------------- #
# Admin / scheduler triggers
# --------------------------------------------------------------------------- #

PROVISION_ERROR_STATUS = {
    EventNotFound: 404,
    EventCancelled: 400,
    ProvisioningInProgress: 409,
    NoInventoryAvailable: 409,
    PurchaseRejected: 422,
    TransientCarrierError: 503,
}


def _text_field(data, name):
    """Optional string field from a JSON or form body; numbers are accepted as text."""
    value = data.get(name) if hasattr(data, 'get') else None
    if value is None:
        return None
    return str(value).strip() or None


def _error_status(exc, table):
    for exc_type, status in table.items():
        if isinstance(exc, exc_type):
            return status
    return 500


class PurchaseNumberView(APIView):
    authentication_classes = [CronSecretAuthentication, SessionAuthentication]
    permission_classes = [IsAdminUser | IsCronRequest]

    def post(self, request, event_id, *args, **kwargs):
        area_code = _text_field(request.data, 'area_code')
        country_code = _text_field(request.data, 'country_code')
        if country_code:
            country_code = country_code.upper()

        try:
            result = provision_number(event_id, country_code=country_code, area_code=area_code)
        except Exception as exc:
            status = _error_status(exc, PROVISION_ERROR_STATUS)
            if status == 500:
                logger.exception('Error purchasing number for event %s', event_id)
            return Response({'success': False, 'error': str(exc)}, status=status)

        return Response({
            'success': True,
            'phoneNumber': result.phone_number,
            'created': result.created,
        })


RELEASE_ERROR_STATUS = {
    EventNotFound: 404,
    NumberNotAssigned: 400,
    TransientCarrierError: 503,
}


class ReleaseNumberView(APIView):
    authentication_classes = [CronSecretAuthentication, SessionAuthentication]
    permission_classes = [IsAdminUser | IsCronRequest]

    def post(self, request, event_id, *args, **kwargs):
        try:
            result = release_event_number(event_id)
        except Exception as exc:
            status = _error_status(exc, RELEASE_ERROR_STATUS)
            if status == 500:
                logger.exception('Error releasing number for event %s', event_id)
            return Response({'success': False, 'error': str(exc)}, status=status)

        return Response({
            'success': True,
            'phoneNumber': result.phone_number,
            'releasedAt': result.released_at.isoformat(),
        })


class _CronJobView(APIView):
    authentication_classes = [CronSecretAuthentication]
    permission_classes = [IsCronRequest]
    source = ''

    def run(self):
        raise NotImplementedError

    def post(self, request, *args, **kwargs):
        try:
            summary = self.run()
        except Exception as exc:
            record_critical(self.source, exc, {'errorType': 'cron_failure'})
            return Response({'success': False, 'error': str(exc)}, status=500)
        return Response(summary.as_dict())

    def get(self, request, *args, **kwargs):
        return self.post(request, *args, **kwargs)


class PurchaseUpcomingNumbersView(_CronJobView):
    source = 'cron:purchase-numbers'

    def run(self):
        return run_purchase_batch()


class ReleaseExpiredNumbersView(_CronJobView):
    source = 'cron:release-numbers'

    def run(self):
        return run_release_batch()
