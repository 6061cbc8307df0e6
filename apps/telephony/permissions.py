import hmac

from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import BasePermission
from twilio.request_validator import RequestValidator

CRON_AUTH = 'cron-secret'


class TwilioSignaturePermission(BasePermission):
    """
    DRF permission that validates the X-Twilio-Signature header
    on incoming webhook requests using Twilio's RequestValidator.
    Returns 403 if the signature is missing or invalid.
    """

    def has_permission(self, request, view):
        try:
            validator = RequestValidator(settings.TWILIO_AUTH_TOKEN)
            signature = request.META.get('HTTP_X_TWILIO_SIGNATURE', '')
            url = request.build_absolute_uri()
            # request.data may be a QueryDict (not a plain dict), convert it
            if hasattr(request.data, 'dict'):
                post_params = request.data.dict()
            elif isinstance(request.data, dict):
                post_params = request.data
            else:
                post_params = {}
            return validator.validate(url, post_params, signature)
        except Exception:
            return False


class CronSecretAuthentication(BaseAuthentication):
    """
    Authenticates the external scheduler by `Authorization: Bearer <CRON_SECRET>`.
    Requests without a bearer header fall through to the next authenticator.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if not header.startswith(self.keyword + ' '):
            return None

        secret = getattr(settings, 'CRON_SECRET', '')
        supplied = header[len(self.keyword) + 1:].strip()
        if not secret or not hmac.compare_digest(supplied.encode(), secret.encode()):
            raise AuthenticationFailed('Invalid scheduler secret.')
        return AnonymousUser(), CRON_AUTH

    def authenticate_header(self, request):
        return self.keyword


class IsCronRequest(BasePermission):

    def has_permission(self, request, view):
        return request.auth == CRON_AUTH
