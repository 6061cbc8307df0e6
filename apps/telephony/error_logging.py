"""
Persistent error log for the number lifecycle and recording pipeline.

Every entry goes to the application log at the matching level and to the
ErrorLog table so operators can review failures after the fact. Critical
entries (voice messages at risk of permanent loss) also email ADMINS.

Writing the log never raises: a broken error log must not turn a handled
failure into an unhandled one.
"""
import json
import logging
import traceback

from django.core.mail import mail_admins

from .models import ErrorLog

logger = logging.getLogger(__name__)

_LEVELS = {
    ErrorLog.SEVERITY_INFO: logging.INFO,
    ErrorLog.SEVERITY_WARNING: logging.WARNING,
    ErrorLog.SEVERITY_ERROR: logging.ERROR,
    ErrorLog.SEVERITY_CRITICAL: logging.CRITICAL,
}


def _json_safe(context):
    if not context:
        return None
    return json.loads(json.dumps(context, default=str))


def record_error(source, error, context=None, severity=ErrorLog.SEVERITY_ERROR):
    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        stack = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
    else:
        message = str(error)
        stack = ''

    logger.log(
        _LEVELS.get(severity, logging.ERROR),
        '[%s] %s: %s context=%s',
        severity.upper(),
        source,
        message,
        context or {},
    )

    try:
        ErrorLog.objects.create(
            source=source,
            message=message,
            stack=stack,
            context=_json_safe(context),
            severity=severity,
        )
    except Exception:
        logger.exception('Failed to persist error log entry for %s', source)

    if severity == ErrorLog.SEVERITY_CRITICAL:
        _alert_operators(source, message, context)


def _alert_operators(source, message, context):
    lines = [f'Source: {source}', f'Error: {message}', '']
    for key, value in (context or {}).items():
        lines.append(f'{key}: {value}')
    try:
        mail_admins(f'CRITICAL: {source}', '\n'.join(lines))
    except Exception:
        logger.exception('Failed to email operators about critical error in %s', source)


def record_info(source, message, context=None):
    record_error(source, message, context, severity=ErrorLog.SEVERITY_INFO)


def record_warning(source, error, context=None):
    record_error(source, error, context, severity=ErrorLog.SEVERITY_WARNING)


def record_critical(source, error, context=None):
    record_error(source, error, context, severity=ErrorLog.SEVERITY_CRITICAL)
