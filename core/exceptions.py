"""
Error taxonomy and the REST framework exception handler.

Every error response has the shape ``{"success": false, "error": "..."}``.
Serializer failures add an ``errors`` map, and outside production a
``debug`` object with the exception type and stack is appended.
"""

import logging
import traceback

from rest_framework import exceptions, status
from rest_framework.response import Response

from .conf import get_setting
from .gateway import GatewayError

logger = logging.getLogger(__name__)


class NotFound(exceptions.APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class ValidationError(exceptions.APIException):
    """Missing or malformed input, reported as a single message."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class Forbidden(exceptions.APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class InvalidTransition(exceptions.APIException):
    """A status change that is not on the allow-list for the current state."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_transition'


class Unauthorized(exceptions.AuthenticationFailed):
    default_detail = 'Authentication credentials are invalid.'
    default_code = 'unauthorized'


class Unexpected(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An unexpected error occurred.'
    default_code = 'unexpected'


def _message(data):
    """Pull a single human readable message out of DRF error data."""
    if isinstance(data, dict):
        if 'detail' in data:
            return str(data['detail'])
        return 'Validation failed.'
    if isinstance(data, list) and data:
        return str(data[0])
    return str(data)


def _debug_payload(exc):
    return {
        'type': type(exc).__name__,
        'detail': str(exc),
        'stack': traceback.format_exception(type(exc), exc, exc.__traceback__),
    }


def api_exception_handler(exc, context):
    """
    Render every exception as the standard error envelope.

    Gateway errors become ``Unexpected`` (``invalid_row`` becomes a 400),
    and anything DRF does not recognise is logged and reported as a 500.

    Args:
        exc: The raised exception
        context: DRF handler context (view, request, args, kwargs)

    Returns:
        Response: The error response
    """
    # rest_framework.views resolves the authentication classes on import
    from rest_framework.views import exception_handler

    original = exc
    view = context.get('view')
    view_name = type(view).__name__ if view is not None else 'unknown view'

    if isinstance(exc, GatewayError):
        if exc.code == 'invalid_row':
            exc = exceptions.ValidationError(exc.details or str(exc))
        else:
            logger.error(f"Persistence error in {view_name}: [{exc.code}] {exc}")
            exc = Unexpected()

    response = exception_handler(exc, context)

    if response is None:
        logger.exception(f"Unhandled error in {view_name}: {original}", exc_info=original)
        response = Response(status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        response.data = {'detail': Unexpected.default_detail}

    data = response.data
    payload = {'success': False, 'error': _message(data)}

    if isinstance(exc, exceptions.ValidationError):
        payload['errors'] = data

    if get_setting('EXPOSE_ERROR_DETAILS'):
        payload['debug'] = _debug_payload(original)

    response.data = payload
    return response
