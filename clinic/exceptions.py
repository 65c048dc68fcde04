import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with the current state of the resource.'
    default_code = 'conflict'


def _first_message(detail):
    if isinstance(detail, dict):
        if 'detail' in detail:
            return _first_message(detail['detail'])
        for key, value in detail.items():
            msg = _first_message(value)
            return msg if key == 'non_field_errors' else f"{key}: {msg}"
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled error in %s', context.get('view').__class__.__name__, exc_info=exc)
        return Response(
            {'ok': False, 'message': 'Internal server error',
             'error': {'code': 'server_error', 'message': str(exc)}},
            status=500,
        )
    # normalize response
    code = getattr(exc, 'default_code', 'api_error')
    message = _first_message(resp.data) or 'An error occurred'
    resp.data = {'ok': False, 'message': message, 'error': {'code': code, 'message': resp.data}}
    return resp
