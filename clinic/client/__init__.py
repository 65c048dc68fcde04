"""
Python client for the hospital management API.

Mirrors what the web front end does: keep the bearer token and the
signed-in user in a small credential store, attach the token to every
request, and on a 401 forget the credentials and send the user back to
the login route.
"""
from .credentials import CredentialStore
from .errors import ClientError, NetworkError, RequestSetupError, ResponseError, ServiceError, Unauthorized
from .http import PortalClient
from .services import AppointmentService, AuthSession, StaffService

__all__ = [
    'AppointmentService',
    'AuthSession',
    'ClientError',
    'CredentialStore',
    'NetworkError',
    'PortalClient',
    'RequestSetupError',
    'ResponseError',
    'ServiceError',
    'StaffService',
    'Unauthorized',
]
