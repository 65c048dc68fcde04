import logging
from typing import Callable, Optional

import requests

from .credentials import CredentialStore
from .errors import NetworkError, RequestSetupError, ResponseError, Unauthorized

logger = logging.getLogger(__name__)

LOGIN_ROUTE = '/login'


class PortalClient:
    """A configured :class:`requests.Session` for the portal API.

    Every request carries JSON headers and, when a token is stored,
    ``Authorization: Bearer <token>``.  Non-2xx answers raise
    :class:`ResponseError`; a 401 first clears the credential store and
    calls ``on_unauthorized('/login')``.  Nothing is retried.
    """

    def __init__(self, base_url: str, store: CredentialStore, *, timeout: float = 10.0,
                 on_unauthorized: Optional[Callable[[str], None]] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.store = store
        self.timeout = timeout
        self.on_unauthorized = on_unauthorized
        self.session = session or requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = dict(kwargs.pop('headers', None) or {})
        token = self.store.token
        if token:
            headers['Authorization'] = f'Bearer {token}'
        kwargs.setdefault('timeout', self.timeout)
        try:
            resp = self.session.request(method, self.url(path), headers=headers, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning('%s %s: no response (%s)', method, path, e)
            raise NetworkError(str(e)) from e
        except requests.RequestException as e:
            raise RequestSetupError(str(e)) from e

        if resp.status_code == 401:
            self.store.clear()
            if self.on_unauthorized:
                self.on_unauthorized(LOGIN_ROUTE)
            raise Unauthorized(resp)
        if resp.status_code >= 400:
            raise ResponseError(resp)
        return resp

    def get(self, path: str, **kwargs) -> requests.Response:
        return self.request('GET', path, **kwargs)

    def post(self, path: str, **kwargs) -> requests.Response:
        return self.request('POST', path, **kwargs)

    def put(self, path: str, **kwargs) -> requests.Response:
        return self.request('PUT', path, **kwargs)

    def patch(self, path: str, **kwargs) -> requests.Response:
        return self.request('PATCH', path, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        return self.request('DELETE', path, **kwargs)
