import json

import pytest
import requests

from clinic.client import (
    AppointmentService, AuthSession, CredentialStore, NetworkError, PortalClient,
    ResponseError, ServiceError, StaffService, Unauthorized,
)


def _response(status, body=None, raw=None):
    resp = requests.Response()
    resp.status_code = status
    resp.reason = 'status'
    resp.headers['Content-Type'] = 'application/json'
    resp._content = raw if raw is not None else json.dumps(body or {}).encode()
    return resp


class Recorder:
    """Stands in for ``Session.request`` and records each call."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def store(tmp_path):
    return CredentialStore(tmp_path / 'auth.json')


@pytest.fixture
def redirects():
    return []


@pytest.fixture
def client(store, redirects):
    return PortalClient('http://portal.test/', store, on_unauthorized=redirects.append)


def _install(client, monkeypatch, *results):
    recorder = Recorder(*results)
    monkeypatch.setattr(client.session, 'request', recorder)
    return recorder


def test_credential_store_persists(store, tmp_path):
    assert store.token is None
    store.save('abc', {'_id': 1, 'role': 'patient'})
    again = CredentialStore(tmp_path / 'auth.json')
    assert again.token == 'abc'
    assert again.user == {'_id': 1, 'role': 'patient'}
    again.clear()
    assert CredentialStore(tmp_path / 'auth.json').token is None


def test_bearer_header_only_when_signed_in(client, store, monkeypatch):
    rec = _install(client, monkeypatch, _response(200, {'ok': True}), _response(200, {'ok': True}))
    client.get('/api/hospitals')
    assert 'Authorization' not in rec.calls[0][2]['headers']
    store.save('tok123', {'_id': 1})
    client.get('api/hospitals')
    method, url, kwargs = rec.calls[1]
    assert method == 'GET'
    assert url == 'http://portal.test/api/hospitals'
    assert kwargs['headers']['Authorization'] == 'Bearer tok123'
    assert kwargs['timeout'] == 10.0


def test_unauthorized_clears_store_and_redirects(client, store, redirects, monkeypatch):
    store.save('stale', {'_id': 1})
    _install(client, monkeypatch, _response(401, {'message': 'Token expired'}))
    with pytest.raises(Unauthorized):
        client.get('/api/users/verify')
    assert store.token is None
    assert redirects == ['/login']


def test_error_status_raises_without_clearing(client, store, redirects, monkeypatch):
    store.save('tok', {'_id': 1})
    _install(client, monkeypatch, _response(409, {'message': 'busy'}))
    with pytest.raises(ResponseError) as info:
        client.post('/api/appointments', json={})
    assert info.value.status_code == 409
    assert store.token == 'tok'
    assert redirects == []


def test_connection_error_becomes_network_error(client, monkeypatch):
    _install(client, monkeypatch, requests.ConnectionError('refused'))
    with pytest.raises(NetworkError):
        client.get('/api/hospitals')


def test_service_uses_server_message(client, monkeypatch):
    _install(client, monkeypatch, _response(409, {'ok': False, 'message': 'This time slot is already booked'}))
    with pytest.raises(ServiceError) as info:
        AppointmentService(client).book_appointment({'doctorId': 1})
    assert str(info.value) == 'This time slot is already booked'
    assert info.value.status_code == 409


def test_service_fallback_messages(client, monkeypatch):
    service = StaffService(client)
    _install(client, monkeypatch, _response(500, raw=b'<html>oops</html>'))
    with pytest.raises(ServiceError, match='An error occurred'):
        service.get_tasks()

    _install(client, monkeypatch, requests.Timeout('slow'))
    with pytest.raises(ServiceError, match='No response from server'):
        service.get_tasks()

    _install(client, monkeypatch, requests.exceptions.MissingSchema('bad url'))
    with pytest.raises(ServiceError, match='Error setting up request'):
        service.get_tasks()


def test_service_paths_and_bodies(client, monkeypatch):
    rec = _install(
        client, monkeypatch,
        _response(200, {'ok': True}), _response(200, {'ok': True}), _response(200, {'ok': True}),
    )
    AppointmentService(client).get_doctor_availability(4, '2024-05-15')
    StaffService(client).update_task_status(7, 'completed')
    StaffService(client).delete_staff(3, 'delete staff')
    assert rec.calls[0][1].endswith('/api/appointments/doctor-availability')
    assert rec.calls[0][2]['params'] == {'doctorId': 4, 'date': '2024-05-15'}
    assert rec.calls[1][0] == 'PATCH'
    assert rec.calls[1][2]['json'] == {'status': 'completed'}
    assert rec.calls[2][0] == 'DELETE'
    assert rec.calls[2][2]['json'] == {'confirm': 'delete staff'}


def test_login_remembers_user_and_logout_forgets(client, store, monkeypatch):
    body = {
        'ok': True, 'token': 'jwt-1', 'refresh': 'r', '_id': 5, 'name': 'Pat', 'email': 'pat@example.com',
        'role': 'patient', 'isAdmin': False, 'hospital': None, 'redirect': '/patient-dashboard',
    }
    rec = _install(client, monkeypatch, _response(200, body))
    session = AuthSession(client)
    assert session.login('pat@example.com', 'secret')['redirect'] == '/patient-dashboard'
    assert rec.calls[0][2]['json'] == {'email': 'pat@example.com', 'password': 'secret'}
    assert session.is_authenticated
    assert store.user == {'_id': 5, 'name': 'Pat', 'email': 'pat@example.com',
                          'role': 'patient', 'isAdmin': False, 'hospital': None}
    session.logout()
    assert not session.is_authenticated
    assert store.user is None


def test_failed_login_keeps_store_empty(client, store, monkeypatch):
    _install(client, monkeypatch, _response(400, {'ok': False, 'message': 'Invalid email or password'}))
    with pytest.raises(ServiceError, match='Invalid email or password'):
        AuthSession(client).login('x@example.com', 'nope')
    assert store.token is None
