"""
Per-resource helpers over :class:`~clinic.client.http.PortalClient`.

Each method forwards to one endpoint and returns the decoded JSON.  Any
failure is re-raised as :class:`ServiceError` carrying the text to show
the user: the server's ``message`` when it sent one, otherwise a fixed
fallback depending on how far the request got.
"""
import functools
import logging

from .errors import NetworkError, RequestSetupError, ResponseError, ServiceError
from .http import PortalClient

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = 'An error occurred'
FALLBACK_NO_RESPONSE = 'No response from server'
FALLBACK_SETUP = 'Error setting up request'


def to_service_error(exc: Exception) -> ServiceError:
    if isinstance(exc, ResponseError):
        message = exc.payload().get('message') or FALLBACK_RESPONSE
        return ServiceError(message, status_code=exc.status_code)
    if isinstance(exc, NetworkError):
        return ServiceError(FALLBACK_NO_RESPONSE)
    return ServiceError(FALLBACK_SETUP)


def _service_call(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ResponseError, NetworkError, RequestSetupError) as e:
            raise to_service_error(e) from e
    return wrapper


class _Service:
    def __init__(self, client: PortalClient):
        self.client = client


class AppointmentService(_Service):

    @_service_call
    def get_user_appointments(self, **filters):
        return self.client.get('/api/appointments', params=filters or None).json()

    @_service_call
    def get_doctors_by_hospital(self, hospital_id):
        return self.client.get(f'/api/doctors/hospital/{hospital_id}').json()

    @_service_call
    def get_patients_by_hospital(self, hospital_id, search_query: str = ''):
        params = {'hospitalId': hospital_id, 'query': search_query}
        return self.client.get('/api/patients/search', params=params).json()

    @_service_call
    def book_appointment(self, data: dict):
        return self.client.post('/api/appointments', json=data).json()

    @_service_call
    def update_appointment_status(self, appointment_id, status: str):
        return self.client.put(f'/api/appointments/{appointment_id}/status', json={'status': status}).json()

    @_service_call
    def cancel_appointment(self, appointment_id):
        return self.client.put(f'/api/appointments/{appointment_id}/cancel').json()

    @_service_call
    def check_in(self, appointment_id):
        return self.client.patch(f'/api/appointments/{appointment_id}/check-in').json()

    @_service_call
    def get_doctor_availability(self, doctor_id, date: str):
        params = {'doctorId': doctor_id, 'date': date}
        return self.client.get('/api/appointments/doctor-availability', params=params).json()

    @_service_call
    def get_calendar(self, date: str, doctor_id=None):
        params = {'date': date}
        if doctor_id is not None:
            params['doctorId'] = doctor_id
        return self.client.get('/api/appointments/calendar', params=params).json()


class StaffService(_Service):

    @_service_call
    def get_profile(self):
        return self.client.get('/api/staff/profile').json()

    @_service_call
    def update_profile(self, data: dict):
        return self.client.put('/api/staff/profile', json=data).json()

    @_service_call
    def get_all_staff(self):
        return self.client.get('/api/staff').json()

    @_service_call
    def get_staff_by_hospital(self, hospital_id):
        return self.client.get(f'/api/staff/hospital/{hospital_id}').json()

    @_service_call
    def create_staff(self, data: dict):
        return self.client.post('/api/staff', json=data).json()

    @_service_call
    def update_staff(self, staff_id, data: dict):
        return self.client.put(f'/api/staff/{staff_id}', json=data).json()

    @_service_call
    def delete_staff(self, staff_id, confirm: str):
        return self.client.delete(f'/api/staff/{staff_id}', json={'confirm': confirm}).json()

    @_service_call
    def get_dashboard_stats(self):
        return self.client.get('/api/staff/dashboard/stats').json()

    @_service_call
    def get_tasks(self):
        return self.client.get('/api/staff/tasks').json()

    @_service_call
    def update_task_status(self, task_id, status: str):
        return self.client.patch(f'/api/staff/tasks/{task_id}/status', json={'status': status}).json()

    @_service_call
    def get_notifications(self):
        return self.client.get('/api/staff/notifications').json()

    @_service_call
    def mark_notification_read(self, notification_id):
        return self.client.patch(f'/api/staff/notifications/{notification_id}/read').json()


USER_KEYS = ('_id', 'name', 'email', 'role', 'isAdmin', 'hospital')


class AuthSession(_Service):
    """Sign-in state: the token and user kept in the client's store."""

    def _remember(self, data: dict) -> dict:
        user = {k: data.get(k) for k in USER_KEYS}
        self.client.store.save(data['token'], user)
        logger.info('signed in as %s (%s)', user.get('email'), user.get('role'))
        return data

    @_service_call
    def login(self, email: str, password: str) -> dict:
        data = self.client.post('/api/users/login', json={'email': email, 'password': password}).json()
        return self._remember(data)

    @_service_call
    def register(self, *, name: str, email: str, password: str, gender: str = '') -> dict:
        body = {'name': name, 'email': email, 'password': password, 'gender': gender}
        return self._remember(self.client.post('/api/users/register', json=body).json())

    def logout(self) -> None:
        self.client.store.clear()

    @property
    def user(self):
        return self.client.store.user

    @property
    def token(self):
        return self.client.store.token

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @_service_call
    def verify(self) -> dict:
        return self.client.get('/api/users/verify').json()['user']
