import itertools

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinic.models import DoctorProfile, Hospital, PatientProfile, StaffProfile, User

PASSWORD = 'Ward7!Lantern-42'


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and cached stats live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client(user):
        c = APIClient()
        c.force_authenticate(user=user)
        return c
    return _client


@pytest.fixture
def hospital(db):
    return Hospital.objects.create(name='City General', specialties=['Cardiology', 'General Medicine'])


@pytest.fixture
def other_hospital(db):
    return Hospital.objects.create(name='Riverside Medical', specialties=['Pediatrics'])


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role, hospital=None, **extra):
        n = next(counter)
        email = extra.pop('email', f'{role}{n}@example.com')
        name = extra.pop('name', f'{role.title()} {n}')
        return User.objects.create_user(
            username=f'{role}{n}', email=email, password=PASSWORD,
            role=role, hospital=hospital, name=name, **extra,
        )
    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user('admin')


@pytest.fixture
def make_doctor(make_user):
    def _make(hospital=None, specialization='Cardiology', **extra):
        user = make_user('doctor', hospital, **extra)
        return DoctorProfile.objects.create(user=user, hospital=hospital, specialization=specialization, fees=500)
    return _make


@pytest.fixture
def make_patient(make_user):
    def _make(hospital=None, doctor=None, **extra):
        user = make_user('patient', hospital, **extra)
        return PatientProfile.objects.create(user=user, hospital=hospital, doctor=doctor)
    return _make


@pytest.fixture
def make_staff(make_user):
    def _make(hospital=None, **extra):
        user = make_user('staff', hospital, **extra)
        return StaffProfile.objects.create(user=user, hospital=hospital, department='Reception')
    return _make
