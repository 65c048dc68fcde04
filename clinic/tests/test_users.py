import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from clinic.models import Appointment, DoctorProfile, PatientProfile, StaffProfile, User

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def change(client, user, **body):
    return client.put(reverse('user-detail', args=[user.id]), body, format='json')


def test_promoting_patient_to_doctor_swaps_profile(client_for, admin_user, hospital, make_patient):
    patient = make_patient(hospital)
    r = change(client_for(admin_user), patient.user, role='doctor')
    assert r.status_code == 200
    assert r.data['role'] == 'doctor'
    assert not PatientProfile.objects.filter(user_id=patient.user_id).exists()
    doctor = DoctorProfile.objects.get(user_id=patient.user_id)
    assert doctor.hospital_id == hospital.id

    user = User.objects.get(id=patient.user_id)
    r = client_for(user).get(reverse('doctor-profile'))
    assert r.status_code == 200
    assert r.data['_id'] == doctor.id


def test_role_change_refused_while_appointments_exist(client_for, admin_user, hospital, make_doctor,
                                                      make_patient):
    doctor = make_doctor(hospital)
    Appointment.objects.create(doctor=doctor, patient=make_patient(hospital), hospital=hospital,
                               appointment_date=timezone.localdate(), time_slot='09:00')
    r = change(client_for(admin_user), doctor.user, role='patient')
    assert r.status_code == 400
    assert r.data['message'] == 'role: Cannot change role: the doctor profile still has appointments'
    assert User.objects.get(id=doctor.user_id).role == 'doctor'
    assert DoctorProfile.objects.filter(id=doctor.id).exists()
    assert not PatientProfile.objects.filter(user_id=doctor.user_id).exists()


def test_demoted_doctor_leaves_doctor_listing(client_for, admin_user, hospital, make_doctor):
    doctor = make_doctor(hospital)
    client = client_for(admin_user)
    assert change(client, doctor.user, role='staff').status_code == 200
    assert not DoctorProfile.objects.filter(user_id=doctor.user_id).exists()
    assert StaffProfile.objects.get(user_id=doctor.user_id).hospital_id == hospital.id
    assert doctor.id not in [d['_id'] for d in client.get(reverse('doctors')).data]


def test_hospital_change_moves_profile(client_for, admin_user, hospital, other_hospital, make_staff):
    staff = make_staff(hospital)
    r = change(client_for(admin_user), staff.user, hospital=other_hospital.id)
    assert r.data['hospital'] == other_hospital.id
    staff.refresh_from_db()
    assert staff.hospital_id == other_hospital.id


def test_own_profile_read_and_update(client_for, make_user):
    user = make_user('staff', email='desk@example.com')
    client = client_for(user)
    assert client.get(reverse('my-profile')).data['email'] == 'desk@example.com'

    r = client.put(reverse('update-profile'), {'name': 'Front Desk', 'email': 'Desk2@Example.com'},
                   format='json')
    assert r.status_code == 200
    assert r.data['name'] == 'Front Desk'
    assert r.data['email'] == 'desk2@example.com'
    assert r.data['role'] == 'staff'


def test_update_profile_rejects_taken_email(client_for, make_user):
    make_user('patient', email='taken@example.com')
    user = make_user('patient')
    r = client_for(user).put(reverse('update-profile'), {'email': 'taken@example.com'}, format='json')
    assert r.status_code == 400


def test_change_password_revokes_refresh_tokens(api_client, make_user):
    make_user('doctor', email='doc@example.com')
    data = api_client.post(reverse('login'), {'email': 'doc@example.com', 'password': PASSWORD},
                           format='json').data
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['token']}")

    r = client.put(reverse('change-password'), {'currentPassword': 'nope', 'newPassword': 'Harbor9!Quill-77'},
                   format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'currentPassword: Current password is incorrect'
    r = client.put(reverse('change-password'), {'currentPassword': PASSWORD, 'newPassword': '123'},
                   format='json')
    assert r.status_code == 400

    r = client.put(reverse('change-password'), {'currentPassword': PASSWORD, 'newPassword': 'Harbor9!Quill-77'},
                   format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] == 1
    assert api_client.post(reverse('token-refresh'), {'refresh': data['refresh']},
                           format='json').status_code == 401
    assert api_client.post(reverse('login'), {'email': 'doc@example.com', 'password': PASSWORD},
                           format='json').status_code == 400
    assert api_client.post(reverse('login'), {'email': 'doc@example.com', 'password': 'Harbor9!Quill-77'},
                           format='json').status_code == 200
