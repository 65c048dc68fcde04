import datetime as dt

import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.models import Appointment, DoctorProfile, User

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def _book(doctor, patient, day=None, slot='09:00', status='pending'):
    return Appointment.objects.create(
        doctor=doctor, patient=patient, hospital_id=doctor.hospital_id,
        appointment_date=day or timezone.localdate(), time_slot=slot, status=status,
    )


def test_admin_creates_doctor_account(client_for, admin_user, hospital):
    r = client_for(admin_user).post(reverse('doctors'), {
        'name': 'Dr. House', 'email': 'house@example.com', 'password': PASSWORD,
        'hospitalId': hospital.id, 'specialization': 'Diagnostics', 'experience': 20, 'fees': '750.00',
    }, format='json')
    assert r.status_code == 201
    assert r.data['hospital'] == {'_id': hospital.id, 'name': hospital.name}
    assert r.data['fees'] == 750.0
    user = User.objects.get(email='house@example.com')
    assert user.role == 'doctor'
    assert user.hospital_id == hospital.id


def test_list_counts_and_filters(client_for, admin_user, hospital, make_doctor, make_patient):
    cardio = make_doctor(hospital, 'Cardiology', name='Alice Heart')
    make_doctor(hospital, 'Dermatology', name='Bob Skin')
    p1, p2 = make_patient(hospital), make_patient(hospital)
    _book(cardio, p1, slot='09:00')
    _book(cardio, p2, slot='09:30')
    _book(cardio, p1, slot='10:00')
    client = client_for(admin_user)

    r = client.get(reverse('doctors'), {'q': 'cardio'})
    assert len(r.data) == 1
    assert r.data[0]['appointments'] == 3
    assert r.data[0]['patients'] == 2

    r = client.get(reverse('doctors'), {'q': 'bob'})
    assert [d['name'] for d in r.data] == ['Bob Skin']


def test_grouped_keeps_empty_hospitals_without_filters(client_for, admin_user, hospital, other_hospital,
                                                       make_doctor):
    make_doctor(hospital)
    make_doctor(None)
    r = client_for(admin_user).get(reverse('doctors-grouped'))
    assert r.status_code == 200
    names = [g['hospital']['name'] for g in r.data]
    assert names == ['City General', 'Riverside Medical', 'Unassigned']
    assert r.data[0]['count'] == 1
    assert r.data[0]['activeDoctors'] == 1
    assert r.data[1]['count'] == 0
    assert r.data[2]['hospital']['_id'] == 'unassigned'


def test_grouped_drops_empty_buckets_when_filtering(client_for, admin_user, hospital, other_hospital,
                                                    make_doctor):
    make_doctor(hospital, 'Cardiology')
    make_doctor(other_hospital, 'Pediatrics')
    r = client_for(admin_user).get(reverse('doctors-grouped'), {'specialization': 'Cardiology'})
    assert [g['hospital']['name'] for g in r.data] == ['City General']
    assert r.data[0]['totalAppointments'] == 0


def test_by_hospital_lists_active_doctors(client_for, make_user, hospital, make_doctor):
    active = make_doctor(hospital)
    make_doctor(hospital, status='inactive')
    r = client_for(make_user('patient')).get(reverse('doctors-by-hospital', args=[hospital.id]))
    assert [d['_id'] for d in r.data] == [active.id]


def test_admin_update_and_confirmed_delete(client_for, admin_user, hospital, make_doctor):
    doctor = make_doctor(hospital)
    client = client_for(admin_user)
    url = reverse('doctor-detail', args=[doctor.id])

    r = client.put(url, {'status': 'inactive', 'fees': '900'}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'inactive'
    assert r.data['fees'] == 900.0

    assert client.delete(url).status_code == 400
    r = client.delete(url + '?confirm=delete%20doctor')
    assert r.status_code == 200
    assert not DoctorProfile.objects.filter(id=doctor.id).exists()
    assert not User.objects.filter(id=doctor.user_id).exists()


def test_doctor_profile_and_dashboard(client_for, hospital, other_hospital, make_doctor, make_patient):
    doctor = make_doctor(hospital)
    patient = make_patient(hospital)
    today = timezone.localdate()
    _book(doctor, patient, today, '09:00')
    _book(doctor, patient, today + dt.timedelta(days=2), '10:00', status='confirmed')
    client = client_for(doctor.user)

    r = client.put(reverse('doctor-profile'), {
        'qualification': 'MD', 'hospitalId': other_hospital.id, 'status': 'inactive',
    }, format='json')
    assert r.status_code == 200
    assert r.data['qualification'] == 'MD'
    assert r.data['hospital']['_id'] == hospital.id
    assert r.data['status'] == 'active'

    r = client.get(reverse('doctor-dashboard'))
    assert r.status_code == 200
    assert len(r.data['todayAppointments']) == 1
    assert r.data['upcomingCount'] == 1
    assert r.data['patientCount'] == 1
    assert r.data['statusCount'] == {'pending': 1, 'confirmed': 1}


def test_doctor_endpoints_reject_other_roles(client_for, make_user):
    client = client_for(make_user('staff'))
    assert client.get(reverse('doctor-profile')).status_code == 403
    assert client.post(reverse('doctors'), {}, format='json').status_code == 403


def test_doctor_stats(client_for, hospital, make_doctor, make_patient):
    doctor = make_doctor(hospital)
    today = timezone.localdate()
    young, old, child = make_patient(hospital), make_patient(hospital), make_patient(hospital)
    young.gender, young.age = 'Female', 30
    old.gender, old.age = 'male', 70
    child.date_of_birth = dt.date(today.year - 10, 1, 1)
    for p in (young, old, child):
        p.save()

    _book(doctor, young, today, '09:00', status='completed')
    _book(doctor, young, today - dt.timedelta(days=1), '10:00')
    _book(doctor, old, today, '10:00', status='cancelled')
    Appointment.objects.create(doctor=doctor, patient=child, hospital=hospital, type='checkup',
                               appointment_date=today + dt.timedelta(days=3), time_slot='11:00')

    r = client_for(doctor.user).get(reverse('doctor-stats'))
    assert r.status_code == 200
    data = r.data
    assert data['doctorName'] == doctor.user.display_name
    assert data['totalPatients'] == 3
    assert data['todayPatients'] == 1
    assert data['completedAppointments'] == 1
    assert data['pendingAppointments'] == 2
    assert data['weeklyPatients'] == 1
    assert data['appointmentRate'] == 33.3
    assert data['weeklyStats']['dates'][-1] == today.isoformat()
    assert data['weeklyStats']['appointments'][-2:] == [1, 1]
    assert data['patientDemographics']['gender'] == {'male': 1, 'female': 1, 'other': 1}
    ages = data['patientDemographics']['ageGroups']
    assert (ages['0-18'], ages['19-35'], ages['65+']) == (1, 1, 1)
    assert data['appointmentTypes'] == [{'type': 'consultation', 'count': 2}, {'type': 'checkup', 'count': 1}]


def test_doctor_stats_is_doctor_only(client_for, make_user):
    assert client_for(make_user('patient')).get(reverse('doctor-stats')).status_code == 403
