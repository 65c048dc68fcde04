import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.models import Appointment, PatientProfile

pytestmark = pytest.mark.django_db


def test_staff_create_is_pinned_to_own_hospital(client_for, hospital, other_hospital, make_staff):
    staff = make_staff(hospital)
    r = client_for(staff.user).post(reverse('patients'), {
        'name': 'Jane Roe', 'email': 'jane@example.com', 'hospitalId': other_hospital.id,
        'age': 41, 'bloodGroup': 'O+', 'allergies': ['Penicillin'],
        'emergencyContact': {'name': 'John Roe', 'relationship': 'Spouse', 'phone': '555-0101'},
        'medicalHistory': [{'condition': 'Asthma', 'diagnosedDate': '2019-04-01'}],
    }, format='json')
    assert r.status_code == 201
    assert r.data['hospital']['_id'] == hospital.id
    assert r.data['allergies'] == ['Penicillin']
    assert r.data['medicalHistory'][0]['diagnosedDate'] == '2019-04-01'
    profile = PatientProfile.objects.get(id=r.data['_id'])
    assert profile.user.role == 'patient'
    assert profile.user.has_usable_password()


def test_list_is_scoped_by_role(client_for, admin_user, hospital, other_hospital, make_staff, make_doctor,
                                make_patient):
    doctor = make_doctor(hospital)
    assigned = make_patient(hospital, doctor=doctor)
    seen = make_patient(hospital)
    stranger = make_patient(other_hospital)
    Appointment.objects.create(doctor=doctor, patient=seen, hospital=hospital,
                               appointment_date=timezone.localdate(), time_slot='09:00')

    ids = lambda r: sorted(p['_id'] for p in r.data)  # noqa: E731
    assert ids(client_for(admin_user).get(reverse('patients'))) == sorted([assigned.id, seen.id, stranger.id])
    assert ids(client_for(doctor.user).get(reverse('patients'))) == sorted([assigned.id, seen.id])
    staff = make_staff(other_hospital)
    assert ids(client_for(staff.user).get(reverse('patients'))) == [stranger.id]
    assert client_for(stranger.user).get(reverse('patients')).status_code == 403


def test_patient_reads_only_self(client_for, hospital, make_patient):
    me, other = make_patient(hospital), make_patient(hospital)
    client = client_for(me.user)
    assert client.get(reverse('patient-detail', args=[me.id])).status_code == 200
    assert client.get(reverse('patient-detail', args=[other.id])).status_code == 403


def test_search_matches_name_email_and_phone(client_for, admin_user, hospital, make_patient):
    alice = make_patient(hospital, name='Alice Walker', email='alice@example.com')
    bob = make_patient(hospital, name='Bob Stone', email='bob@example.com')
    bob.phone = '555-7788'
    bob.save()
    client = client_for(admin_user)
    url = reverse('patients-search')
    assert [p['_id'] for p in client.get(url, {'hospitalId': hospital.id, 'query': 'walk'}).data] == [alice.id]
    assert [p['_id'] for p in client.get(url, {'query': '7788'}).data] == [bob.id]
    assert [p['_id'] for p in client.get(url, {'query': 'bob@'}).data] == [bob.id]


def test_grouped_and_by_doctor(client_for, admin_user, hospital, make_doctor, make_patient):
    doctor = make_doctor(hospital)
    p = make_patient(hospital, doctor=doctor)
    make_patient(None)
    client = client_for(admin_user)

    r = client.get(reverse('patients-grouped'))
    assert [g['hospital']['name'] for g in r.data] == ['City General', 'Unassigned']
    assert r.data[0]['activePatients'] == 1

    r = client.get(reverse('patients-by-doctor', args=[doctor.id]))
    assert [x['_id'] for x in r.data] == [p.id]


def test_update_and_confirmed_delete(client_for, admin_user, hospital, make_patient):
    patient = make_patient(hospital)
    client = client_for(admin_user)
    url = reverse('patient-detail', args=[patient.id])

    r = client.put(url, {'phone': '555-1234', 'status': 'inactive'}, format='json')
    assert r.status_code == 200
    assert r.data['phone'] == '555-1234'
    assert r.data['status'] == 'inactive'

    r = client.delete(url, {'confirm': 'delete patients'}, format='json')
    assert r.status_code == 400
    r = client.delete(url, {'confirm': 'delete patient'}, format='json')
    assert r.status_code == 200
    assert not PatientProfile.objects.filter(id=patient.id).exists()


def test_create_rejects_taken_email(client_for, admin_user, make_patient):
    existing = make_patient()
    r = client_for(admin_user).post(reverse('patients'), {
        'name': 'Dup', 'email': existing.user.email,
    }, format='json')
    assert r.status_code == 400


def test_by_hospital_and_count(client_for, admin_user, hospital, other_hospital, make_staff, make_patient):
    here = make_patient(hospital)
    there = make_patient(other_hospital)
    staff = make_staff(hospital)

    r = client_for(admin_user).get(reverse('patients-by-hospital', args=[other_hospital.id]))
    assert [p['_id'] for p in r.data] == [there.id]
    r = client_for(staff.user).get(reverse('patients-by-hospital', args=[hospital.id]))
    assert [p['_id'] for p in r.data] == [here.id]
    assert client_for(staff.user).get(reverse('patients-by-hospital', args=[other_hospital.id])).status_code == 403
    assert client_for(admin_user).get(reverse('patients-by-hospital', args=[999999])).status_code == 404

    assert client_for(admin_user).get(reverse('patient-count')).data == {'count': 2}
    assert client_for(staff.user).get(reverse('patient-count')).data == {'count': 1}
    assert client_for(here.user).get(reverse('patient-count')).status_code == 403
