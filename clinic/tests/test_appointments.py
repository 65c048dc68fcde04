import datetime as dt

import pytest
from django.db import IntegrityError, transaction
from django.urls import reverse
from django.utils import timezone

from clinic.models import Appointment, Notification

pytestmark = pytest.mark.django_db


@pytest.fixture
def setup(hospital, make_doctor, make_patient, make_staff):
    doctor = make_doctor(hospital)
    patient = make_patient(hospital)
    staff = make_staff(hospital)
    return doctor, patient, staff


def tomorrow():
    return timezone.localdate() + dt.timedelta(days=1)


def book(client, doctor, *, patient=None, day=None, slot='09:00'):
    body = {'doctorId': doctor.id, 'appointmentDate': (day or tomorrow()).isoformat(), 'timeSlot': slot}
    if patient is not None:
        body['patientId'] = patient.id
    return client.post(reverse('appointments'), body, format='json')


def test_patient_books_for_self(client_for, setup, make_patient):
    doctor, patient, _ = setup
    someone_else = make_patient()
    r = book(client_for(patient.user), doctor, patient=someone_else)
    assert r.status_code == 201
    assert r.data['patientId']['_id'] == patient.id
    assert r.data['doctorId']['_id'] == doctor.id
    assert r.data['hospital']['_id'] == doctor.hospital_id
    assert r.data['status'] == 'pending'
    assert r.data['type'] == 'consultation'


def test_double_booking_is_a_conflict(client_for, setup, make_patient):
    doctor, patient, staff = setup
    assert book(client_for(patient.user), doctor).status_code == 201
    r = book(client_for(staff.user), doctor, patient=make_patient(doctor.hospital))
    assert r.status_code == 409
    assert r.data['message'] == 'This time slot is already booked'
    assert r.data['error']['code'] == 'conflict'


def test_cancelled_slot_can_be_rebooked(client_for, setup):
    doctor, patient, _ = setup
    client = client_for(patient.user)
    first = book(client, doctor).data
    assert client.put(reverse('appointment-cancel', args=[first['_id']])).status_code == 200
    assert book(client, doctor).status_code == 201


def test_lunch_and_past_dates_are_rejected(client_for, setup):
    doctor, patient, _ = setup
    client = client_for(patient.user)
    assert book(client, doctor, slot='12:30').status_code == 400
    assert book(client, doctor, day=timezone.localdate() - dt.timedelta(days=1)).status_code == 400


def test_staff_cannot_book_other_hospital_doctor(client_for, setup, other_hospital, make_doctor):
    _, patient, staff = setup
    foreign_doctor = make_doctor(other_hospital)
    r = book(client_for(staff.user), foreign_doctor, patient=patient)
    assert r.status_code == 403


def test_doctor_cannot_book(client_for, setup):
    doctor, patient, _ = setup
    assert book(client_for(doctor.user), doctor, patient=patient).status_code == 403


def test_booking_notifies_doctor_and_staff(client_for, setup):
    doctor, patient, staff = setup
    book(client_for(patient.user), doctor)
    recipients = set(Notification.objects.values_list('recipient_id', flat=True))
    assert recipients == {doctor.user_id, staff.user_id}


def test_availability(client_for, setup):
    doctor, patient, _ = setup
    client = client_for(patient.user)
    book(client, doctor, slot='10:00')
    r = client.get(reverse('doctor-availability'), {'doctorId': doctor.id, 'date': tomorrow().isoformat()})
    assert r.status_code == 200
    assert r.data['bookedSlots'] == ['10:00']
    assert '10:00' not in r.data['availableSlots']
    assert len(r.data['availableSlots']) == 11


def test_list_is_role_scoped(client_for, admin_user, setup, other_hospital, make_doctor, make_patient):
    doctor, patient, staff = setup
    other_doctor = make_doctor(other_hospital)
    other_patient = make_patient(other_hospital)
    mine = book(client_for(patient.user), doctor).data['_id']
    theirs = book(client_for(other_patient.user), other_doctor).data['_id']

    def ids(user, **params):
        return [a['_id'] for a in client_for(user).get(reverse('appointments'), params).data]

    assert ids(patient.user) == [mine]
    assert ids(doctor.user) == [mine]
    assert ids(staff.user) == [mine]
    assert sorted(ids(admin_user)) == sorted([mine, theirs])
    assert ids(admin_user, hospitalId=other_hospital.id) == [theirs]
    assert client_for(patient.user).get(reverse('appointment-detail', args=[theirs])).status_code == 403


def test_status_lifecycle(client_for, setup):
    doctor, patient, staff = setup
    aid = book(client_for(patient.user), doctor).data['_id']
    url = reverse('appointment-status', args=[aid])

    assert client_for(patient.user).put(url, {'status': 'confirmed'}, format='json').status_code == 403
    r = client_for(staff.user).put(url, {'status': 'confirmed'}, format='json')
    assert r.data['status'] == 'confirmed'
    r = client_for(doctor.user).put(url, {'status': 'completed'}, format='json')
    assert r.data['status'] == 'completed'

    r = client_for(staff.user).put(url, {'status': 'pending'}, format='json')
    assert r.status_code == 409
    r = client_for(patient.user).put(reverse('appointment-cancel', args=[aid]))
    assert r.status_code == 409


def test_check_in(client_for, setup):
    doctor, patient, staff = setup
    aid = book(client_for(patient.user), doctor).data['_id']
    r = client_for(staff.user).patch(reverse('appointment-check-in', args=[aid]))
    assert r.status_code == 200
    assert r.data['status'] == 'in-progress'
    assert r.data['checkedInAt']
    assert client_for(staff.user).patch(reverse('appointment-check-in', args=[aid])).status_code == 409


def test_calendar_week_grid(client_for, setup):
    doctor, patient, _ = setup
    day = tomorrow()
    book(client_for(patient.user), doctor, day=day, slot='14:30')
    Appointment.objects.create(doctor=doctor, patient=patient, hospital=doctor.hospital,
                               appointment_date=day, time_slot='12:00')
    r = client_for(doctor.user).get(reverse('appointment-calendar'), {'date': day.isoformat()})
    assert r.status_code == 200
    assert len(r.data['days']) == 7
    assert dt.date.fromisoformat(r.data['weekStart']).weekday() == 6
    row = next(s for s in r.data['slots'] if s['time'] == '14:30')
    assert len(row['cells'][day.isoformat()]) == 1
    assert len(r.data['lunch'][day.isoformat()]) == 1


def test_dashboard_and_count(client_for, admin_user, setup):
    doctor, patient, _ = setup
    client = client_for(patient.user)
    book(client, doctor, slot='09:00')
    cancelled = book(client, doctor, slot='09:30').data['_id']
    client.put(reverse('appointment-cancel', args=[cancelled]))

    r = client_for(admin_user).get(reverse('appointment-dashboard'))
    assert r.data['total'] == 2
    assert r.data['statusCount']['pending'] == 1
    assert r.data['statusCount']['cancelled'] == 1
    assert len(r.data['recentAppointments']) == 2

    r = client_for(admin_user).get(reverse('appointment-count'), {'doctorId': doctor.id})
    assert r.data == {'count': 1}


def test_live_slot_is_unique_in_the_database(setup, make_patient):
    doctor, patient, _ = setup
    slot = dict(doctor=doctor, hospital=doctor.hospital, appointment_date=tomorrow(), time_slot='09:00')
    first = Appointment.objects.create(patient=patient, **slot)
    with pytest.raises(IntegrityError), transaction.atomic():
        Appointment.objects.create(patient=make_patient(doctor.hospital), **slot)

    first.status = Appointment.STATUS_CANCELLED
    first.save()
    Appointment.objects.create(patient=make_patient(doctor.hospital), **slot)
    assert Appointment.objects.filter(time_slot='09:00').count() == 2


def test_insert_race_is_reported_as_conflict(client_for, setup, make_patient, monkeypatch):
    doctor, patient, staff = setup
    assert book(client_for(patient.user), doctor).status_code == 201
    # the other request read the slots before the first insert committed
    monkeypatch.setattr('clinic.services.appointments.booked_slots', lambda doctor_id, day, exclude_id=None: [])
    r = book(client_for(staff.user), doctor, patient=make_patient(doctor.hospital))
    assert r.status_code == 409
    assert r.data['message'] == 'This time slot is already booked'
    assert Appointment.objects.count() == 1


class BrokenLayer:
    async def group_send(self, group, message):
        raise ConnectionError('channel layer unreachable')


def test_booking_survives_a_failing_channel_layer(client_for, setup, monkeypatch):
    doctor, patient, staff = setup
    monkeypatch.setattr('clinic.services.notifications.get_channel_layer', lambda: BrokenLayer())
    r = book(client_for(patient.user), doctor)
    assert r.status_code == 201
    assert Appointment.objects.count() == 1
    assert set(Notification.objects.values_list('recipient_id', flat=True)) == {doctor.user_id, staff.user_id}


def test_appointments_of_a_patient(client_for, admin_user, setup, make_patient):
    doctor, patient, staff = setup
    other = make_patient(doctor.hospital)
    mine = book(client_for(patient.user), doctor, slot='09:00').data['_id']
    book(client_for(other.user), doctor, slot='09:30')

    url = reverse('patient-appointments', args=[patient.id])
    assert [a['_id'] for a in client_for(admin_user).get(url).data] == [mine]
    assert [a['_id'] for a in client_for(staff.user).get(url).data] == [mine]
    assert [a['_id'] for a in client_for(patient.user).get(url).data] == [mine]
    assert client_for(other.user).get(url).status_code == 403
    assert client_for(admin_user).get(reverse('patient-appointments', args=[999999])).status_code == 404
