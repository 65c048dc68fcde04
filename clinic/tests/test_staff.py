import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.models import Appointment, Notification, StaffProfile, StaffTask

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def _staff_body(hospital, **extra):
    body = {
        'name': 'Nina Desk', 'email': 'nina@example.com', 'password': PASSWORD, 'gender': 'female',
        'hospital': hospital.id, 'department': 'Reception', 'shift': 'morning',
        'emergencyContact': {'name': 'Sam', 'relationship': 'Brother', 'phone': '555-0102'},
        'qualifications': [{'degree': 'BSc', 'institution': 'State College', 'year': 2015}],
        'skills': ['Billing'],
    }
    body.update(extra)
    return body


def test_admin_creates_staff_with_employee_id(client_for, admin_user, hospital):
    r = client_for(admin_user).post(reverse('staff'), _staff_body(hospital), format='json')
    assert r.status_code == 201
    assert r.data['employeeId'].startswith('EMP')
    assert len(r.data['employeeId']) == 8
    assert r.data['leaveBalance'] == {'sick': 10, 'casual': 10, 'annual': 20}
    assert r.data['qualifications'][0]['degree'] == 'BSc'
    assert r.data['hospital']['_id'] == hospital.id


def test_create_requires_core_fields(client_for, admin_user, hospital):
    body = _staff_body(hospital)
    del body['department']
    r = client_for(admin_user).post(reverse('staff'), body, format='json')
    assert r.status_code == 400
    assert r.data['ok'] is False


def test_staff_management_is_admin_only(client_for, hospital, make_staff):
    staff = make_staff(hospital)
    assert client_for(staff.user).get(reverse('staff')).status_code == 403


def test_update_and_delete(client_for, admin_user, hospital, make_staff):
    member = make_staff(hospital)
    client = client_for(admin_user)
    url = reverse('staff-detail', args=[member.id])
    r = client.put(url, {'status': 'on-leave', 'shift': 'night'}, format='json')
    assert r.status_code == 200
    assert (r.data['status'], r.data['shift']) == ('on-leave', 'night')

    assert client.delete(url).status_code == 400
    assert client.delete(url, {'confirm': 'delete staff'}, format='json').status_code == 200
    assert not StaffProfile.objects.filter(id=member.id).exists()


def test_grouped_counts_active(client_for, admin_user, hospital, other_hospital, make_staff):
    make_staff(hospital)
    on_leave = make_staff(hospital)
    on_leave.status = 'on-leave'
    on_leave.save()
    r = client_for(admin_user).get(reverse('staff-grouped'))
    first = r.data[0]
    assert first['hospital']['name'] == 'City General'
    assert (first['count'], first['activeStaff']) == (2, 1)
    assert r.data[-1]['hospital']['_id'] == 'unassigned'


def test_profile_self_service(client_for, hospital, other_hospital, make_staff):
    member = make_staff(hospital)
    client = client_for(member.user)
    r = client.put(reverse('staff-profile'), {'skills': ['Triage'], 'hospital': other_hospital.id}, format='json')
    assert r.status_code == 200
    assert r.data['skills'] == ['Triage']
    assert r.data['hospital']['_id'] == hospital.id


def test_hospital_rosters(client_for, hospital, other_hospital, make_staff):
    me = make_staff(hospital)
    colleague = make_staff(hospital)
    make_staff(other_hospital)
    client = client_for(me.user)
    r = client.get(reverse('staff-own-hospital'))
    assert sorted(s['_id'] for s in r.data) == sorted([me.id, colleague.id])
    assert client.get(reverse('staff-by-hospital', args=[other_hospital.id])).status_code == 403


def test_dashboard_stats(client_for, hospital, make_staff, make_doctor, make_patient):
    member = make_staff(hospital)
    doctor = make_doctor(hospital)
    patient = make_patient(hospital)
    today = timezone.localdate()
    Appointment.objects.create(doctor=doctor, patient=patient, hospital=hospital,
                               appointment_date=today, time_slot='09:00')
    Appointment.objects.create(doctor=doctor, patient=patient, hospital=hospital,
                               appointment_date=today, time_slot='09:30', status='confirmed',
                               checked_in_at=timezone.now())
    r = client_for(member.user).get(reverse('staff-dashboard-stats'))
    assert r.data == {
        'todayAppointments': 2, 'pendingAppointments': 1, 'confirmedAppointments': 1,
        'checkedIn': 1, 'totalPatients': 1,
    }


def test_tasks_and_notifications(client_for, hospital, make_staff):
    member = make_staff(hospital)
    other = make_staff(hospital)
    task = StaffTask.objects.create(staff=member, title='Restock forms')
    foreign = StaffTask.objects.create(staff=other, title='Not mine')
    note = Notification.objects.create(recipient=member.user, title='Hello')
    client = client_for(member.user)

    r = client.get(reverse('staff-tasks'))
    assert [t['_id'] for t in r.data] == [task.id]
    r = client.patch(reverse('staff-task-status', args=[task.id]), {'status': 'completed'}, format='json')
    assert r.data['status'] == 'completed'
    r = client.patch(reverse('staff-task-status', args=[foreign.id]), {'status': 'completed'}, format='json')
    assert r.status_code == 404

    r = client.get(reverse('staff-notifications'))
    assert [n['_id'] for n in r.data] == [note.id]
    r = client.patch(reverse('staff-notification-read', args=[note.id]))
    assert r.data['read'] is True
    note.refresh_from_db()
    assert note.read
