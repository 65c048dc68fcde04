import datetime as dt
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.models import Bill

pytestmark = pytest.mark.django_db


def make_bill(patient, *, due_in=7, status=Bill.STATUS_PENDING, amount='50.00'):
    today = timezone.localdate()
    return Bill.objects.create(
        patient=patient, hospital=patient.hospital, service='Consultation', amount=Decimal(amount),
        date=today, due_date=today + dt.timedelta(days=due_in), status=status,
    )


def test_past_due_bills_are_marked_overdue(client_for, hospital, make_patient):
    patient = make_patient(hospital)
    late = make_bill(patient, due_in=-1)
    current = make_bill(patient)
    r = client_for(patient.user).get(reverse('bills'))
    statuses = {b['_id']: b['status'] for b in r.data}
    assert statuses == {late.id: 'overdue', current.id: 'pending'}
    late.refresh_from_db()
    assert late.status == Bill.STATUS_OVERDUE


def test_patient_sees_only_own_bills(client_for, hospital, make_patient):
    me, other = make_patient(hospital), make_patient(hospital)
    mine = make_bill(me)
    theirs = make_bill(other)
    client = client_for(me.user)
    assert [b['_id'] for b in client.get(reverse('bills')).data] == [mine.id]
    assert client.get(reverse('bill-detail', args=[theirs.id])).status_code == 404


def test_pay_all_outstanding(client_for, hospital, make_patient):
    patient = make_patient(hospital)
    make_bill(patient)
    make_bill(patient, due_in=-3, status=Bill.STATUS_OVERDUE)
    make_bill(patient, status=Bill.STATUS_PAID)
    client = client_for(patient.user)

    r = client.post(reverse('bills-pay'), {}, format='json')
    assert r.status_code == 200
    assert r.data['paid'] == 2
    assert not Bill.objects.exclude(status=Bill.STATUS_PAID).exists()
    assert Bill.objects.filter(paid_at__isnull=False).count() == 2

    r = client.post(reverse('bills-pay'), {}, format='json')
    assert r.data == {'ok': True, 'paid': 0, 'message': 'No pending bills to pay.'}


def test_pay_selected_ids(client_for, hospital, make_patient):
    patient = make_patient(hospital)
    first, second = make_bill(patient), make_bill(patient)
    r = client_for(patient.user).post(reverse('bills-pay'), {'ids': [first.id]}, format='json')
    assert r.data['paid'] == 1
    second.refresh_from_db()
    assert second.status == Bill.STATUS_PENDING


def test_staff_creates_bill_for_own_hospital(client_for, hospital, other_hospital, make_staff, make_patient):
    staff = make_staff(hospital)
    patient = make_patient(hospital)
    foreign = make_patient(other_hospital)
    client = client_for(staff.user)
    due = (timezone.localdate() + dt.timedelta(days=10)).isoformat()

    r = client.post(reverse('bills'), {
        'patientId': patient.id, 'service': 'X-Ray', 'amount': '120.00', 'dueDate': due,
    }, format='json')
    assert r.status_code == 201
    assert r.data['hospital']['_id'] == hospital.id
    assert r.data['status'] == 'pending'

    r = client.post(reverse('bills'), {
        'patientId': foreign.id, 'service': 'X-Ray', 'amount': '120.00', 'dueDate': due,
    }, format='json')
    assert r.status_code == 403


def test_patient_cannot_create_bills(client_for, hospital, make_patient):
    patient = make_patient(hospital)
    r = client_for(patient.user).post(reverse('bills'), {
        'patientId': patient.id, 'service': 'Free money', 'amount': '-5', 'dueDate': '2030-01-01',
    }, format='json')
    assert r.status_code == 403
