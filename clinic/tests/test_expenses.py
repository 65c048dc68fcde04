import csv
import io
from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from clinic.models import Expense

pytestmark = pytest.mark.django_db


def make_expense(hospital, **kw):
    data = {'category': 'medicine', 'amount': Decimal('100.00'), 'date': '2024-03-10', 'status': 'pending'}
    data.update(kw)
    return Expense.objects.create(hospital=hospital, **data)


def test_staff_records_for_own_hospital_only(client_for, hospital, other_hospital, make_staff):
    staff = make_staff(hospital)
    r = client_for(staff.user).post(reverse('expenses'), {
        'category': 'equipment', 'amount': '2500.50', 'date': '2024-03-01',
        'hospitalId': other_hospital.id, 'vendorName': 'MedSupply',
    }, format='json')
    assert r.status_code == 201
    assert r.data['hospital']['_id'] == hospital.id
    assert r.data['status'] == 'pending'
    assert r.data['createdBy'] == staff.user_id


def test_staff_cannot_approve(client_for, hospital, make_staff):
    staff = make_staff(hospital)
    client = client_for(staff.user)
    r = client.post(reverse('expenses'), {
        'category': 'other', 'amount': '10', 'date': '2024-03-01', 'status': 'completed',
    }, format='json')
    assert r.status_code == 403

    expense = make_expense(hospital)
    r = client.put(reverse('expense-detail', args=[expense.id]), {'status': 'rejected'}, format='json')
    assert r.status_code == 403
    r = client.put(reverse('expense-detail', args=[expense.id]), {'description': 'fixed'}, format='json')
    assert r.status_code == 200


def test_staff_does_not_see_other_hospitals(client_for, hospital, other_hospital, make_staff):
    staff = make_staff(hospital)
    mine = make_expense(hospital)
    theirs = make_expense(other_hospital)
    client = client_for(staff.user)
    assert [e['_id'] for e in client.get(reverse('expenses')).data] == [mine.id]
    assert client.get(reverse('expense-detail', args=[theirs.id])).status_code == 404


def test_admin_approves_and_deletes(client_for, admin_user, hospital):
    expense = make_expense(hospital)
    client = client_for(admin_user)
    r = client.put(reverse('expense-detail', args=[expense.id]), {'status': 'completed'}, format='json')
    assert r.data['status'] == 'completed'
    assert client.delete(reverse('expense-detail', args=[expense.id])).status_code == 200
    assert not Expense.objects.filter(id=expense.id).exists()


def test_filters_and_sort(client_for, admin_user, hospital):
    small = make_expense(hospital, amount=Decimal('5'), date='2024-01-05', category='utilities')
    big = make_expense(hospital, amount=Decimal('500'), date='2024-02-05', vendor_name='PowerCo')
    client = client_for(admin_user)

    r = client.get(reverse('expenses'), {'sortBy': 'amount', 'sortOrder': 'asc'})
    assert [e['_id'] for e in r.data] == [small.id, big.id]
    r = client.get(reverse('expenses'))
    assert [e['_id'] for e in r.data] == [big.id, small.id]
    r = client.get(reverse('expenses'), {'from': '2024-02-01'})
    assert [e['_id'] for e in r.data] == [big.id]
    r = client.get(reverse('expenses'), {'q': 'power'})
    assert [e['_id'] for e in r.data] == [big.id]
    r = client.get(reverse('expenses'), {'category': 'utilities'})
    assert [e['_id'] for e in r.data] == [small.id]


def test_summary(client_for, admin_user, hospital):
    make_expense(hospital, amount=Decimal('10.10'))
    make_expense(hospital, amount=Decimal('20.20'), category='staff')
    make_expense(hospital, amount=Decimal('0.70'), category='staff')
    r = client_for(admin_user).get(reverse('expense-summary'))
    assert r.data['count'] == 3
    assert r.data['total'] == 31.0
    assert r.data['byCategory']['medicine'] == 10.1
    assert set(r.data['byCategory']) == {'medicine', 'staff'}


def test_export_csv(client_for, admin_user, hospital):
    make_expense(hospital, description='Syringes', vendor_name='MedSupply', payment_method='cash')
    r = client_for(admin_user).get(reverse('expense-export'))
    assert r.status_code == 200
    assert r['Content-Type'].startswith('text/csv')
    rows = list(csv.reader(io.StringIO(r.content.decode())))
    assert rows[0] == ['Date', 'Category', 'Amount', 'Description', 'Vendor', 'Payment Method', 'Status',
                       'Hospital']
    assert rows[1] == ['2024-03-10', 'medicine', '100.00', 'Syringes', 'MedSupply', 'cash', 'pending',
                       'City General']


def test_bill_image_upload(client_for, admin_user, hospital, settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    upload = SimpleUploadedFile('receipt.png', b'\x89PNG fake', content_type='image/png')
    r = client_for(admin_user).post(reverse('expenses'), {
        'category': 'medicine', 'amount': '12.00', 'date': '2024-03-01',
        'hospitalId': hospital.id, 'billImage': upload,
    }, format='multipart')
    assert r.status_code == 201
    assert r.data['billImage'].endswith('.png')


def test_bill_image_rejects_unsupported_type(client_for, admin_user, hospital):
    upload = SimpleUploadedFile('run.sh', b'#!/bin/sh', content_type='text/x-shellscript')
    r = client_for(admin_user).post(reverse('expenses'), {
        'category': 'medicine', 'amount': '12.00', 'date': '2024-03-01',
        'hospitalId': hospital.id, 'billImage': upload,
    }, format='multipart')
    assert r.status_code == 400
    assert r.data['message'] == 'billImage: Unsupported file type'
    assert not Expense.objects.exists()


def test_patients_cannot_use_expenses(client_for, make_user):
    assert client_for(make_user('patient')).get(reverse('expenses')).status_code == 403
