import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from clinic.models import Appointment, Bill, PatientProfile, User
from clinic.services.hospitals import hospital_ref
from clinic.services.scope import profile_of, require_staff_hospital

logger = logging.getLogger(__name__)

NOTHING_TO_PAY = 'No pending bills to pay.'


def format_bill(b: Bill) -> dict:
    return {
        '_id': b.id,
        'patient': {'_id': b.patient_id, 'name': b.patient.user.display_name},
        'hospital': hospital_ref(b.hospital),
        'appointment': b.appointment_id,
        'service': b.service,
        'amount': float(b.amount),
        'date': b.date.isoformat(),
        'dueDate': b.due_date.isoformat(),
        'status': b.status,
        'paidAt': b.paid_at.isoformat() if b.paid_at else None,
    }


def refresh_overdue(today=None) -> int:
    """Persist ``overdue`` on pending bills whose due date has passed."""
    today = today or timezone.localdate()
    n = Bill.objects.filter(status=Bill.STATUS_PENDING, due_date__lt=today).update(status=Bill.STATUS_OVERDUE)
    if n:
        logger.info('marked %d bills overdue', n)
    return n


def scoped_bills(user):
    qs = Bill.objects.select_related('patient__user', 'hospital')
    if user.role == User.ROLE_ADMIN:
        return qs
    if user.role == User.ROLE_STAFF:
        return qs.filter(hospital_id=require_staff_hospital(user))
    if user.role == User.ROLE_PATIENT:
        patient = profile_of(user, 'patient_profile')
        return qs.filter(patient=patient) if patient else qs.none()
    raise PermissionDenied('You cannot view bills')


def get_visible(user, bill_id) -> Bill:
    obj = scoped_bills(user).filter(id=bill_id).first()
    if not obj:
        raise NotFound('Bill not found')
    return obj


def create_bill(user, data: dict) -> Bill:
    patient = PatientProfile.objects.filter(id=data['patientId']).first()
    if not patient:
        raise NotFound('Patient not found')
    appointment = None
    if data.get('appointmentId'):
        appointment = Appointment.objects.filter(id=data['appointmentId'], patient=patient).first()
        if not appointment:
            raise NotFound('Appointment not found')
    hospital_id = (appointment.hospital_id if appointment else None) or patient.hospital_id
    if user.role == User.ROLE_STAFF:
        own = require_staff_hospital(user)
        if hospital_id and hospital_id != own:
            raise PermissionDenied('Patient does not belong to your hospital')
        hospital_id = own
    date = data.get('date') or timezone.localdate()
    if data['dueDate'] < date:
        raise ValidationError({'dueDate': 'Due date cannot be before the bill date'})
    bill = Bill.objects.create(
        patient=patient,
        hospital_id=hospital_id,
        appointment=appointment,
        service=data['service'],
        amount=data['amount'],
        date=date,
        due_date=data['dueDate'],
    )
    logger.info('bill %s created for patient %s', bill.id, patient.id)
    return bill


def pay(user, ids=None) -> dict:
    """Mark payable bills as paid.

    Patients pay their own bills; with no ``ids`` every payable bill of
    the patient is paid.  Admin and staff must name the bills.
    """
    payable = scoped_bills(user).exclude(status=Bill.STATUS_PAID)
    if ids:
        payable = payable.filter(id__in=ids)
    elif user.role != User.ROLE_PATIENT:
        raise ValidationError({'ids': 'Select the bills to mark as paid'})
    with transaction.atomic():
        paid = payable.update(status=Bill.STATUS_PAID, paid_at=timezone.now())
    if not paid:
        return {'ok': True, 'paid': 0, 'message': NOTHING_TO_PAY}
    logger.info('user %s paid %d bills', user.id, paid)
    return {'ok': True, 'paid': paid, 'message': f'{paid} bill(s) paid successfully.'}
