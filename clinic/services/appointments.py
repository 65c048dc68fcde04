"""
Appointment booking and its status lifecycle.

A doctor has at most one live (non-cancelled) appointment per date and
time slot.  Booking checks the slot inside a transaction that locks the
doctor row, so two concurrent bookings for the same slot cannot both
succeed, and a partial unique constraint backs the check.  ``completed``
and ``cancelled`` are terminal.  A follow-up links back to an earlier
visit and may wait without a slot; unslotted rows never count as booked.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from clinic.exceptions import Conflict
from clinic.models import Appointment, DoctorProfile, PatientProfile, User
from clinic.services import calendar
from clinic.services.hospitals import hospital_ref, invalidate_stats
from clinic.services.notifications import hospital_staff_users, notify
from clinic.services.scope import profile_of, require_staff_hospital

logger = logging.getLogger(__name__)

SLOT_TAKEN = 'This time slot is already booked'


def appointment_queryset():
    return Appointment.objects.select_related(
        'doctor__user', 'doctor__hospital', 'patient__user', 'staff__user', 'hospital'
    )


def format_appointment(a: Appointment) -> dict:
    doctor, patient = a.doctor, a.patient
    return {
        '_id': a.id,
        'doctorId': {
            '_id': doctor.id,
            'name': doctor.user.display_name,
            'specialization': doctor.specialization,
            'hospital': doctor.hospital_id,
        },
        'patientId': {
            '_id': patient.id,
            'name': patient.user.display_name,
            'email': patient.user.email,
        },
        'staffId': {'_id': a.staff.id, 'name': a.staff.user.display_name} if a.staff_id else None,
        'hospital': hospital_ref(a.hospital),
        'appointmentDate': a.appointment_date.isoformat(),
        'timeSlot': a.time_slot,
        'type': a.type,
        'symptoms': a.symptoms,
        'notes': a.notes,
        'status': a.status,
        'checkedInAt': a.checked_in_at.isoformat() if a.checked_in_at else None,
        'isFollowUp': a.is_follow_up,
        'originalAppointmentId': a.original_appointment_id,
        'needsTimeSlot': a.needs_time_slot,
        'timeSlotConfirmed': a.time_slot_confirmed,
        'reminderSent': a.reminder_sent,
        'createdAt': a.created_at.isoformat() if a.created_at else None,
    }


def scoped_appointments(user):
    qs = appointment_queryset()
    if user.role == User.ROLE_ADMIN:
        return qs
    if user.role == User.ROLE_STAFF:
        return qs.filter(hospital_id=require_staff_hospital(user))
    if user.role == User.ROLE_DOCTOR:
        doctor = profile_of(user, 'doctor_profile')
        return qs.filter(doctor=doctor) if doctor else qs.none()
    patient = profile_of(user, 'patient_profile')
    return qs.filter(patient=patient) if patient else qs.none()


def filter_appointments(qs, *, hospital_id=None, doctor_id=None, status=None, date_from=None, date_to=None):
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    if status:
        qs = qs.filter(status=status)
    if date_from:
        qs = qs.filter(appointment_date__gte=date_from)
    if date_to:
        qs = qs.filter(appointment_date__lte=date_to)
    return qs.order_by('appointment_date', 'time_slot', 'id')


def get_visible(user, appointment_id) -> Appointment:
    obj = appointment_queryset().filter(id=appointment_id).first()
    if not obj:
        raise NotFound('Appointment not found')
    if not scoped_appointments(user).filter(id=obj.id).exists():
        raise PermissionDenied('You cannot access this appointment')
    return obj


def booked_slots(doctor_id, day, exclude_id=None) -> list[str]:
    qs = (
        Appointment.objects.filter(doctor_id=doctor_id, appointment_date=day)
        .exclude(status=Appointment.STATUS_CANCELLED)
        .exclude(time_slot='')
    )
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    return list(qs.order_by('time_slot').values_list('time_slot', flat=True))


def availability(doctor_id, day) -> dict:
    if not DoctorProfile.objects.filter(id=doctor_id).exists():
        raise NotFound('Doctor not found')
    booked = booked_slots(doctor_id, day)
    return {'availableSlots': calendar.available_slots(booked), 'bookedSlots': booked}


def _notify_parties(a: Appointment, actor, *, title: str, message: str) -> None:
    recipients = [a.doctor.user, *hospital_staff_users(a.hospital_id)]
    notify([u for u in recipients if u.id != actor.id], title=title, message=message, kind='appointment')


def book(actor, data: dict) -> Appointment:
    day = data['appointmentDate']
    slot = data['timeSlot']
    if not calendar.is_bookable_slot(slot):
        raise ValidationError({'timeSlot': 'Not a bookable time slot'})
    if day < timezone.localdate():
        raise ValidationError({'appointmentDate': 'Appointment date cannot be in the past'})

    if actor.role == User.ROLE_PATIENT:
        patient = profile_of(actor, 'patient_profile')
        if patient is None:
            raise PermissionDenied('Patient profile not found')
    else:
        if not data.get('patientId'):
            raise ValidationError({'patientId': 'This field is required.'})
        patient = PatientProfile.objects.select_related('user').filter(id=data['patientId']).first()
        if not patient:
            raise NotFound('Patient not found')

    try:
        appointment = _create_booking(actor, patient, data, day, slot)
    except IntegrityError:
        # a concurrent booking won the slot between our check and insert
        raise Conflict(SLOT_TAKEN)
    doctor = appointment.doctor
    invalidate_stats(appointment.hospital_id)
    logger.info('appointment %s booked: doctor=%s %s %s', appointment.id, doctor.id, day, slot)
    appointment = appointment_queryset().get(id=appointment.id)
    _notify_parties(
        appointment, actor,
        title='New appointment',
        message=f'{patient.user.display_name} on {day.isoformat()} at {slot}',
    )
    return appointment


@transaction.atomic
def _create_booking(actor, patient, data: dict, day, slot) -> Appointment:
    doctor = (
        DoctorProfile.objects.select_for_update()
        .select_related('user')
        .filter(id=data['doctorId'])
        .first()
    )
    if not doctor:
        raise NotFound('Doctor not found')
    if doctor.user.status != 'active':
        raise ValidationError({'doctorId': 'Doctor is not available'})
    staff = None
    if actor.role == User.ROLE_STAFF:
        if doctor.hospital_id != require_staff_hospital(actor):
            raise PermissionDenied('Doctor does not belong to your hospital')
        staff = profile_of(actor, 'staff_profile')
    if slot in booked_slots(doctor.id, day):
        raise Conflict(SLOT_TAKEN)
    return Appointment.objects.create(
        doctor=doctor,
        patient=patient,
        staff=staff,
        hospital_id=doctor.hospital_id,
        appointment_date=day,
        time_slot=slot,
        type=data.get('type') or 'consultation',
        symptoms=data.get('symptoms', ''),
        notes=data.get('notes', ''),
        is_follow_up=bool(data.get('isFollowUp')),
    )


def _ensure_can_manage(actor, a: Appointment) -> None:
    if actor.role == User.ROLE_ADMIN:
        return
    if actor.role == User.ROLE_STAFF and a.hospital_id == require_staff_hospital(actor):
        return
    if actor.role == User.ROLE_DOCTOR and a.doctor.user_id == actor.id:
        return
    raise PermissionDenied('You cannot change this appointment')


def _ensure_not_terminal(a: Appointment) -> None:
    if a.status in Appointment.TERMINAL_STATUSES:
        raise Conflict(f'Appointment is already {a.status}')


def set_status(actor, a: Appointment, status: str) -> Appointment:
    _ensure_can_manage(actor, a)
    _ensure_not_terminal(a)
    if status == Appointment.STATUS_IN_PROGRESS and not a.checked_in_at:
        a.checked_in_at = timezone.now()
    a.status = status
    a.save(update_fields=['status', 'checked_in_at', 'updated_at'])
    _notify_parties(
        a, actor,
        title='Appointment updated',
        message=f'{a.appointment_date.isoformat()} {a.time_slot} is now {status}',
    )
    return a


def cancel(actor, a: Appointment) -> Appointment:
    allowed = (
        actor.role == User.ROLE_ADMIN
        or (actor.role == User.ROLE_PATIENT and a.patient.user_id == actor.id)
        or (actor.role == User.ROLE_STAFF and a.hospital_id == require_staff_hospital(actor))
    )
    if not allowed:
        raise PermissionDenied('You cannot cancel this appointment')
    _ensure_not_terminal(a)
    a.status = Appointment.STATUS_CANCELLED
    a.save(update_fields=['status', 'updated_at'])
    _notify_parties(
        a, actor,
        title='Appointment cancelled',
        message=f'{a.appointment_date.isoformat()} {a.time_slot}',
    )
    return a


def check_in(actor, a: Appointment) -> Appointment:
    if actor.role == User.ROLE_STAFF and a.hospital_id != require_staff_hospital(actor):
        raise PermissionDenied('You cannot check in this appointment')
    if a.status not in (Appointment.STATUS_PENDING, Appointment.STATUS_CONFIRMED):
        raise Conflict(f'Cannot check in an appointment that is {a.status}')
    a.status = Appointment.STATUS_IN_PROGRESS
    a.checked_in_at = timezone.now()
    a.save(update_fields=['status', 'checked_in_at', 'updated_at'])
    notify([a.doctor.user], title='Patient checked in',
           message=f'{a.patient.user.display_name} ({a.time_slot})', kind='appointment')
    return a


def for_patient(user, patient_id):
    patient = PatientProfile.objects.filter(id=patient_id).first()
    if not patient:
        raise NotFound('Patient not found')
    if user.role == User.ROLE_PATIENT and patient.user_id != user.id:
        raise PermissionDenied('You can only view your own appointments')
    return scoped_appointments(user).filter(patient=patient).order_by('-appointment_date', 'time_slot', 'id')


def follow_ups(user, *, doctor_id=None, status=None, search=None, needs_time_slot=None,
               today=False, upcoming=False):
    qs = scoped_appointments(user).filter(is_follow_up=True)
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    if status:
        qs = qs.filter(status=status)
    if needs_time_slot is not None:
        qs = qs.filter(needs_time_slot=needs_time_slot)
    if search:
        qs = qs.filter(
            Q(patient__user__name__icontains=search)
            | Q(patient__user__email__icontains=search)
            | Q(notes__icontains=search)
        )
    day = timezone.localdate()
    if today:
        qs = qs.filter(appointment_date=day)
    elif upcoming:
        qs = qs.filter(appointment_date__gte=day).exclude(status__in=Appointment.TERMINAL_STATUSES)
    return qs.order_by('appointment_date', 'time_slot', 'id')


def _lock_doctor(doctor_id) -> DoctorProfile:
    return DoctorProfile.objects.select_for_update().get(id=doctor_id)


def schedule_follow_up(actor, original: Appointment, data: dict) -> Appointment:
    """Book a follow-up visit with the same doctor and patient.

    Without ``timeSlot`` the follow-up is created unslotted and flagged
    ``needs_time_slot`` until staff pick one.
    """
    _ensure_can_manage(actor, original)
    if original.status == Appointment.STATUS_CANCELLED:
        raise Conflict('Cannot follow up a cancelled appointment')
    day = data['date']
    slot = data.get('timeSlot') or ''
    if day < timezone.localdate():
        raise ValidationError({'date': 'Follow-up date cannot be in the past'})
    if slot and not calendar.is_bookable_slot(slot):
        raise ValidationError({'timeSlot': 'Not a bookable time slot'})

    staff = profile_of(actor, 'staff_profile') if actor.role == User.ROLE_STAFF else None
    notes = data.get('notes') or (
        f'Follow-up of the {original.appointment_date.isoformat()} {original.time_slot} visit'
    )
    try:
        with transaction.atomic():
            _lock_doctor(original.doctor_id)
            if slot and slot in booked_slots(original.doctor_id, day):
                raise Conflict(SLOT_TAKEN)
            follow_up = Appointment.objects.create(
                doctor_id=original.doctor_id,
                patient_id=original.patient_id,
                staff=staff,
                hospital_id=original.hospital_id,
                appointment_date=day,
                time_slot=slot,
                type=original.type,
                symptoms=original.symptoms,
                notes=notes,
                is_follow_up=True,
                original_appointment=original,
                needs_time_slot=not slot,
                time_slot_confirmed=bool(slot),
            )
    except IntegrityError:
        raise Conflict(SLOT_TAKEN)
    invalidate_stats(follow_up.hospital_id)
    logger.info('follow-up %s of appointment %s on %s %s', follow_up.id, original.id, day, slot or '(unslotted)')
    follow_up = appointment_queryset().get(id=follow_up.id)
    _notify_parties(
        follow_up, actor,
        title='Follow-up scheduled',
        message=f'{follow_up.patient.user.display_name} on {day.isoformat()}'
                + (f' at {slot}' if slot else ', time slot to be confirmed'),
    )
    return follow_up


def update_follow_up(actor, a: Appointment, data: dict) -> Appointment:
    """Move or slot a follow-up, or mark its reminder as sent."""
    if not a.is_follow_up:
        raise ValidationError('Not a follow-up appointment')
    _ensure_can_manage(actor, a)
    _ensure_not_terminal(a)

    day = data.get('date', a.appointment_date)
    slot = data.get('timeSlot', a.time_slot)
    moving = day != a.appointment_date or slot != a.time_slot
    if moving:
        if day < timezone.localdate():
            raise ValidationError({'date': 'Follow-up date cannot be in the past'})
        if slot and not calendar.is_bookable_slot(slot):
            raise ValidationError({'timeSlot': 'Not a bookable time slot'})
    if 'reminderSent' in data:
        a.reminder_sent = data['reminderSent']
    if 'notes' in data:
        a.notes = data['notes']

    try:
        with transaction.atomic():
            if moving:
                _lock_doctor(a.doctor_id)
                if slot and slot in booked_slots(a.doctor_id, day, exclude_id=a.id):
                    raise Conflict(SLOT_TAKEN)
                a.appointment_date = day
                a.time_slot = slot
                a.needs_time_slot = not slot
                a.time_slot_confirmed = bool(slot)
            a.save()
    except IntegrityError:
        raise Conflict(SLOT_TAKEN)
    if moving and slot:
        _notify_parties(
            a, actor,
            title='Follow-up time confirmed',
            message=f'{a.patient.user.display_name} on {day.isoformat()} at {slot}',
        )
    return a


def calendar_entry(a: Appointment) -> dict:
    return {
        '_id': a.id,
        'date': a.appointment_date.isoformat(),
        'time': a.time_slot,
        'status': a.status,
        'type': a.type,
        'patientName': a.patient.user.display_name,
        'doctorName': a.doctor.user.display_name,
    }


def week_calendar(user, day, doctor_id=None) -> dict:
    qs = scoped_appointments(user)
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    days = calendar.week_days(day)
    qs = qs.filter(appointment_date__gte=days[0], appointment_date__lte=days[-1])
    return calendar.build_week_grid([calendar_entry(a) for a in qs], day)


def dashboard(user) -> dict:
    qs = scoped_appointments(user)
    counts = {row['status']: row['n'] for row in qs.values('status').annotate(n=Count('id'))}
    status_count = {status: counts.get(status, 0) for status, _ in Appointment.STATUS_CHOICES}
    recent = qs.order_by('-created_at', '-id')[:5]
    return {
        'statusCount': status_count,
        'recentAppointments': [format_appointment(a) for a in recent],
        'total': sum(status_count.values()),
    }
