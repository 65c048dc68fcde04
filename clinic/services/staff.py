import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from clinic.models import Appointment, Hospital, PatientProfile, StaffProfile, StaffTask, User
from clinic.serializers.fields import json_ready
from clinic.services.accounts import create_account
from clinic.services.grouping import group_by_hospital
from clinic.services.hospitals import get_hospital, hospital_ref, invalidate_stats
from clinic.services.scope import profile_of, require_staff_hospital

logger = logging.getLogger(__name__)


def format_staff(s: StaffProfile) -> dict:
    return {
        '_id': s.id,
        'userId': s.user_id,
        'name': s.user.display_name,
        'email': s.user.email,
        'gender': s.user.gender,
        'employeeId': s.employee_id,
        'department': s.department,
        'shift': s.shift,
        'joiningDate': s.joining_date.isoformat() if s.joining_date else None,
        'emergencyContact': s.emergency_contact or {},
        'address': s.address or {},
        'qualifications': s.qualifications or [],
        'experience': s.experience or [],
        'skills': s.skills or [],
        'status': s.status,
        'leaveBalance': s.leave_balance or {},
        'hospital': hospital_ref(s.hospital),
    }


def staff_queryset():
    return StaffProfile.objects.select_related('user', 'hospital').order_by('user__name', 'id')


def filter_staff(*, q=None, status=None, hospital_id=None, department=None):
    qs = staff_queryset()
    if q:
        qs = qs.filter(
            Q(user__name__icontains=q) | Q(user__email__icontains=q) | Q(employee_id__icontains=q)
        )
    if status and status != 'all':
        qs = qs.filter(status=status)
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    if department:
        qs = qs.filter(department__iexact=department)
    return qs


def grouped_staff(members, *, filters_active: bool) -> list[dict]:
    rows = [format_staff(s) for s in members]
    hospitals = [{'_id': h.id, 'name': h.name} for h in Hospital.objects.all()]
    buckets = group_by_hospital(
        rows, hospitals,
        hospital_of=lambda r: r['hospital'],
        is_active=lambda r: r['status'] == 'active',
        filters_active=filters_active,
    )
    return [b.as_dict('staff', 'activeStaff') for b in buckets]


def get_staff(staff_id) -> StaffProfile:
    obj = staff_queryset().filter(id=staff_id).first()
    if not obj:
        raise NotFound('Staff member not found')
    return obj


def staff_for_user(user) -> StaffProfile:
    obj = profile_of(user, 'staff_profile')
    if obj is None:
        raise PermissionDenied('Staff profile not found')
    return obj


_PROFILE_FIELDS = (
    ('department', 'department'), ('shift', 'shift'), ('emergencyContact', 'emergency_contact'),
    ('address', 'address'), ('qualifications', 'qualifications'), ('experience', 'experience'),
    ('skills', 'skills'), ('status', 'status'), ('leaveBalance', 'leave_balance'),
    ('joiningDate', 'joining_date'),
)


def _apply_profile(profile: StaffProfile, data: dict) -> None:
    for key, attr in _PROFILE_FIELDS:
        if key in data:
            value = data[key]
            setattr(profile, attr, value if attr == 'joining_date' else json_ready(value))


@transaction.atomic
def create_staff(data: dict) -> StaffProfile:
    hospital = get_hospital(data['hospital'])
    user = create_account(
        email=data['email'], password=data['password'], name=data['name'],
        role=User.ROLE_STAFF, gender=data.get('gender', ''), hospital=hospital,
    )
    profile = StaffProfile(user=user, hospital=hospital, joining_date=timezone.localdate())
    _apply_profile(profile, data)
    profile.save()
    invalidate_stats(hospital.id)
    logger.info('staff %s (%s) created', profile.id, profile.employee_id)
    return get_staff(profile.id)


@transaction.atomic
def update_staff(profile: StaffProfile, data: dict) -> StaffProfile:
    user = profile.user
    old_hospital = profile.hospital_id
    if 'hospital' in data:
        profile.hospital = get_hospital(data['hospital']) if data['hospital'] else None
        user.hospital = profile.hospital
    if 'name' in data:
        user.name = data['name']
    if 'gender' in data:
        user.gender = data['gender']
    _apply_profile(profile, data)
    user.save()
    profile.save()
    invalidate_stats(old_hospital, profile.hospital_id)
    return get_staff(profile.id)


def delete_staff(profile: StaffProfile) -> None:
    hid = profile.hospital_id
    profile.user.delete()
    invalidate_stats(hid)


def dashboard_stats(user, today) -> dict:
    hid = require_staff_hospital(user)
    todays = Appointment.objects.filter(hospital_id=hid, appointment_date=today)
    return {
        'todayAppointments': todays.count(),
        'pendingAppointments': todays.filter(status=Appointment.STATUS_PENDING).count(),
        'confirmedAppointments': todays.filter(status=Appointment.STATUS_CONFIRMED).count(),
        'checkedIn': todays.filter(checked_in_at__isnull=False).count(),
        'totalPatients': PatientProfile.objects.filter(hospital_id=hid).count(),
    }


def format_task(t: StaffTask) -> dict:
    return {
        '_id': t.id,
        'title': t.title,
        'description': t.description,
        'dueDate': t.due_date.isoformat() if t.due_date else None,
        'priority': t.priority,
        'status': t.status,
        'updatedAt': t.updated_at.isoformat() if t.updated_at else None,
    }


def tasks_for(user):
    return staff_for_user(user).tasks.order_by('status', 'due_date', 'id')


def set_task_status(user, task_id, status: str) -> StaffTask:
    task = StaffTask.objects.filter(id=task_id, staff=staff_for_user(user)).first()
    if not task:
        raise NotFound('Task not found')
    task.status = status
    task.save(update_fields=['status', 'updated_at'])
    return task
