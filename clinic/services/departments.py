"""Hospital departments and their staff and doctor head counts.

Staff carry their department as free text and doctors their
specialization; both are matched against the department name without
regard to case.
"""
import logging
from collections import Counter

from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound, ValidationError

from clinic.models import Department, DoctorProfile, StaffProfile
from clinic.services.hospitals import hospital_ref

logger = logging.getLogger(__name__)

DUPLICATE_NAME = 'A department with this name already exists in this hospital'


def get_department(department_id) -> Department:
    obj = Department.objects.select_related('hospital').filter(id=department_id).first()
    if not obj:
        raise NotFound('Department not found')
    return obj


def list_departments(hospital_id=None) -> list[Department]:
    qs = Department.objects.select_related('hospital')
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    return list(qs.order_by('hospital__name', 'name', 'id'))


def format_departments(departments) -> list[dict]:
    departments = list(departments)
    hospital_ids = {d.hospital_id for d in departments}
    staff = Counter(
        (h, (name or '').strip().lower())
        for h, name in StaffProfile.objects.filter(hospital_id__in=hospital_ids).values_list('hospital_id', 'department')
    )
    doctors = Counter(
        (h, (name or '').strip().lower())
        for h, name in DoctorProfile.objects.filter(hospital_id__in=hospital_ids)
        .values_list('hospital_id', 'specialization')
    )
    rows = []
    for d in departments:
        key = (d.hospital_id, d.name.strip().lower())
        rows.append({
            '_id': d.id,
            'name': d.name,
            'description': d.description,
            'hospital': hospital_ref(d.hospital),
            'staffCount': staff[key],
            'doctorCount': doctors[key],
            'createdAt': d.created_at.isoformat() if d.created_at else None,
        })
    return rows


def format_department(d: Department) -> dict:
    return format_departments([d])[0]


def _ensure_unique(hospital_id, name, exclude_id=None) -> None:
    qs = Department.objects.filter(hospital_id=hospital_id, name__iexact=name)
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    if qs.exists():
        raise ValidationError({'name': DUPLICATE_NAME})


def save_department(department: Department) -> Department:
    _ensure_unique(department.hospital_id, department.name, exclude_id=department.id)
    try:
        with transaction.atomic():
            department.save()
    except IntegrityError:
        raise ValidationError({'name': DUPLICATE_NAME})
    logger.info('department %s saved for hospital %s', department.id, department.hospital_id)
    return department
