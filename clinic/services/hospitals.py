"""Hospital rows with their derived counts, and the cached stats card."""
import logging

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Q
from rest_framework.exceptions import NotFound

from clinic.models import Hospital

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    'name': 'name',
    'doctorsCount': 'doctors_count',
    'patientCount': 'patient_count',
}


def with_counts(qs=None):
    qs = Hospital.objects.all() if qs is None else qs
    return qs.annotate(
        doctors_count=Count('doctors', distinct=True),
        staff_count=Count('staff', distinct=True),
        patient_count=Count('patients', distinct=True),
        appointment_count=Count('appointments', distinct=True),
    )


def get_hospital(hospital_id) -> Hospital:
    obj = Hospital.objects.filter(id=hospital_id).first()
    if not obj:
        raise NotFound('Hospital not found')
    return obj


def hospital_ref(hospital) -> dict | None:
    """Small ``{_id, name}`` dict used inside other resources."""
    if hospital is None:
        return None
    return {'_id': hospital.id, 'name': hospital.name}


def format_hospital(h: Hospital) -> dict:
    data = {
        '_id': h.id,
        'name': h.name,
        'address': h.address,
        'contact': h.contact,
        'email': h.email,
        'specialties': h.specialties or [],
        'description': h.description,
        'image': h.image,
        'status': h.status,
        'createdAt': h.created_at.isoformat() if h.created_at else None,
    }
    # counts are only present on annotated querysets
    for attr, key in (('doctors_count', 'doctorsCount'), ('staff_count', 'staffCount'),
                      ('patient_count', 'patientCount'), ('appointment_count', 'appointmentCount')):
        if hasattr(h, attr):
            data[key] = getattr(h, attr)
    return data


def filter_hospitals(*, q=None, specialty=None, status=None, sort_by=None, sort_order=None):
    qs = with_counts()
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(address__icontains=q))
    if status and status != 'all':
        qs = qs.filter(status=status)
    rows = list(qs.order_by(SORT_FIELDS.get(sort_by or 'name', 'name'), 'id'))
    if specialty:
        # specialties is a JSON list; match case-insensitively in Python so it works on SQLite too
        needle = specialty.lower()
        rows = [h for h in rows if any(needle == str(s).lower() for s in (h.specialties or []))]
    if sort_order == 'desc':
        rows.reverse()
    return rows


def _stats_key(hospital_id) -> str:
    return f'hospital_stats:{hospital_id}'


def hospital_stats(hospital_id) -> dict:
    key = _stats_key(hospital_id)
    stats = cache.get(key)
    if stats is not None:
        return stats
    h = with_counts(Hospital.objects.filter(id=hospital_id)).first()
    if not h:
        raise NotFound('Hospital not found')
    stats = {
        'patientCount': h.patient_count,
        'appointmentCount': h.appointment_count,
        'doctorsCount': h.doctors_count,
        'staffCount': h.staff_count,
    }
    cache.set(key, stats, getattr(settings, 'HOSPITAL_STATS_CACHE_SECONDS', 60))
    return stats


def invalidate_stats(*hospital_ids) -> None:
    for hid in hospital_ids:
        if hid:
            cache.delete(_stats_key(hid))
