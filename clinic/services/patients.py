import logging
import secrets

from django.db import transaction
from django.db.models import Q
from rest_framework.exceptions import NotFound, PermissionDenied

from clinic.models import DoctorProfile, Hospital, PatientProfile, User
from clinic.serializers.fields import json_ready
from clinic.services.accounts import create_account, ensure_email_available
from clinic.services.grouping import group_by_hospital
from clinic.services.hospitals import hospital_ref, invalidate_stats
from clinic.services.scope import profile_of, require_staff_hospital

logger = logging.getLogger(__name__)


def format_patient(p: PatientProfile) -> dict:
    doctor = p.doctor
    return {
        '_id': p.id,
        'userId': p.user_id,
        'name': p.user.display_name,
        'email': p.user.email,
        'age': p.age,
        'dateOfBirth': p.date_of_birth.isoformat() if p.date_of_birth else None,
        'gender': p.gender or p.user.gender,
        'phone': p.phone,
        'bloodGroup': p.blood_group,
        'allergies': p.allergies or [],
        'medicalHistory': p.medical_history or [],
        'emergencyContact': p.emergency_contact or {},
        'status': p.status,
        'hospital': hospital_ref(p.hospital),
        'doctor': {'_id': doctor.id, 'name': doctor.user.display_name} if doctor else None,
        'createdAt': p.created_at.isoformat() if p.created_at else None,
    }


def patient_queryset():
    return PatientProfile.objects.select_related('user', 'hospital', 'doctor__user').order_by('user__name', 'id')


def scoped_patients(user):
    """Patients visible to ``user`` according to their role."""
    qs = patient_queryset()
    if user.role == User.ROLE_ADMIN:
        return qs
    if user.role == User.ROLE_DOCTOR:
        doctor = profile_of(user, 'doctor_profile')
        if doctor is None:
            return qs.none()
        return qs.filter(Q(doctor=doctor) | Q(appointments__doctor=doctor)).distinct()
    if user.role == User.ROLE_STAFF:
        return qs.filter(hospital_id=require_staff_hospital(user))
    return qs.filter(user=user)


def search(qs, text):
    if not text:
        return qs
    return qs.filter(
        Q(user__name__icontains=text) | Q(user__email__icontains=text) | Q(phone__icontains=text)
    )


def grouped_patients(patients, *, filters_active: bool) -> list[dict]:
    rows = [format_patient(p) for p in patients]
    hospitals = [{'_id': h.id, 'name': h.name} for h in Hospital.objects.all()]
    buckets = group_by_hospital(
        rows, hospitals,
        hospital_of=lambda r: r['hospital'],
        is_active=lambda r: r['status'] == 'active',
        filters_active=filters_active,
    )
    return [b.as_dict('patients', 'activePatients') for b in buckets]


def get_visible_patient(user, patient_id) -> PatientProfile:
    obj = patient_queryset().filter(id=patient_id).first()
    if not obj:
        raise NotFound('Patient not found')
    if not scoped_patients(user).filter(id=obj.id).exists():
        raise PermissionDenied('You cannot access this patient')
    return obj


def _resolve_links(user, data: dict):
    """Hospital and doctor for a create/update; staff are pinned to their hospital."""
    if user.role == User.ROLE_STAFF:
        hospital = Hospital.objects.get(id=require_staff_hospital(user))
    elif data.get('hospitalId'):
        hospital = Hospital.objects.filter(id=data['hospitalId']).first()
        if not hospital:
            raise NotFound('Hospital not found')
    else:
        hospital = None
    doctor = None
    if data.get('doctorId'):
        doctor = DoctorProfile.objects.filter(id=data['doctorId']).first()
        if not doctor:
            raise NotFound('Doctor not found')
    return hospital, doctor


_FIELD_MAP = (
    ('age', 'age'), ('dateOfBirth', 'date_of_birth'), ('gender', 'gender'), ('phone', 'phone'),
    ('bloodGroup', 'blood_group'), ('allergies', 'allergies'), ('medicalHistory', 'medical_history'),
    ('emergencyContact', 'emergency_contact'), ('status', 'status'),
)


@transaction.atomic
def create_patient(actor, data: dict):
    hospital, doctor = _resolve_links(actor, data)
    password = data.get('password') or secrets.token_urlsafe(12)
    user = create_account(
        email=data['email'], password=password, name=data['name'],
        role=User.ROLE_PATIENT, gender=data.get('gender', ''), hospital=hospital,
    )
    profile = PatientProfile(user=user, hospital=hospital, doctor=doctor)
    for key, attr in _FIELD_MAP:
        if key in data:
            value = data[key]
            setattr(profile, attr, json_ready(value) if attr in ('medical_history', 'emergency_contact') else value)
    profile.save()
    invalidate_stats(hospital.id if hospital else None)
    logger.info('patient %s created by %s', profile.id, actor.id)
    return patient_queryset().get(id=profile.id)


@transaction.atomic
def update_patient(actor, profile: PatientProfile, data: dict) -> PatientProfile:
    user = profile.user
    old_hospital = profile.hospital_id
    if 'hospitalId' in data or 'doctorId' in data or actor.role == User.ROLE_STAFF:
        hospital, doctor = _resolve_links(actor, {
            'hospitalId': data.get('hospitalId', profile.hospital_id),
            'doctorId': data.get('doctorId', profile.doctor_id),
        })
        profile.hospital, profile.doctor = hospital, doctor
        user.hospital = hospital
    if 'email' in data and data['email'].lower() != user.email.lower():
        ensure_email_available(data['email'], exclude_id=user.id)
        user.email = data['email'].lower()
    if 'name' in data:
        user.name = data['name']
    for key, attr in _FIELD_MAP:
        if key in data:
            value = data[key]
            setattr(profile, attr, json_ready(value) if attr in ('medical_history', 'emergency_contact') else value)
    user.save()
    profile.save()
    invalidate_stats(old_hospital, profile.hospital_id)
    return patient_queryset().get(id=profile.id)


def delete_patient(profile: PatientProfile) -> None:
    hid = profile.hospital_id
    profile.user.delete()
    invalidate_stats(hid)
