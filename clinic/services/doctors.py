import datetime as dt
import logging

from django.db import transaction
from django.db.models import Count, Q
from rest_framework.exceptions import NotFound, PermissionDenied

from clinic.models import DoctorProfile, Hospital, PatientProfile, User
from clinic.services.accounts import create_account
from clinic.services.grouping import group_by_hospital
from clinic.services.hospitals import hospital_ref, invalidate_stats

logger = logging.getLogger(__name__)


def doctor_queryset():
    return (
        DoctorProfile.objects.select_related('user', 'hospital')
        .annotate(
            appointment_count=Count('appointments', distinct=True),
            patient_count=Count('appointments__patient', distinct=True),
        )
        .order_by('user__name', 'id')
    )


def format_doctor(d: DoctorProfile) -> dict:
    return {
        '_id': d.id,
        'userId': d.user_id,
        'name': d.user.display_name,
        'email': d.user.email,
        'gender': d.user.gender,
        'status': d.user.status,
        'specialization': d.specialization,
        'experience': d.experience,
        'fees': float(d.fees),
        'qualification': d.qualification,
        'hospital': hospital_ref(d.hospital),
        'appointments': getattr(d, 'appointment_count', None),
        'patients': getattr(d, 'patient_count', None),
    }


def filter_doctors(*, q=None, status=None, specialization=None, hospital_id=None):
    qs = doctor_queryset()
    if q:
        qs = qs.filter(Q(user__name__icontains=q) | Q(specialization__icontains=q))
    if status and status != 'all':
        qs = qs.filter(user__status=status)
    if specialization:
        qs = qs.filter(specialization__iexact=specialization)
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    return qs


def grouped_doctors(doctors, *, filters_active: bool) -> list[dict]:
    rows = [format_doctor(d) for d in doctors]
    hospitals = [{'_id': h.id, 'name': h.name} for h in Hospital.objects.all()]
    buckets = group_by_hospital(
        rows, hospitals,
        hospital_of=lambda r: r['hospital'],
        is_active=lambda r: r['status'] == 'active',
        metric=lambda r: r['appointments'] or 0,
        filters_active=filters_active,
    )
    return [b.as_dict('doctors', 'activeDoctors', 'totalAppointments') for b in buckets]


def get_doctor(doctor_id) -> DoctorProfile:
    obj = doctor_queryset().filter(id=doctor_id).first()
    if not obj:
        raise NotFound('Doctor not found')
    return obj


def doctor_for_user(user) -> DoctorProfile:
    obj = doctor_queryset().filter(user=user).first()
    if not obj:
        raise PermissionDenied('Doctor profile not found')
    return obj


def _hospital_or_none(hospital_id):
    if not hospital_id:
        return None
    h = Hospital.objects.filter(id=hospital_id).first()
    if not h:
        raise NotFound('Hospital not found')
    return h


@transaction.atomic
def create_doctor(data: dict) -> DoctorProfile:
    hospital = _hospital_or_none(data.get('hospitalId'))
    user = create_account(
        email=data['email'], password=data['password'], name=data['name'],
        role=User.ROLE_DOCTOR, gender=data.get('gender', ''), hospital=hospital,
    )
    profile = DoctorProfile.objects.create(
        user=user,
        hospital=hospital,
        specialization=data['specialization'],
        experience=data.get('experience') or 0,
        fees=data.get('fees') or 0,
        qualification=data.get('qualification', ''),
    )
    invalidate_stats(hospital.id if hospital else None)
    return get_doctor(profile.id)


@transaction.atomic
def update_doctor(profile: DoctorProfile, data: dict) -> DoctorProfile:
    user = profile.user
    old_hospital = profile.hospital_id
    if 'hospitalId' in data:
        profile.hospital = _hospital_or_none(data['hospitalId'])
        user.hospital = profile.hospital
    for key, attr in (('specialization', 'specialization'), ('experience', 'experience'),
                      ('fees', 'fees'), ('qualification', 'qualification')):
        if key in data:
            setattr(profile, attr, data[key])
    if 'name' in data:
        user.name = data['name']
    if 'status' in data:
        user.status = data['status']
    user.save()
    profile.save()
    invalidate_stats(old_hospital, profile.hospital_id)
    return get_doctor(profile.id)


def delete_doctor(profile: DoctorProfile) -> None:
    hid = profile.hospital_id
    # the profile cascades from the user
    profile.user.delete()
    invalidate_stats(hid)


def doctor_dashboard(profile: DoctorProfile, today) -> dict:
    from clinic.services.appointments import format_appointment
    qs = profile.appointments.select_related('patient__user', 'doctor__user', 'hospital')
    todays = qs.filter(appointment_date=today).order_by('time_slot')
    upcoming = qs.filter(appointment_date__gt=today).exclude(status__in=['cancelled', 'completed']).count()
    by_status = {row['status']: row['n'] for row in qs.values('status').annotate(n=Count('id'))}
    return {
        'doctor': format_doctor(profile),
        'todayAppointments': [format_appointment(a) for a in todays],
        'upcomingCount': upcoming,
        'patientCount': qs.values('patient_id').distinct().count(),
        'statusCount': by_status,
    }


AGE_GROUPS = (('0-18', 0, 18), ('19-35', 19, 35), ('36-50', 36, 50), ('51-65', 51, 65), ('65+', 66, None))


def _age(patient, today):
    if patient.age is not None:
        return patient.age
    if patient.date_of_birth:
        dob = patient.date_of_birth
        return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))
    return None


def doctor_stats(profile: DoctorProfile, today) -> dict:
    """Analytics card of the doctor dashboard: volumes, last seven days, demographics."""
    qs = profile.appointments.all()
    live = qs.exclude(status='cancelled')
    week = [today - dt.timedelta(days=n) for n in range(6, -1, -1)]
    per_day = {
        row['appointment_date']: row['n']
        for row in live.filter(appointment_date__gte=week[0], appointment_date__lte=today)
        .values('appointment_date').annotate(n=Count('id'))
    }
    completed = qs.filter(status='completed').count()
    total_live = live.count()

    gender = {'male': 0, 'female': 0, 'other': 0}
    ages = {label: 0 for label, _, _ in AGE_GROUPS}
    patients = list(PatientProfile.objects.filter(appointments__doctor=profile).distinct())
    for patient in patients:
        g = (patient.gender or '').lower()
        gender[g if g in ('male', 'female') else 'other'] += 1
        age = _age(patient, today)
        if age is None:
            continue
        for label, low, high in AGE_GROUPS:
            if age >= low and (high is None or age <= high):
                ages[label] += 1
                break

    return {
        'doctorName': profile.user.display_name,
        'totalPatients': len(patients),
        'todayPatients': live.filter(appointment_date=today).values('patient_id').distinct().count(),
        'completedAppointments': completed,
        'pendingAppointments': qs.filter(status='pending').count(),
        'weeklyPatients': live.filter(appointment_date__gte=week[0], appointment_date__lte=today)
        .values('patient_id').distinct().count(),
        'appointmentRate': round(completed * 100 / total_live, 1) if total_live else 0,
        'weeklyStats': {
            'dates': [d.isoformat() for d in week],
            'appointments': [per_day.get(d, 0) for d in week],
        },
        'patientDemographics': {'gender': gender, 'ageGroups': ages},
        'appointmentTypes': [
            {'type': row['type'], 'count': row['n']}
            for row in live.values('type').annotate(n=Count('id')).order_by('-n', 'type')
        ],
    }
