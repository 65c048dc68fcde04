"""
Patient endpoints.

What a caller sees depends on the role: administrators see everyone,
doctors the patients they are assigned to or have appointments with,
staff the patients of their own hospital and patients only themselves.
Staff always create patients in their own hospital, whatever
``hospitalId`` the body carries.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import DoctorProfile
from ..permissions import require_role
from ..serializers.patient import PatientListQuerySerializer, PatientSerializer
from ..services import patients as svc
from ..services.audit import log_action
from ..services.confirmation import require_confirmation
from ..services.hospitals import get_hospital
from ..services.scope import require_staff_hospital


def _filtered(request):
    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.scoped_patients(request.user)
    text = vd.get('q') or vd.get('query')
    qs = svc.search(qs, text)
    if vd.get('status') and vd['status'] != 'all':
        qs = qs.filter(status=vd['status'])
    if vd.get('hospitalId'):
        qs = qs.filter(hospital_id=vd['hospitalId'])
    active = bool(text or vd.get('hospitalId') or vd.get('status') not in (None, 'all'))
    return qs, active


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients(request):
    if request.method == 'POST':
        require_role(request, 'admin', 'staff')
        s = PatientSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        patient = svc.create_patient(request.user, s.validated_data)
        log_action(user=request.user, action='patient_create', object_type='patient', object_id=patient.id)
        return Response(svc.format_patient(patient), status=201)
    require_role(request, 'admin', 'staff', 'doctor')
    qs, _ = _filtered(request)
    return Response([svc.format_patient(p) for p in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patients_search(request):
    """Name/email/phone lookup used by the booking modal."""
    require_role(request, 'admin', 'staff', 'doctor')
    qs, _ = _filtered(request)
    return Response([svc.format_patient(p) for p in qs[:50]])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patients_grouped(request):
    require_role(request, 'admin', 'staff')
    qs, active = _filtered(request)
    return Response(svc.grouped_patients(qs, filters_active=active))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patients_by_doctor(request, doctor_id: int):
    require_role(request, 'admin', 'staff', 'doctor')
    doctor = DoctorProfile.objects.filter(id=doctor_id).first()
    if not doctor:
        raise NotFound('Doctor not found')
    qs = svc.scoped_patients(request.user).filter(Q(doctor=doctor) | Q(appointments__doctor=doctor)).distinct()
    return Response([svc.format_patient(p) for p in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patients_by_hospital(request, hospital_id: int):
    require_role(request, 'admin', 'staff', 'doctor')
    get_hospital(hospital_id)
    if request.user.role == 'staff' and require_staff_hospital(request.user) != hospital_id:
        raise PermissionDenied('You can only view patients of your own hospital')
    qs = svc.scoped_patients(request.user).filter(hospital_id=hospital_id)
    return Response([svc.format_patient(p) for p in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_count(request):
    require_role(request, 'admin', 'staff', 'doctor')
    return Response({'count': svc.scoped_patients(request.user).count()})


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, patient_id: int):
    patient = svc.get_visible_patient(request.user, patient_id)
    if request.method == 'GET':
        return Response(svc.format_patient(patient))

    require_role(request, 'admin', 'staff')
    if request.method == 'DELETE':
        require_confirmation(request, 'patient')
        log_action(user=request.user, action='patient_delete', object_type='patient', object_id=patient.id,
                   detail={'email': patient.user.email})
        svc.delete_patient(patient)
        return Response({'ok': True, 'message': 'Patient deleted successfully'})

    s = PatientSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    patient = svc.update_patient(request.user, patient, s.validated_data)
    log_action(user=request.user, action='patient_update', object_type='patient', object_id=patient.id)
    return Response(svc.format_patient(patient))
