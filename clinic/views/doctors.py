"""
Doctor endpoints.

Listing is open to every signed-in user so patients and front desk
staff can pick a doctor.  Administrators manage doctor accounts; a
doctor reads and edits their own profile and dashboard.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsDoctor, require_role
from ..serializers.doctor import DoctorCreateSerializer, DoctorListQuerySerializer, DoctorUpdateSerializer
from ..services import doctors as svc
from ..services.audit import log_action
from ..services.confirmation import require_confirmation
from ..services.hospitals import get_hospital


def _filtered(request):
    q = DoctorListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.filter_doctors(
        q=vd.get('q'), status=vd.get('status'),
        specialization=vd.get('specialization'), hospital_id=vd.get('hospitalId'),
    )
    active = bool(vd.get('q') or vd.get('specialization') or vd.get('hospitalId')
                  or vd.get('status') not in (None, 'all'))
    return qs, active


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def doctors(request):
    if request.method == 'POST':
        require_role(request, 'admin')
        s = DoctorCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        doctor = svc.create_doctor(s.validated_data)
        log_action(user=request.user, action='doctor_create', object_type='doctor', object_id=doctor.id)
        return Response(svc.format_doctor(doctor), status=201)
    qs, _ = _filtered(request)
    return Response([svc.format_doctor(d) for d in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors_grouped(request):
    require_role(request, 'admin', 'staff')
    qs, active = _filtered(request)
    return Response(svc.grouped_doctors(qs, filters_active=active))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors_by_hospital(request, hospital_id: int):
    get_hospital(hospital_id)
    qs = svc.filter_doctors(hospital_id=hospital_id, status='active')
    return Response([svc.format_doctor(d) for d in qs])


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def doctor_detail(request, doctor_id: int):
    doctor = svc.get_doctor(doctor_id)
    if request.method == 'GET':
        return Response(svc.format_doctor(doctor))

    require_role(request, 'admin')
    if request.method == 'DELETE':
        require_confirmation(request, 'doctor')
        log_action(user=request.user, action='doctor_delete', object_type='doctor', object_id=doctor.id,
                   detail={'email': doctor.user.email})
        svc.delete_doctor(doctor)
        return Response({'ok': True, 'message': 'Doctor deleted successfully'})

    s = DoctorUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    doctor = svc.update_doctor(doctor, s.validated_data)
    log_action(user=request.user, action='doctor_update', object_type='doctor', object_id=doctor.id)
    return Response(svc.format_doctor(doctor))


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsDoctor])
def doctor_profile(request):
    doctor = svc.doctor_for_user(request.user)
    if request.method == 'PUT':
        s = DoctorUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        # a doctor cannot move themselves or change their own status
        vd = {k: v for k, v in s.validated_data.items() if k not in ('hospitalId', 'status')}
        doctor = svc.update_doctor(doctor, vd)
    return Response(svc.format_doctor(doctor))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctor])
def doctor_dashboard(request):
    doctor = svc.doctor_for_user(request.user)
    return Response(svc.doctor_dashboard(doctor, timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctor])
def doctor_stats(request):
    doctor = svc.doctor_for_user(request.user)
    return Response(svc.doctor_stats(doctor, timezone.localdate()))
