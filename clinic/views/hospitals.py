"""
Hospital endpoints.

Any signed-in user may browse hospitals (patients pick one when
booking); only administrators create, edit or remove them.  Removing a
hospital requires the typed confirmation ``delete hospital``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Hospital
from ..permissions import require_role
from ..serializers.hospital import HospitalListQuerySerializer, HospitalSerializer
from ..services.audit import log_action
from ..services.confirmation import require_confirmation
from ..services.hospitals import (
    filter_hospitals, format_hospital, get_hospital, hospital_stats, invalidate_stats, with_counts,
)
from ..services.staff import format_staff, filter_staff


def _apply(hospital: Hospital, vd: dict) -> None:
    for field in ('name', 'address', 'contact', 'email', 'specialties', 'description', 'image', 'status'):
        if field in vd:
            setattr(hospital, field, vd[field])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def hospitals(request):
    if request.method == 'POST':
        require_role(request, 'admin')
        s = HospitalSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        h = Hospital()
        _apply(h, s.validated_data)
        h.save()
        log_action(user=request.user, action='hospital_create', object_type='hospital', object_id=h.id)
        return Response(format_hospital(with_counts().get(id=h.id)), status=201)

    q = HospitalListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    rows = filter_hospitals(
        q=vd.get('q'), specialty=vd.get('specialty'), status=vd.get('status'),
        sort_by=vd.get('sortBy'), sort_order=vd.get('sortOrder'),
    )
    return Response([format_hospital(h) for h in rows])


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def hospital_detail(request, hospital_id: int):
    hospital = get_hospital(hospital_id)
    if request.method == 'GET':
        return Response(format_hospital(with_counts().get(id=hospital.id)))

    require_role(request, 'admin')
    if request.method == 'DELETE':
        require_confirmation(request, 'hospital')
        log_action(user=request.user, action='hospital_delete', object_type='hospital',
                   object_id=hospital.id, detail={'name': hospital.name})
        hospital.delete()
        invalidate_stats(hospital_id)
        return Response({'ok': True, 'message': 'Hospital deleted successfully'})

    s = HospitalSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    _apply(hospital, s.validated_data)
    hospital.save()
    log_action(user=request.user, action='hospital_update', object_type='hospital', object_id=hospital.id)
    return Response(format_hospital(with_counts().get(id=hospital.id)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def hospital_stats_view(request, hospital_id: int):
    return Response(hospital_stats(hospital_id))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def hospital_staff(request, hospital_id: int):
    require_role(request, 'admin', 'staff', 'doctor')
    get_hospital(hospital_id)
    return Response([format_staff(s) for s in filter_staff(hospital_id=hospital_id)])
