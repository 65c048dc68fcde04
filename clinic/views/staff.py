"""
Staff endpoints.

Administrators manage staff accounts and see them grouped by hospital.
A staff member reads and edits their own profile, sees the roster of
their hospital, the front desk counters for today, their task list and
their notifications.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsAdmin, IsStaff, require_role
from ..serializers.staff import (
    StaffCreateSerializer, StaffSelfUpdateSerializer, StaffUpdateSerializer, TaskStatusSerializer,
)
from ..services import notifications
from ..services import staff as svc
from ..services.audit import log_action
from ..services.confirmation import require_confirmation
from ..services.hospitals import get_hospital
from ..services.scope import require_staff_hospital


def _filters(request) -> dict:
    p = request.query_params
    return {
        'q': (p.get('q') or '').strip() or None,
        'status': p.get('status') or None,
        'hospital_id': p.get('hospitalId') if (p.get('hospitalId') or '').isdigit() else None,
        'department': p.get('department') or None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def staff_list(request):
    if request.method == 'POST':
        s = StaffCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        member = svc.create_staff(s.validated_data)
        log_action(user=request.user, action='staff_create', object_type='staff', object_id=member.id)
        return Response(svc.format_staff(member), status=201)
    return Response([svc.format_staff(m) for m in svc.filter_staff(**_filters(request))])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdmin])
def staff_grouped(request):
    f = _filters(request)
    active = bool(f['q'] or f['hospital_id'] or f['department'] or f['status'] not in (None, 'all'))
    return Response(svc.grouped_staff(svc.filter_staff(**f), filters_active=active))


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdmin])
def staff_detail(request, staff_id: int):
    member = svc.get_staff(staff_id)
    if request.method == 'DELETE':
        require_confirmation(request, 'staff')
        log_action(user=request.user, action='staff_delete', object_type='staff', object_id=member.id,
                   detail={'email': member.user.email})
        svc.delete_staff(member)
        return Response({'ok': True, 'message': 'Staff member deleted successfully'})
    s = StaffUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    member = svc.update_staff(member, s.validated_data)
    log_action(user=request.user, action='staff_update', object_type='staff', object_id=member.id)
    return Response(svc.format_staff(member))


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsStaff])
def staff_profile(request):
    member = svc.staff_for_user(request.user)
    if request.method == 'PUT':
        s = StaffSelfUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        member = svc.update_staff(member, s.validated_data)
    return Response(svc.format_staff(svc.get_staff(member.id)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def own_hospital_staff(request):
    hid = require_staff_hospital(request.user)
    return Response([svc.format_staff(m) for m in svc.filter_staff(hospital_id=hid)])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def staff_by_hospital(request, hospital_id: int):
    require_role(request, 'admin', 'staff')
    if request.user.role == 'staff' and require_staff_hospital(request.user) != hospital_id:
        raise PermissionDenied('You can only view staff of your own hospital')
    get_hospital(hospital_id)
    return Response([svc.format_staff(m) for m in svc.filter_staff(hospital_id=hospital_id)])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def dashboard_stats(request):
    return Response(svc.dashboard_stats(request.user, timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def tasks(request):
    return Response([svc.format_task(t) for t in svc.tasks_for(request.user)])


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsStaff])
def task_status(request, task_id: int):
    s = TaskStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    task = svc.set_task_status(request.user, task_id, s.validated_data['status'])
    return Response(svc.format_task(task))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def staff_notifications(request):
    rows = notifications.unread_first(request.user)[:50]
    return Response([notifications.format_notification(n) for n in rows])


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsStaff])
def notification_read(request, notification_id: int):
    n = notifications.mark_read(request.user, notification_id)
    return Response(notifications.format_notification(n))
