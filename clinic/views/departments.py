"""
Department endpoints.

Departments belong to one hospital.  Any signed-in user may list them;
only administrators create, rename or remove them.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Department
from ..permissions import require_role
from ..serializers.department import DepartmentListQuerySerializer, DepartmentSerializer
from ..services.audit import log_action
from ..services.departments import (
    format_department, format_departments, get_department, list_departments, save_department,
)
from ..services.hospitals import get_hospital


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def departments(request):
    if request.method == 'POST':
        require_role(request, 'admin')
        s = DepartmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        department = save_department(Department(
            hospital=get_hospital(vd['hospitalId']),
            name=vd['name'],
            description=vd.get('description', ''),
        ))
        log_action(user=request.user, action='department_create', object_type='department',
                   object_id=department.id, detail={'hospital': department.hospital_id})
        return Response(format_department(department), status=201)

    q = DepartmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response(format_departments(list_departments(q.validated_data.get('hospitalId'))))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def departments_by_hospital(request, hospital_id: int):
    get_hospital(hospital_id)
    return Response(format_departments(list_departments(hospital_id)))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def department_detail(request, department_id: int):
    department = get_department(department_id)
    if request.method == 'GET':
        return Response(format_department(department))

    require_role(request, 'admin')
    if request.method == 'DELETE':
        log_action(user=request.user, action='department_delete', object_type='department',
                   object_id=department.id, detail={'name': department.name})
        department.delete()
        return Response({'ok': True, 'message': 'Department deleted successfully'})

    s = DepartmentSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if 'hospitalId' in vd:
        department.hospital = get_hospital(vd['hospitalId'])
    for field in ('name', 'description'):
        if field in vd:
            setattr(department, field, vd[field])
    save_department(department)
    log_action(user=request.user, action='department_update', object_type='department', object_id=department.id)
    return Response(format_department(department))
