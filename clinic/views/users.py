"""
User administration endpoints.

Administrators list accounts across every role and may change a user's
role, status or hospital binding.  A role change swaps the role profile
in the same transaction.  Every signed-in user can read and edit their own
account and change their password here.
"""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsAdmin
from ..serializers.auth import ChangePasswordSerializer, ProfileUpdateSerializer, UserUpdateSerializer
from ..services.accounts import change_password as set_new_password
from ..services.accounts import ensure_email_available, format_user, sync_role_profile
from ..services.audit import log_action
from ..services.hospitals import get_hospital

User = get_user_model()


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdmin])
def list_users(request):
    qs = User.objects.all().order_by('name', 'id')
    role = request.query_params.get('role')
    status = request.query_params.get('status')
    q = (request.query_params.get('q') or '').strip()
    if role:
        qs = qs.filter(role=role)
    if status and status != 'all':
        qs = qs.filter(status=status)
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(email__icontains=q))
    return Response([format_user(u) for u in qs])


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdmin])
def user_detail(request, user_id: int):
    user = User.objects.filter(id=user_id).first()
    if not user:
        raise NotFound('User not found')

    if request.method == 'GET':
        return Response(format_user(user))

    if request.method == 'DELETE':
        if user.id == request.user.id:
            raise ValidationError('You cannot delete your own account')
        log_action(user=request.user, action='user_delete', object_type='user', object_id=user.id,
                   detail={'email': user.email, 'role': user.role})
        user.delete()
        return Response({'ok': True, 'message': 'User deleted successfully'})

    s = UserUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    previous_role = user.role
    if 'email' in vd:
        ensure_email_available(vd['email'], exclude_id=user.id)
        user.email = vd['email'].lower()
    if 'hospital' in vd:
        user.hospital = get_hospital(vd['hospital']) if vd['hospital'] else None
    for field in ('name', 'gender', 'role', 'status'):
        if field in vd:
            setattr(user, field, vd[field])
    if user.id == request.user.id and user.role != User.ROLE_ADMIN:
        raise ValidationError('You cannot remove your own admin role')
    with transaction.atomic():
        user.save()
        sync_role_profile(user, previous_role, hospital_changed='hospital' in vd)
    log_action(user=request.user, action='user_update', object_type='user', object_id=user.id,
               detail={k: v for k, v in vd.items() if k != 'hospital'})
    return Response(format_user(user))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_profile(request):
    return Response(format_user(request.user))


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_profile(request):
    """Edit the signed-in user's name, email and gender."""
    s = ProfileUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    user = request.user
    if 'email' in vd:
        ensure_email_available(vd['email'], exclude_id=user.id)
        user.email = vd['email'].lower()
    for field in ('name', 'gender'):
        if field in vd:
            setattr(user, field, vd[field])
    user.save()
    log_action(user=user, action='profile_update', object_type='user', object_id=user.id,
               detail={'fields': sorted(vd)})
    return Response(format_user(user))


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    with transaction.atomic():
        revoked = set_new_password(request.user, s.validated_data['currentPassword'],
                                   s.validated_data['newPassword'])
    log_action(user=request.user, action='password_change', object_type='user', object_id=request.user.id,
               detail={'blacklisted': revoked})
    return Response({'ok': True, 'message': 'Password updated successfully', 'blacklisted': revoked})
