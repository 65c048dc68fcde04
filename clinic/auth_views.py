"""
Authentication views.

This module defines the login, registration and token endpoints used by
the front end's auth context.  A successful login returns the bearer
token together with the user fields the client keeps in local storage
and the dashboard route for the user's role.  By isolating these views
from the authentication class (see ``clinic.authentication``) we
prevent circular imports when Django REST framework initialises
authentication classes.
"""
from __future__ import annotations

from django.db import transaction
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.exceptions import TokenError

from clinic.models import PatientProfile
from clinic.serializers.auth import LoginSerializer, RegisterSerializer
from clinic.services.accounts import (
    authenticate_identifier, blacklist_refresh_tokens, create_account, format_user, token_payload,
)
from clinic.services.audit import log_action


# ---------------------------------------------------------------------
# Email/password login (role comes from the account, never the body)
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login_view(request):
    """
    Accepts fields:
      - email (or username)
      - password
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    identifier = s.validated_data['identifier']
    password = s.validated_data['password']

    user = authenticate_identifier(request, identifier, password)
    if not user:
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'identifier': identifier, 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'message': 'Invalid email or password'}, status=400)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})
    return Response(token_payload(user), status=200)

# ScopedRateThrottle reads throttle_scope from the wrapped view class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register_view(request):
    """Patient self-registration.  Any ``role`` in the body is ignored."""
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    with transaction.atomic():
        user = create_account(
            email=vd['email'], password=vd['password'], name=vd['name'],
            role='patient', gender=vd.get('gender', ''),
        )
        PatientProfile.objects.create(user=user, gender=user.gender)
    log_action(user=user, action='register', object_type='user', object_id=user.id)
    return Response(token_payload(user), status=201)

register_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def verify_view(request):
    """Confirm the bearer token is still valid and return the current user."""
    return Response({'ok': True, 'valid': True, 'user': format_user(request.user)})


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    data = dict(resp.data)
    if 'access' in data and 'token' not in data:
        data['token'] = data.pop('access')
    return Response(data, status=resp.status_code)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist current user's refresh tokens (all or a given one)."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            return Response({'ok': False, 'message': str(e)}, status=400)
    else:
        count = blacklist_refresh_tokens(request.user)
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})
