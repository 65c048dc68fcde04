"""
Bearer token authentication for the REST API.

This module defines a subclass of simplejwt's ``JWTAuthentication``
that additionally rejects tokens of deactivated accounts.  Keeping it
separate from any view definitions avoids circular import issues when
the REST framework imports authentication classes during
initialization.
"""
from __future__ import annotations

from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication


class BearerAuthentication(JWTAuthentication):
    """``Authorization: Bearer <jwt>`` authentication.

    Returning ``Bearer`` from :meth:`authenticate_header` is what makes
    DRF answer unauthenticated requests with 401 instead of 403; the
    client relies on the 401 to drop its credentials.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if getattr(user, 'status', 'active') != 'active':
            raise exceptions.AuthenticationFailed('Account is inactive', code='user_inactive')
        return user
