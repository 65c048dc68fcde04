"""
Websocket authentication.

Browsers cannot set an ``Authorization`` header on a websocket, so the
access token travels in the query string (``?token=...``) and is
validated with the same simplejwt settings as the REST API.
"""
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.exceptions import TokenError

from clinic.authentication import BearerAuthentication


@database_sync_to_async
def _user_for(raw_token: str):
    auth = BearerAuthentication()
    try:
        validated = auth.get_validated_token(raw_token)
        return auth.get_user(validated)
    except (AuthenticationFailed, TokenError):
        return AnonymousUser()


class JWTQueryAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get("query_string", b"").decode())
        token = (query.get("token") or [None])[0]
        scope["user"] = await _user_for(token) if token else AnonymousUser()
        return await super().__call__(scope, receive, send)
