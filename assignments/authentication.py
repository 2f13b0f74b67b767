"""
Bearer token authentication backed by signed JWTs.

Tokens carry the user's id, username, role and approval status. Logout
revokes a token by adding it to ``BlacklistedToken``; revoked tokens are
refused even while their signature and expiry are still valid.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone

from django.conf import settings
from django.contrib.auth.models import User
from jose import JWTError, jwt
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from assignments.models import BlacklistedToken

logger = logging.getLogger(__name__)


def issue_token(user) -> str:
    jwt_settings = settings.JWT_SETTINGS
    profile = getattr(user, 'profile', None)
    now = datetime.now(timezone.utc)
    claims = {
        'id': user.id,
        'username': user.username,
        'role': profile.role if profile else None,
        'status': profile.status if profile else None,
        'iat': int(now.timestamp()),
        'exp': now + timedelta(minutes=jwt_settings['ACCESS_TOKEN_LIFETIME_MINUTES']),
        'jti': uuid.uuid4().hex,
    }
    return jwt.encode(claims, jwt_settings['SECRET_KEY'], algorithm=jwt_settings['ALGORITHM'])


def decode_token(token: str) -> dict:
    jwt_settings = settings.JWT_SETTINGS
    return jwt.decode(token, jwt_settings['SECRET_KEY'], algorithms=[jwt_settings['ALGORITHM']])


class JWTAuthentication(BaseAuthentication):
    @property
    def keyword(self):
        return settings.JWT_SETTINGS['AUTH_HEADER_TYPE']

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None
        if len(auth) != 2:
            raise exceptions.AuthenticationFailed("Invalid token header.")

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed("Invalid token header.")

        return self.authenticate_credentials(token)

    def authenticate_credentials(self, token):
        if BlacklistedToken.is_revoked(token):
            raise exceptions.AuthenticationFailed("Token has been revoked.")

        try:
            payload = decode_token(token)
        except JWTError as exc:
            logger.info(f"Rejected bearer token: {exc}")
            raise exceptions.AuthenticationFailed("Invalid token.")

        try:
            user = User.objects.select_related('profile').get(pk=payload.get('id'))
        except (User.DoesNotExist, ValueError, TypeError):
            raise exceptions.AuthenticationFailed("User not found.")

        if not user.is_active:
            raise exceptions.AuthenticationFailed("User inactive or deleted.")

        return user, token

    def authenticate_header(self, request):
        return self.keyword
