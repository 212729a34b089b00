"""Bearer credential verification for socket connections."""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from rest_framework.exceptions import AuthenticationFailed as DRFAuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError

from .exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


class JWTIdentityVerifier:
    """Resolve a simplejwt access token to the id of an active account."""

    def __init__(self) -> None:
        self._jwt_auth = JWTAuthentication()

    @database_sync_to_async
    def _get_user_id(self, credential: str) -> int:
        validated = self._jwt_auth.get_validated_token(credential)
        user = self._jwt_auth.get_user(validated)
        return int(user.id)

    async def verify(self, credential: str) -> int:
        if not isinstance(credential, str) or not credential:
            raise AuthenticationFailed
        try:
            return await self._get_user_id(credential)
        except (TokenError, DRFAuthenticationFailed) as exc:
            # Invalid or expired token, or a user that is missing or inactive.
            logger.info("Rejected socket credential: %s", exc)
            raise AuthenticationFailed from exc
