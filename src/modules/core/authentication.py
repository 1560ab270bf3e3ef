"""Auth0 JWT authentication backend for Django REST Framework.

Merchants and platform admins sign in through the external identity
provider; the API only verifies the RS256 bearer token.  JWKS keys are
fetched from the tenant and cached in-memory (300 s) by ``PyJWKClient``.

* Fail closed: any decode or validation error is a 401.
* ``algorithms`` comes from configuration, never from the token header.
* Audience and issuer are always validated.
* Tokens issued by anyone else fall through to SimpleJWT (local users).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import jwt as pyjwt
import structlog
from decouple import config
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = structlog.get_logger(__name__)

AUTH0_DOMAIN = config("AUTH0_DOMAIN", default="")
AUTH0_AUDIENCE = config("AUTH0_AUDIENCE", default="")
AUTH0_ALGORITHM = config("AUTH0_ALGORITHM", default="RS256")
# Custom claim carrying the verified e-mail (Auth0 rules namespace it)
AUTH0_EMAIL_CLAIM = config("AUTH0_EMAIL_CLAIM", default="email")

_ISSUER = f"https://{AUTH0_DOMAIN}/" if AUTH0_DOMAIN else ""
_JWKS_URL = f"https://{AUTH0_DOMAIN}/.well-known/jwks.json" if AUTH0_DOMAIN else ""

_jwks_client: Optional[PyJWKClient] = None

if _JWKS_URL:
    _jwks_client = PyJWKClient(_JWKS_URL, cache_jwk_set=True, lifespan=300)

_AUTH0_ENABLED = bool(_jwks_client and AUTH0_AUDIENCE and _ISSUER)


class Auth0User:
    """Principal for requests authenticated by the identity provider.

    There is no local ``User`` row.  ``sub`` links the principal to a
    ``Merchant.auth_subject``; ``email`` feeds the admin policy.
    """

    is_authenticated = True
    is_active = True
    is_superuser = False
    pk = None

    def __init__(self, payload: Dict[str, Any]) -> None:
        self.payload = payload
        self.sub: str = payload.get("sub", "")
        email = payload.get(AUTH0_EMAIL_CLAIM) or payload.get("email") or ""
        # an unverified address must never match the admin allow-list
        self.email: str = "" if payload.get("email_verified") is False else email.strip().lower()
        self.permissions: List[str] = payload.get("permissions", [])

    @property
    def username(self) -> str:
        return self.email or self.sub

    def __str__(self) -> str:
        return self.username


class Auth0JSONWebTokenAuthentication(BaseAuthentication):
    keyword = "Bearer"

    def authenticate(self, request):
        """Return ``(Auth0User, token)``, or ``None`` to let other backends try."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)

        if not _AUTH0_ENABLED:
            return None
        if not self._token_has_auth0_issuer(token):
            return None

        payload = self._decode_token(token)
        user = Auth0User(payload)
        logger.info("auth.jwt_authenticated", sub=user.sub)
        return (user, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _token_has_auth0_issuer(token: str) -> bool:
        try:
            payload = pyjwt.decode(
                token,
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except PyJWTError:
            return False
        return payload.get("iss") == _ISSUER

    @staticmethod
    def _decode_token(token: str) -> Dict[str, Any]:
        if not _jwks_client:
            raise AuthenticationFailed("Auth0 is not configured (AUTH0_DOMAIN missing).")
        try:
            signing_key = _jwks_client.get_signing_key_from_jwt(token)
            payload = pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[AUTH0_ALGORITHM],
                audience=AUTH0_AUDIENCE,
                issuer=_ISSUER,
            )
        except PyJWTError as exc:
            logger.warning("auth.jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
        return payload
