from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .settings import Settings

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


class AuthenticationError(Exception):
    """Raised when a token cannot be verified."""


# PUBLIC_INTERFACE
class Claims(ABC):
    """Identity information derived from a verified token."""

    @abstractmethod
    def has_role(self, name: str) -> bool:
        """Return True if the identity holds the given role."""


# PUBLIC_INTERFACE
class TokenVerifier(ABC):
    """Capability that turns an opaque token into Claims."""

    @abstractmethod
    def authenticate(self, token: str) -> Claims:
        """
        Verify a token and return its claims.

        Raises:
            AuthenticationError: if the token is missing, malformed, expired or forged.
        """


class JWTClaims(Claims):
    """
    Claims decoded from a JWT.

    Roles are collected from a top-level ``roles`` list and from the
    Keycloak-style ``realm_access.roles`` list.
    """

    def __init__(self, payload: Dict[str, Any]) -> None:
        self._payload = payload
        self._roles = frozenset(self._collect_roles(payload))

    @staticmethod
    def _collect_roles(payload: Dict[str, Any]) -> Iterable[str]:
        roles: List[str] = []
        top_level = payload.get("roles")
        if isinstance(top_level, list):
            roles.extend(str(r) for r in top_level)
        realm_access = payload.get("realm_access")
        if isinstance(realm_access, dict) and isinstance(realm_access.get("roles"), list):
            roles.extend(str(r) for r in realm_access["roles"])
        return roles

    @property
    def subject(self) -> Optional[str]:
        sub = self._payload.get("sub")
        return None if sub is None else str(sub)

    @property
    def roles(self) -> FrozenSet[str]:
        return self._roles

    def has_role(self, name: str) -> bool:
        return name in self._roles


class JWTTokenVerifier(TokenVerifier):
    """Verify signed JWTs with PyJWT."""

    def __init__(self, key: str, algorithms: List[str], audience: Optional[str] = None) -> None:
        self._key = key
        self._algorithms = list(algorithms)
        self._audience = audience

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTTokenVerifier":
        return cls(
            key=settings.auth_jwt_key,
            algorithms=settings.auth_jwt_algorithms,
            audience=settings.auth_jwt_audience,
        )

    def authenticate(self, token: str) -> Claims:
        if not token:
            raise AuthenticationError("missing authentication token")
        options = {"require": ["exp"], "verify_aud": self._audience is not None}
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=self._algorithms,
                audience=self._audience,
                options=options,
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("token has expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"invalid token: {e}") from e
        claims = JWTClaims(payload)
        logger.debug("Authenticated subject=%s roles=%s", claims.subject, sorted(claims.roles))
        return claims


# PUBLIC_INTERFACE
def get_bearer_token(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
) -> str:
    """
    FastAPI dependency returning the bearer token of a request.

    Returns an empty string when no Authorization header was sent so that the
    service reports the failure with its own error taxonomy.
    """
    if creds is None or not creds.credentials:
        return ""
    return creds.credentials
