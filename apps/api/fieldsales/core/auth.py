from dataclasses import dataclass
from typing import Any

from jose import JWTError, jwt
from starlette.requests import Request

from fieldsales.core.config import get_settings


ADMIN_ROLE = "country_head"
ANONYMOUS = "anonymous"


@dataclass
class AuthUser:
    sub: str
    roles: list[str]

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


def _extract_roles(payload: dict[str, Any]) -> list[str]:
    roles = payload.get("roles")
    if isinstance(roles, list):
        return [str(role) for role in roles]
    role = payload.get("role")
    if isinstance(role, str) and role:
        return [role]
    return []


def decode_bearer_claims(request: Request) -> dict[str, Any] | None:
    """Verified JWT claims from the ``Authorization`` header, or None when absent or invalid."""
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None

    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(request: Request) -> AuthUser:
    claims = decode_bearer_claims(request)
    if claims is None or claims.get("sub") is None:
        return AuthUser(sub=ANONYMOUS, roles=["guest"])

    subject = str(claims["sub"])
    request.state.user_id = subject
    return AuthUser(sub=subject, roles=_extract_roles(claims))
