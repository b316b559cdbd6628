from collections.abc import Callable

from fastapi import Depends, HTTPException, status

from fieldsales.core.auth import ANONYMOUS, AuthUser, get_current_user


def require_roles(*roles: str) -> Callable[[AuthUser], AuthUser]:
    """Dependency that admits the caller when they hold at least one of ``roles``."""

    async def checker(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if not any(role in user.roles for role in roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing role: {' or '.join(roles)}",
            )
        return user

    return checker


def require_authenticated(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if user.sub == ANONYMOUS:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user
