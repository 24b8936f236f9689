"""FastAPI dependencies: caller identity and role guards.

Usage in any protected router:
    from src.bc_gateway.auth.dependencies import require_client

    @router.get("/protected")
    async def protected(identity: Identity = Depends(require_client)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.bc_common.enums import UserRole
from src.bc_common.errors import InvalidCredentialsError, PermissionDeniedError
from src.bc_gateway.auth.jwt_handler import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: UserRole


async def get_current_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    """Extract the caller's identity from the Bearer token.

    Raises HTTP 401 if the token is missing, invalid, expired or malformed.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    return Identity(user_id=user_id, role=role)


async def require_client(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    if identity.role != UserRole.CLIENT:
        raise PermissionDeniedError(UserRole.CLIENT.value)
    return identity


async def require_admin(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    if identity.role != UserRole.ADMIN:
        raise PermissionDeniedError(UserRole.ADMIN.value)
    return identity
