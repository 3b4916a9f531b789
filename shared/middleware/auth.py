"""
shared/middleware/auth.py
FastAPI dependency functions for authentication and authorization.

Every protected request runs: session cookie → JWT validation (+ deny-list)
→ fresh role lookup by email → role gate. Roles change over time (guide
approval, payment promotion), so they are never read from the token.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.redis_client import SessionStore, get_redis
from config.settings import settings
from shared.models.models import User, UserRole
from shared.utils.errors import UserNotFoundError
from shared.utils.security import verify_access_token

security = HTTPBearer(auto_error=False)


class TokenData:
    def __init__(self, payload: dict):
        self.email: str = payload["email"]
        self.jti: Optional[str] = payload.get("jti")
        self.claims = payload


@dataclass(frozen=True)
class Principal:
    """Authenticated caller with the role resolved for this request."""
    email: str
    role: UserRole


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def get_token_data(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    redis=Depends(get_redis),
) -> TokenData:
    """
    Extract and validate the session JWT.
    The `token` cookie is authoritative; a Bearer header is accepted for API clients.
    Checks deny-list in Redis to handle revoked tokens (logout).
    """
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        raise _unauthorized("Unauthorized access")

    try:
        payload = verify_access_token(token)
    except JWTError:
        raise _unauthorized("Unauthorized access")

    jti = payload.get("jti")
    if jti and await SessionStore(redis).is_revoked(jti):
        raise _unauthorized("Token has been revoked")

    return TokenData(payload)


# Any valid credential
require_auth = get_token_data


class RoleResolver:
    """Looks up a user's current role by email. One store read per call."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, email: str) -> UserRole:
        role = await self.db.scalar(select(User.role).where(User.email == email))
        if role is None:
            raise UserNotFoundError(email)
        return UserRole(role)


def get_role_resolver(db: AsyncSession = Depends(get_db)) -> RoleResolver:
    return RoleResolver(db)


class RoleRequired:
    """Dependency factory for role-based access control."""

    def __init__(self, *roles: UserRole, message: Optional[str] = None):
        self.roles = frozenset(roles)
        self.message = message or f"Forbidden access! Required role: {sorted(r.value for r in roles)}"

    def allows(self, role: Optional[UserRole]) -> bool:
        return role is not None and role in self.roles

    async def __call__(
        self,
        token_data: TokenData = Depends(get_token_data),
        resolver: RoleResolver = Depends(get_role_resolver),
    ) -> Principal:
        try:
            role = await resolver.resolve(token_data.email)
        except UserNotFoundError:
            role = None

        if not self.allows(role):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=self.message)
        return Principal(email=token_data.email, role=role)


# Convenience role dependencies
require_admin = RoleRequired(UserRole.ADMIN, message="Forbidden access! Admin only Action.")
require_guide = RoleRequired(UserRole.GUIDE, message="Forbidden access! Guide only Action.")
require_tourist = RoleRequired(UserRole.TOURIST, message="Forbidden access! Tourist only Action.")
require_tourist_or_guide = RoleRequired(
    UserRole.TOURIST,
    UserRole.GUIDE,
    message="Forbidden! Only Tourist or Guide can access.",
)


def ensure_same_email(caller_email: str, email: str) -> None:
    """Reject requests that act on another user's resources."""
    if caller_email != email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden access! You can only act on your own account.",
        )


async def ensure_self_or_admin(
    token_data: TokenData,
    email: str,
    resolver: RoleResolver,
) -> None:
    if token_data.email == email:
        return
    try:
        role = await resolver.resolve(token_data.email)
    except UserNotFoundError:
        role = None
    if not require_admin.allows(role):
        ensure_same_email(token_data.email, email)
