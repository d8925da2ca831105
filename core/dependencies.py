"""
Gloo Core Dependencies
FastAPI dependencies for authentication, authorization, and common functionality
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import dataclass
from typing import Optional, Annotated
import structlog

from core.config import settings
from core.database import get_db
from core.errors import InvalidTokenError, IdentityLookupError
from middleware.logging import set_user_id
from services.identity_service import IdentityProvider, get_identity_provider

logger = structlog.get_logger()

# Security scheme
security = HTTPBearer(auto_error=False)

GUEST_ROLE = "guest"

DbSession = Annotated[AsyncSession, Depends(get_db)]
Identity = Annotated[IdentityProvider, Depends(get_identity_provider)]


@dataclass
class AuthenticatedUser:
    """Caller identity with the role held in their first organization"""
    id: str
    role: str = GUEST_ROLE
    organization_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return settings.is_admin_role(self.role)


async def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    identity: Identity,
) -> str:
    """
    Verify the bearer token and return its subject

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = await identity.verify_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("Authentication failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = claims["sub"]
    set_user_id(user_id)
    return user_id


CurrentUserId = Annotated[str, Depends(get_current_user_id)]


async def get_optional_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    identity: Identity,
) -> Optional[str]:
    """Token subject for public routes that show more to the owner; None for anonymous or invalid tokens"""
    if not credentials:
        return None
    try:
        claims = await identity.verify_token(credentials.credentials)
    except InvalidTokenError:
        return None
    return claims["sub"]


OptionalUserId = Annotated[Optional[str], Depends(get_optional_user_id)]


def require_owner(user_id: str, current_user_id: CurrentUserId) -> str:
    """The ``user_id`` path parameter must be the authenticated caller"""
    if user_id != current_user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access your own resources"
        )
    return current_user_id


OwnerId = Annotated[str, Depends(require_owner)]


async def get_authenticated_user(current_user_id: CurrentUserId, identity: Identity) -> AuthenticatedUser:
    """Resolve the caller's role from their first organization membership"""
    try:
        memberships = await identity.get_organization_memberships(current_user_id)
    except IdentityLookupError as e:
        logger.error("Role lookup failed", user_id=current_user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error verifying user role"
        )

    if not memberships:
        return AuthenticatedUser(id=current_user_id)

    first = memberships[0]
    return AuthenticatedUser(id=current_user_id, role=first.role, organization_id=first.organization_id)


def require_admin(user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]) -> AuthenticatedUser:
    """Dependency for admin-only endpoints"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user


AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]


def require_admin_owner(user_id: str, admin: AdminUser) -> AuthenticatedUser:
    """Admin routes scoped by ``user_id`` act only as the caller"""
    if user_id != admin.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only act as yourself"
        )
    return admin


AdminOwner = Annotated[AuthenticatedUser, Depends(require_admin_owner)]


async def get_pagination_params(
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
) -> dict:
    """
    Get pagination parameters with validation

    Returns:
        Dictionary with offset, limit, page
    """
    if page < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Page must be greater than 0"
        )

    if limit < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Limit must be greater than 0"
        )

    if limit > settings.MAX_PAGE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Limit cannot exceed {settings.MAX_PAGE_SIZE}"
        )

    return {
        "offset": (page - 1) * limit,
        "limit": limit,
        "page": page
    }


PaginationParams = Annotated[dict, Depends(get_pagination_params)]
