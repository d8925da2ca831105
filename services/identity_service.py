"""
Gloo Identity Service Client
Resolves user profiles, organization memberships and session tokens
through the identity provider's Backend API
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
import asyncio
import structlog
import httpx
from jose import jwt, JWTError

from core.config import settings
from core.errors import IdentityLookupError, InvalidTokenError

logger = structlog.get_logger()


@dataclass
class IdentityUser:
    """Profile data for a user as known by the identity provider"""
    id: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    image_url: Optional[str] = None

    def display_name(self, fallback: str) -> str:
        return self.username or self.first_name or fallback

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "imageUrl": self.image_url,
        }


@dataclass
class OrganizationMembership:
    organization_id: str
    user_id: str
    role: str


class IdentityProvider(ABC):
    """Capabilities the application needs from the identity provider"""

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify a session token and return its claims; raises InvalidTokenError"""

    @abstractmethod
    async def get_user(self, user_id: str) -> IdentityUser:
        """Raises IdentityLookupError when the user cannot be resolved"""

    @abstractmethod
    async def update_user(self, user_id: str, fields: Dict[str, Any]) -> IdentityUser:
        pass

    @abstractmethod
    async def get_organization_memberships(self, user_id: str) -> List[OrganizationMembership]:
        pass

    @abstractmethod
    async def get_organization_members(
        self, organization_id: str, limit: int = 100
    ) -> List[OrganizationMembership]:
        pass

    async def aclose(self) -> None:
        return None


def _user_from_payload(data: Dict[str, Any]) -> IdentityUser:
    emails = data.get("email_addresses") or []
    primary_id = data.get("primary_email_address_id")
    email = None
    for entry in emails:
        if entry.get("id") == primary_id or email is None:
            email = entry.get("email_address")
    return IdentityUser(
        id=data["id"],
        username=data.get("username"),
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        email=email,
        image_url=data.get("image_url"),
    )


class ClerkIdentityProvider(IdentityProvider):
    """Client for the Clerk Backend API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        secret_key: Optional[str] = None,
        jwt_key: Optional[str] = None,
        authorized_parties: Optional[List[str]] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.CLERK_API_URL).rstrip("/")
        self.jwt_key = jwt_key if jwt_key is not None else settings.CLERK_JWT_KEY
        self.authorized_parties = (
            authorized_parties if authorized_parties is not None else settings.authorized_parties
        )
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {secret_key or settings.CLERK_SECRET_KEY}"},
            timeout=timeout or settings.IDENTITY_TIMEOUT,
        )
        self._jwks: Optional[Dict[str, Any]] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, **params) -> Any:
        try:
            response = await self.client.get(path, params=params or None)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Identity provider returned an error",
                path=path,
                status_code=e.response.status_code
            )
            raise IdentityLookupError(f"Identity lookup failed for {path}: {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error("Identity provider request failed", path=path, error=str(e))
            raise IdentityLookupError(f"Identity provider unreachable: {e}")
        except ValueError as e:
            logger.error("Identity provider returned malformed JSON", path=path, error=str(e))
            raise IdentityLookupError(f"Malformed identity response for {path}")

    async def _signing_key(self, kid: Optional[str]) -> Any:
        if self.jwt_key:
            return self.jwt_key

        if self._jwks is None:
            self._jwks = await self._get("/jwks")

        for key in self._jwks.get("keys", []):
            if kid is None or key.get("kid") == kid:
                return key

        # Keys may have rotated since the last fetch
        self._jwks = await self._get("/jwks")
        for key in self._jwks.get("keys", []):
            if key.get("kid") == kid:
                return key
        raise InvalidTokenError("No signing key matches the token")

    async def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise InvalidTokenError(f"Malformed token: {e}")

        try:
            key = await self._signing_key(header.get("kid"))
        except IdentityLookupError as e:
            raise InvalidTokenError(str(e))

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=["RS256"],
                options={"verify_aud": False},
            )
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if self.authorized_parties and claims.get("azp") not in self.authorized_parties:
            raise InvalidTokenError("Token issued for an unauthorized party")
        if not claims.get("sub"):
            raise InvalidTokenError("Token has no subject")
        return claims

    async def get_user(self, user_id: str) -> IdentityUser:
        data = await self._get(f"/users/{user_id}")
        return _user_from_payload(data)

    async def update_user(self, user_id: str, fields: Dict[str, Any]) -> IdentityUser:
        try:
            response = await self.client.patch(f"/users/{user_id}", json=fields)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("Identity user update rejected", user_id=user_id, status_code=e.response.status_code)
            raise IdentityLookupError(f"Identity update failed: {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error("Identity provider request failed", user_id=user_id, error=str(e))
            raise IdentityLookupError(f"Identity provider unreachable: {e}")
        return _user_from_payload(response.json())

    async def get_organization_memberships(self, user_id: str) -> List[OrganizationMembership]:
        payload = await self._get(f"/users/{user_id}/organization_memberships")
        try:
            return [
                OrganizationMembership(
                    organization_id=item["organization"]["id"],
                    user_id=user_id,
                    role=item.get("role", ""),
                )
                for item in payload.get("data", [])
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise IdentityLookupError(f"Malformed organization memberships for {user_id}: {e}")

    async def get_organization_members(
        self, organization_id: str, limit: int = 100
    ) -> List[OrganizationMembership]:
        payload = await self._get(f"/organizations/{organization_id}/memberships", limit=limit)
        members = []
        for item in payload.get("data", []):
            public_data = item.get("public_user_data") or {}
            member_id = public_data.get("user_id")
            if member_id:
                members.append(
                    OrganizationMembership(
                        organization_id=organization_id,
                        user_id=member_id,
                        role=item.get("role", ""),
                    )
                )
        return members


async def safe_get_user(identity: IdentityProvider, user_id: Optional[str]) -> Optional[IdentityUser]:
    """Profile lookup for enrichment: failures are logged and yield None"""
    if not user_id:
        return None
    try:
        return await identity.get_user(user_id)
    except IdentityLookupError as e:
        logger.warning("User profile lookup failed", user_id=user_id, error=str(e))
        return None
    except Exception as e:
        logger.error("Unexpected error looking up user profile", user_id=user_id, error=str(e))
        return None


async def fetch_profiles(
    identity: IdentityProvider, user_ids: Iterable[str]
) -> Dict[str, Optional[Dict[str, Any]]]:
    """Look up several profiles concurrently; unresolved users map to None"""
    unique_ids = list(dict.fromkeys(uid for uid in user_ids if uid))
    users = await asyncio.gather(*(safe_get_user(identity, uid) for uid in unique_ids))
    return {
        uid: user.to_dict() if user else None
        for uid, user in zip(unique_ids, users)
    }


_identity_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency returning the shared identity provider client"""
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = ClerkIdentityProvider()
    return _identity_provider


async def close_identity_provider() -> None:
    global _identity_provider
    if _identity_provider is not None:
        await _identity_provider.aclose()
        _identity_provider = None
