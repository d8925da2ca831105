from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

import core.database as database
from core.database import close_db, create_tables, init_db
from core.errors import IdentityLookupError, InvalidTokenError
from main import app
from services.identity_service import (
    IdentityProvider,
    IdentityUser,
    OrganizationMembership,
    get_identity_provider,
)

ORG_ID = "org_kitchen"
AUTHOR_ID = "user_author"
ADMIN_ID = "user_admin"
SECOND_ADMIN_ID = "user_admin_two"
MEMBER_ID = "user_member"
LONER_ID = "user_loner"


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity provider; a bearer token ``token-<id>`` authenticates ``<id>``"""

    def __init__(self) -> None:
        self.users: Dict[str, IdentityUser] = {}
        self.memberships: Dict[str, List[OrganizationMembership]] = {}
        self.fail_memberships = False
        self.fail_members = False
        self.fail_users = False
        self.updates: List[tuple[str, Dict[str, Any]]] = []

    def add_user(
        self,
        user_id: str,
        username: Optional[str] = None,
        organization_id: Optional[str] = None,
        role: str = "org:member",
    ) -> None:
        self.users[user_id] = IdentityUser(id=user_id, username=username, first_name=None)
        if organization_id:
            self.memberships.setdefault(user_id, []).append(
                OrganizationMembership(organization_id=organization_id, user_id=user_id, role=role)
            )

    async def verify_token(self, token: str) -> Dict[str, Any]:
        if not token.startswith("token-"):
            raise InvalidTokenError("Invalid token")
        return {"sub": token[len("token-"):]}

    async def get_user(self, user_id: str) -> IdentityUser:
        if self.fail_users or user_id not in self.users:
            raise IdentityLookupError(f"Unknown user {user_id}")
        return self.users[user_id]

    async def update_user(self, user_id: str, fields: Dict[str, Any]) -> IdentityUser:
        if user_id not in self.users:
            raise IdentityLookupError(f"Unknown user {user_id}")
        self.updates.append((user_id, fields))
        user = self.users[user_id]
        for key, value in fields.items():
            setattr(user, key, value)
        return user

    async def get_organization_memberships(self, user_id: str) -> List[OrganizationMembership]:
        if self.fail_memberships:
            raise IdentityLookupError("Identity provider unreachable")
        return list(self.memberships.get(user_id, []))

    async def get_organization_members(
        self, organization_id: str, limit: int = 100
    ) -> List[OrganizationMembership]:
        if self.fail_members:
            raise IdentityLookupError("Identity provider unreachable")
        members = [
            membership
            for memberships in self.memberships.values()
            for membership in memberships
            if membership.organization_id == organization_id
        ]
        return members[:limit]

    async def aclose(self) -> None:
        pass


@pytest.fixture
def identity() -> FakeIdentityProvider:
    provider = FakeIdentityProvider()
    provider.add_user(AUTHOR_ID, username="chef_ana", organization_id=ORG_ID)
    provider.add_user(ADMIN_ID, username="admin_one", organization_id=ORG_ID, role="org:admin")
    provider.add_user(SECOND_ADMIN_ID, username="admin_two", organization_id=ORG_ID, role="org:admin")
    provider.add_user(MEMBER_ID, username="foodie", organization_id=ORG_ID)
    provider.add_user(LONER_ID, username="solo")
    return provider


@pytest.fixture
async def database_ready():
    await init_db("sqlite+aiosqlite://")
    await create_tables()
    yield
    await close_db()


@pytest.fixture
async def session(database_ready):
    async with database.async_session_factory() as db:
        yield db


@pytest.fixture
def fetch(database_ready):
    """Run a statement in its own short-lived session and return all rows"""
    async def run(statement) -> List[Any]:
        async with database.async_session_factory() as db:
            result = await db.execute(statement)
            return list(result.scalars().all())
    return run


@pytest.fixture
async def client(database_ready, identity: FakeIdentityProvider):
    app.dependency_overrides[get_identity_provider] = lambda: identity
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def auth() -> Callable[[str], Dict[str, str]]:
    def headers(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer token-{user_id}"}
    return headers


@pytest.fixture
def create_recipe(client: AsyncClient, auth):
    async def create(user_id: str = AUTHOR_ID, **fields: Any) -> Dict[str, Any]:
        body = {
            "title": "Lentil soup",
            "description": "Warm and simple",
            "estimatedTime": 40,
            "servings": 4,
        }
        body.update(fields)
        response = await client.post(f"/api/v1/recipes/{user_id}", json=body, headers=auth(user_id))
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return create


@pytest.fixture
def approve_recipe(client: AsyncClient, auth):
    async def approve(recipe_id: int, admin_id: str = ADMIN_ID) -> Dict[str, Any]:
        response = await client.post(
            f"/api/v1/admin/{admin_id}/approve/{recipe_id}", json={}, headers=auth(admin_id)
        )
        assert response.status_code == 200, response.text
        return response.json()["data"]
    return approve
