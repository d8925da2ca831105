from __future__ import annotations

import httpx
import pytest

from core.errors import IdentityLookupError
from services.identity_service import ClerkIdentityProvider, safe_get_user


def provider_with(handler) -> ClerkIdentityProvider:
    provider = ClerkIdentityProvider(base_url="https://identity.test", secret_key="sk_test", jwt_key="")
    provider.client = httpx.AsyncClient(base_url="https://identity.test", transport=httpx.MockTransport(handler))
    return provider


class TestClerkIdentityProvider:
    async def test_memberships_are_mapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/users/user_1/organization_memberships"
            return httpx.Response(200, json={"data": [{"organization": {"id": "org_1"}, "role": "org:admin"}]})

        provider = provider_with(handler)
        memberships = await provider.get_organization_memberships("user_1")
        await provider.aclose()

        assert [(m.organization_id, m.role) for m in memberships] == [("org_1", "org:admin")]

    async def test_malformed_json_is_a_lookup_error(self) -> None:
        provider = provider_with(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

        with pytest.raises(IdentityLookupError):
            await provider.get_organization_memberships("user_1")
        await provider.aclose()

    async def test_membership_without_organization_is_a_lookup_error(self) -> None:
        provider = provider_with(lambda request: httpx.Response(200, json={"data": [{"role": "org:admin"}]}))

        with pytest.raises(IdentityLookupError):
            await provider.get_organization_memberships("user_1")
        await provider.aclose()

    async def test_error_status_is_a_lookup_error(self) -> None:
        provider = provider_with(lambda request: httpx.Response(503))

        with pytest.raises(IdentityLookupError):
            await provider.get_user("user_1")
        await provider.aclose()


class TestSafeGetUser:
    async def test_payload_without_id_yields_none(self) -> None:
        provider = provider_with(lambda request: httpx.Response(200, json={"username": "ghost"}))

        assert await safe_get_user(provider, "user_1") is None
        await provider.aclose()

    async def test_missing_id_skips_lookup(self) -> None:
        provider = provider_with(lambda request: httpx.Response(500))

        assert await safe_get_user(provider, None) is None
        await provider.aclose()
