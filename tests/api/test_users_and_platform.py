from __future__ import annotations

from conftest import AUTHOR_ID, MEMBER_ID


class TestUsers:
    async def test_profile_from_identity_provider(self, client) -> None:
        response = await client.get(f"/api/v1/users/{AUTHOR_ID}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["username"] == "chef_ana"
        assert data["description"] is None

    async def test_unknown_user(self, client) -> None:
        response = await client.get("/api/v1/users/user_nobody")
        assert response.status_code == 404

    async def test_update_splits_identity_and_local_fields(self, client, auth, identity) -> None:
        response = await client.put(
            f"/api/v1/users/{AUTHOR_ID}",
            json={"username": "chef_ana_b", "description": "Home cook", "idSocialMedia": "@ana"},
            headers=auth(AUTHOR_ID),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["username"] == "chef_ana_b"
        assert data["description"] == "Home cook"
        assert data["idSocialMedia"] == "@ana"
        assert identity.updates == [(AUTHOR_ID, {"username": "chef_ana_b"})]

    async def test_cannot_update_someone_else(self, client, auth) -> None:
        response = await client.put(
            f"/api/v1/users/{AUTHOR_ID}", json={"description": "Nope"}, headers=auth(MEMBER_ID)
        )
        assert response.status_code == 403

    async def test_stats(self, client, auth, create_recipe, approve_recipe) -> None:
        recipe = await create_recipe()
        await create_recipe(title="Waiting")
        await approve_recipe(recipe["id"])
        await client.post(f"/api/v1/likes/{MEMBER_ID}/like", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID))
        await client.post(f"/api/v1/follows/{MEMBER_ID}/follow", json={"followingId": AUTHOR_ID}, headers=auth(MEMBER_ID))

        stats = (await client.get(f"/api/v1/users/{AUTHOR_ID}/stats")).json()["data"]

        assert stats == {
            "followersCount": 1,
            "followingCount": 0,
            "recipesCount": 1,
            "favoritesCount": 0,
            "likesReceived": 1,
        }


class TestRecipeDetails:
    async def test_ingredients_and_instructions(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()

        created = await client.post(
            f"/api/v1/ingredients/{recipe['id']}",
            json={"ingredients": [{"name": "Lentils", "quantity": 250, "unit": "g"}]},
            headers=auth(AUTHOR_ID),
        )
        ingredient_id = created.json()["data"][0]["id"]
        updated = await client.put(f"/api/v1/ingredients/{ingredient_id}", json={"quantity": 300}, headers=auth(AUTHOR_ID))
        assert updated.json()["data"]["quantity"] == 300

        steps = await client.post(
            f"/api/v1/instructions/{recipe['id']}",
            json={"instructions": [{"step": 2, "description": "Simmer"}, {"step": 1, "description": "Rinse"}]},
            headers=auth(AUTHOR_ID),
        )
        assert steps.status_code == 201
        listed = (await client.get(f"/api/v1/instructions/recipe/{recipe['id']}")).json()["data"]
        assert [step["description"] for step in listed] == ["Rinse", "Simmer"]

    async def test_only_the_author_adds_ingredients(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        response = await client.post(
            f"/api/v1/ingredients/{recipe['id']}",
            json={"ingredients": [{"name": "Salt", "quantity": 1, "unit": "tsp"}]},
            headers=auth(MEMBER_ID),
        )
        assert response.status_code == 403


class TestPlatform:
    async def test_health(self, client) -> None:
        response = await client.get("/api/v1/health/")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_readiness_checks_the_database(self, client) -> None:
        response = await client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    async def test_security_and_request_headers(self, client) -> None:
        response = await client.get("/api/v1/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Request-ID"] == "req-123"

    async def test_unknown_route_uses_error_envelope(self, client) -> None:
        response = await client.get("/api/v1/nothing-here")
        assert response.status_code == 404
        assert response.json()["success"] is False

    async def test_unknown_recipe(self, client) -> None:
        response = await client.get("/api/v1/recipes/12345")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Recipe not found"}
