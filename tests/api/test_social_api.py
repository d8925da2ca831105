from __future__ import annotations

from sqlalchemy import select

from models.notification_models import Notification, NotificationType

from conftest import AUTHOR_ID, LONER_ID, MEMBER_ID


def notifications_for(user_id: str, notification_type: NotificationType):
    return select(Notification).where(
        Notification.user_id == user_id, Notification.type == notification_type.value
    )


class TestLikes:
    async def test_like_notifies_the_author(self, client, auth, create_recipe, fetch) -> None:
        recipe = await create_recipe()

        response = await client.post(
            f"/api/v1/likes/{MEMBER_ID}/like", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID)
        )

        assert response.status_code == 201
        assert response.json()["data"]["recipeId"] == recipe["id"]
        rows = await fetch(notifications_for(AUTHOR_ID, NotificationType.LIKE))
        assert len(rows) == 1
        assert rows[0].message == 'foodie liked your recipe "Lentil soup"'
        assert rows[0].sender_id == MEMBER_ID
        assert rows[0].related_id == recipe["id"]

    async def test_liking_twice_is_refused(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        url = f"/api/v1/likes/{MEMBER_ID}/like"

        await client.post(url, json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID))
        response = await client.post(url, json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID))

        assert response.status_code == 400
        assert response.json()["error"] == "Recipe already liked"

    async def test_own_like_sends_nothing(self, client, auth, create_recipe, fetch) -> None:
        recipe = await create_recipe()

        await client.post(
            f"/api/v1/likes/{AUTHOR_ID}/like", json={"recipeId": recipe["id"]}, headers=auth(AUTHOR_ID)
        )

        assert await fetch(notifications_for(AUTHOR_ID, NotificationType.LIKE)) == []

    async def test_unlike_and_status(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        await client.post(
            f"/api/v1/likes/{MEMBER_ID}/like", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID)
        )

        status = await client.get(f"/api/v1/likes/{MEMBER_ID}/status/{recipe['id']}")
        assert status.json()["data"] == {"hasLiked": True}
        likes = await client.get(f"/api/v1/likes/recipe/{recipe['id']}")
        assert likes.json()["data"]["totalLikes"] == 1

        removed = await client.request(
            "DELETE", f"/api/v1/likes/{MEMBER_ID}/unlike", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID)
        )
        assert removed.status_code == 200
        again = await client.request(
            "DELETE", f"/api/v1/likes/{MEMBER_ID}/unlike", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID)
        )
        assert again.status_code == 404

    async def test_unknown_recipe(self, client, auth) -> None:
        response = await client.post(
            f"/api/v1/likes/{MEMBER_ID}/like", json={"recipeId": 999}, headers=auth(MEMBER_ID)
        )
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Recipe not found"}


class TestRatings:
    async def test_rating_lifecycle(self, client, auth, create_recipe, fetch) -> None:
        recipe = await create_recipe()
        url = f"/api/v1/rates/{MEMBER_ID}/rate"

        created = await client.post(url, json={"recipeId": recipe["id"], "rating": 5}, headers=auth(MEMBER_ID))
        assert created.status_code == 201
        duplicate = await client.post(url, json={"recipeId": recipe["id"], "rating": 3}, headers=auth(MEMBER_ID))
        assert duplicate.status_code == 400
        assert duplicate.json()["error"] == "Recipe already rated"

        updated = await client.put(url, json={"recipeId": recipe["id"], "rating": 3}, headers=auth(MEMBER_ID))
        assert updated.json()["data"]["rating"] == 3

        await client.post(
            f"/api/v1/rates/{LONER_ID}/rate", json={"recipeId": recipe["id"], "rating": 4}, headers=auth(LONER_ID)
        )
        summary = (await client.get(f"/api/v1/rates/recipe/{recipe['id']}")).json()["data"]
        assert summary["totalRatings"] == 2
        assert summary["averageRating"] == 3.5

        status = (await client.get(f"/api/v1/rates/{MEMBER_ID}/status/{recipe['id']}")).json()["data"]
        assert status == {"hasRated": True, "rating": 3}

        rows = await fetch(notifications_for(AUTHOR_ID, NotificationType.RATING))
        assert len(rows) == 2
        assert 'foodie rated your recipe "Lentil soup" with 5 stars' in [row.message for row in rows]

    async def test_rating_out_of_range(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        response = await client.post(
            f"/api/v1/rates/{MEMBER_ID}/rate", json={"recipeId": recipe["id"], "rating": 6}, headers=auth(MEMBER_ID)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    async def test_remove_missing_rating(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        response = await client.request(
            "DELETE", f"/api/v1/rates/{MEMBER_ID}/rate", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID)
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Rating not found"


class TestComments:
    async def test_comment_lifecycle(self, client, auth, create_recipe, fetch) -> None:
        recipe = await create_recipe()

        created = await client.post(
            f"/api/v1/comments/{MEMBER_ID}",
            json={"recipeId": recipe["id"], "content": "Needs more cumin"},
            headers=auth(MEMBER_ID),
        )
        assert created.status_code == 201
        comment_id = created.json()["data"]["id"]

        rows = await fetch(notifications_for(AUTHOR_ID, NotificationType.COMMENT))
        assert [row.message for row in rows] == ['foodie commented on your recipe "Lentil soup"']

        listing = (await client.get(f"/api/v1/comments/recipe/{recipe['id']}")).json()
        assert listing["data"][0]["content"] == "Needs more cumin"
        assert listing["data"][0]["user"]["username"] == "foodie"
        assert listing["pagination"]["total"] == 1

        edited = await client.put(
            f"/api/v1/comments/{MEMBER_ID}/{comment_id}", json={"content": "Perfect as is"}, headers=auth(MEMBER_ID)
        )
        assert edited.json()["data"]["content"] == "Perfect as is"

        deleted = await client.delete(f"/api/v1/comments/{MEMBER_ID}/{comment_id}", headers=auth(MEMBER_ID))
        assert deleted.status_code == 200
        assert (await client.get(f"/api/v1/comments/recipe/{recipe['id']}")).json()["data"] == []

    async def test_cannot_edit_someone_elses_comment(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        created = await client.post(
            f"/api/v1/comments/{MEMBER_ID}", json={"recipeId": recipe["id"], "content": "Nice"}, headers=auth(MEMBER_ID)
        )
        comment_id = created.json()["data"]["id"]

        response = await client.put(
            f"/api/v1/comments/{LONER_ID}/{comment_id}", json={"content": "Hijacked"}, headers=auth(LONER_ID)
        )
        assert response.status_code == 403

        missing = await client.delete(f"/api/v1/comments/{MEMBER_ID}/999", headers=auth(MEMBER_ID))
        assert missing.status_code == 404


class TestFollows:
    async def test_follow_notifies_target(self, client, auth, fetch) -> None:
        response = await client.post(
            f"/api/v1/follows/{MEMBER_ID}/follow", json={"followingId": AUTHOR_ID}, headers=auth(MEMBER_ID)
        )

        assert response.status_code == 201
        rows = await fetch(notifications_for(AUTHOR_ID, NotificationType.FOLLOW))
        assert len(rows) == 1
        assert rows[0].message == "foodie started following you"
        assert rows[0].related_type == "user"

        status = await client.get(f"/api/v1/follows/{MEMBER_ID}/status", params={"targetUserId": AUTHOR_ID})
        assert status.json()["data"] == {"isFollowing": True}
        stats = (await client.get(f"/api/v1/follows/{AUTHOR_ID}/stats")).json()["data"]
        assert stats == {"followersCount": 1, "followingCount": 0}
        followers = (await client.get(f"/api/v1/follows/{AUTHOR_ID}/followers")).json()["data"]
        assert followers[0]["user"]["username"] == "foodie"

    async def test_cannot_follow_yourself(self, client, auth) -> None:
        response = await client.post(
            f"/api/v1/follows/{MEMBER_ID}/follow", json={"followingId": MEMBER_ID}, headers=auth(MEMBER_ID)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "You cannot follow yourself"

    async def test_following_twice_and_unknown_user(self, client, auth) -> None:
        url = f"/api/v1/follows/{MEMBER_ID}/follow"
        await client.post(url, json={"followingId": AUTHOR_ID}, headers=auth(MEMBER_ID))

        duplicate = await client.post(url, json={"followingId": AUTHOR_ID}, headers=auth(MEMBER_ID))
        assert duplicate.status_code == 400
        unknown = await client.post(url, json={"followingId": "user_nobody"}, headers=auth(MEMBER_ID))
        assert unknown.status_code == 404

    async def test_unfollow(self, client, auth) -> None:
        await client.post(
            f"/api/v1/follows/{MEMBER_ID}/follow", json={"followingId": AUTHOR_ID}, headers=auth(MEMBER_ID)
        )
        url = f"/api/v1/follows/{MEMBER_ID}/unfollow"

        first = await client.request("DELETE", url, json={"followingId": AUTHOR_ID}, headers=auth(MEMBER_ID))
        second = await client.request("DELETE", url, json={"followingId": AUTHOR_ID}, headers=auth(MEMBER_ID))

        assert first.status_code == 200
        assert second.status_code == 404

    async def test_following_feed(self, client, auth, create_recipe, approve_recipe) -> None:
        recipe = await create_recipe()
        await create_recipe(title="Still pending")
        await approve_recipe(recipe["id"])
        await client.post(
            f"/api/v1/follows/{MEMBER_ID}/follow", json={"followingId": AUTHOR_ID}, headers=auth(MEMBER_ID)
        )

        feed = (await client.get(f"/api/v1/recipes/following/{MEMBER_ID}")).json()["data"]
        assert [item["id"] for item in feed] == [recipe["id"]]


class TestFavoritesAndCollections:
    async def test_favorites(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        url = f"/api/v1/favorites/{MEMBER_ID}"

        assert (await client.post(url, json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID))).status_code == 201
        duplicate = await client.post(url, json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID))
        assert duplicate.json()["error"] == "Recipe already in favorites"

        listing = (await client.get(url)).json()
        assert listing["data"][0]["id"] == recipe["id"]
        assert listing["data"][0]["favoritedAt"] is not None
        assert (await client.get(f"{url}/check/{recipe['id']}")).json()["data"] == {"isFavorite": True}
        assert (await client.get(f"{url}/stats")).json()["data"] == {"totalFavorites": 1, "recentFavorites": 1}

        removed = await client.request("DELETE", url, json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID))
        assert removed.status_code == 200
        assert (await client.get(f"{url}/check/{recipe['id']}")).json()["data"] == {"isFavorite": False}

    async def test_collection_from_favorites_keeps_only_favorited(self, client, auth, create_recipe) -> None:
        favorite = await create_recipe(title="Favorite")
        other = await create_recipe(title="Other")
        await client.post(f"/api/v1/favorites/{MEMBER_ID}", json={"recipeId": favorite["id"]}, headers=auth(MEMBER_ID))

        response = await client.post(
            f"/api/v1/favorites/{MEMBER_ID}/collections",
            json={"name": "Weeknight", "recipeIds": [favorite["id"], other["id"]]},
            headers=auth(MEMBER_ID),
        )
        assert response.status_code == 201
        assert response.json()["data"]["recipeIds"] == [favorite["id"]]

        none_favorited = await client.post(
            f"/api/v1/favorites/{MEMBER_ID}/collections",
            json={"name": "Empty", "recipeIds": [other["id"]]},
            headers=auth(MEMBER_ID),
        )
        assert none_favorited.status_code == 400

    async def test_private_collections_are_hidden_from_others(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        url = f"/api/v1/collections/{MEMBER_ID}"
        private = (await client.post(url, json={"name": "Secret"}, headers=auth(MEMBER_ID))).json()["data"]
        public = (await client.post(url, json={"name": "Shared", "isPublic": True}, headers=auth(MEMBER_ID))).json()["data"]

        added = await client.post(
            f"{url}/{public['id']}/recipes", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID)
        )
        assert added.status_code == 201
        again = await client.post(
            f"{url}/{public['id']}/recipes", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID)
        )
        assert again.status_code == 400

        own = (await client.get(url, headers=auth(MEMBER_ID))).json()["data"]
        assert {item["name"] for item in own} == {"Secret", "Shared"}
        anonymous = (await client.get(url)).json()["data"]
        assert [item["name"] for item in anonymous] == ["Shared"]
        assert anonymous[0]["recipeCount"] == 1

        assert (await client.get(f"{url}/{private['id']}")).status_code == 404
        assert (await client.get(f"{url}/{private['id']}", headers=auth(MEMBER_ID))).status_code == 200
        detail = (await client.get(f"{url}/{public['id']}")).json()["data"]
        assert [item["id"] for item in detail["recipes"]] == [recipe["id"]]

    async def test_collection_edit_and_removal(self, client, auth, create_recipe) -> None:
        recipe = await create_recipe()
        url = f"/api/v1/collections/{MEMBER_ID}"
        collection = (await client.post(url, json={"name": "Soups"}, headers=auth(MEMBER_ID))).json()["data"]
        await client.post(f"{url}/{collection['id']}/recipes", json={"recipeId": recipe["id"]}, headers=auth(MEMBER_ID))

        renamed = await client.put(f"{url}/{collection['id']}", json={"name": "Stews"}, headers=auth(MEMBER_ID))
        assert renamed.json()["data"]["name"] == "Stews"

        removed = await client.delete(f"{url}/{collection['id']}/recipes/{recipe['id']}", headers=auth(MEMBER_ID))
        assert removed.status_code == 200
        missing = await client.delete(f"{url}/{collection['id']}/recipes/{recipe['id']}", headers=auth(MEMBER_ID))
        assert missing.json()["error"] == "Recipe not in collection"

        assert (await client.delete(f"{url}/{collection['id']}", headers=auth(MEMBER_ID))).status_code == 200
        assert (await client.get(f"{url}/{collection['id']}", headers=auth(MEMBER_ID))).status_code == 404

    async def test_collections_of_another_user_cannot_be_changed(self, client, auth) -> None:
        url = f"/api/v1/collections/{MEMBER_ID}"
        collection = (await client.post(url, json={"name": "Mine"}, headers=auth(MEMBER_ID))).json()["data"]

        response = await client.put(f"{url}/{collection['id']}", json={"name": "Yours"}, headers=auth(LONER_ID))
        assert response.status_code == 403
