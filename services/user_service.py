"""
Gloo User Service
Local profile rows and per-user counters
"""

from typing import Dict
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models.users import User
from models.recipe_models import Recipe, RecipeStatus
from models.social_models import Follow, Favorite, RecipeLike


class UserService:
    async def ensure_user(self, db: AsyncSession, user_id: str) -> User:
        """Local row for an identity user, created on first use"""
        user = await db.get(User, user_id)
        if user is None:
            user = User(id=user_id)
            db.add(user)
            await db.flush()
        return user

    async def stats(self, db: AsyncSession, user_id: str) -> Dict[str, int]:
        followers = await db.scalar(select(func.count(Follow.id)).where(Follow.following_id == user_id))
        following = await db.scalar(select(func.count(Follow.id)).where(Follow.follower_id == user_id))
        recipes = await db.scalar(
            select(func.count(Recipe.id)).where(
                Recipe.user_id == user_id, Recipe.status == RecipeStatus.APPROVED.value
            )
        )
        favorites = await db.scalar(select(func.count(Favorite.id)).where(Favorite.user_id == user_id))
        likes_received = await db.scalar(
            select(func.count(RecipeLike.id))
            .join(Recipe, Recipe.id == RecipeLike.recipe_id)
            .where(Recipe.user_id == user_id)
        )
        return {
            "followersCount": followers or 0,
            "followingCount": following or 0,
            "recipesCount": recipes or 0,
            "favoritesCount": favorites or 0,
            "likesReceived": likes_received or 0,
        }


# Global user service instance
user_service = UserService()
