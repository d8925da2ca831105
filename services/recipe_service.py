"""
Gloo Recipe Service
Recipe lookups, listings and response enrichment
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import RecipeNotFoundError, PermissionDeniedError
from models.recipe_models import Recipe, Ingredient, Instruction, RecipeStatus
from models.social_models import Rate, RecipeLike, RecipeComment, Follow
from services.identity_service import IdentityProvider, fetch_profiles
from utils.date_utils import days_ago

logger = structlog.get_logger()


class RecipeService:
    async def get_recipe(self, db: AsyncSession, recipe_id: int) -> Recipe:
        recipe = await db.get(Recipe, recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    async def get_owned_recipe(self, db: AsyncSession, recipe_id: int, user_id: str) -> Recipe:
        recipe = await self.get_recipe(db, recipe_id)
        if recipe.user_id != user_id:
            raise PermissionDeniedError("You can only modify your own recipes")
        return recipe

    async def recipe_stats(self, db: AsyncSession, recipe_ids: List[int]) -> Dict[int, Dict[str, Any]]:
        """Like, comment and rating aggregates for each recipe id"""
        stats = {
            rid: {"likesCount": 0, "commentsCount": 0, "ratingsCount": 0, "averageRating": 0.0}
            for rid in recipe_ids
        }
        if not recipe_ids:
            return stats

        likes = await db.execute(
            select(RecipeLike.recipe_id, func.count(RecipeLike.id))
            .where(RecipeLike.recipe_id.in_(recipe_ids))
            .group_by(RecipeLike.recipe_id)
        )
        for rid, count in likes.all():
            stats[rid]["likesCount"] = count

        comments = await db.execute(
            select(RecipeComment.recipe_id, func.count(RecipeComment.id))
            .where(RecipeComment.recipe_id.in_(recipe_ids))
            .group_by(RecipeComment.recipe_id)
        )
        for rid, count in comments.all():
            stats[rid]["commentsCount"] = count

        ratings = await db.execute(
            select(Rate.recipe_id, func.count(Rate.id), func.avg(Rate.rating))
            .where(Rate.recipe_id.in_(recipe_ids))
            .group_by(Rate.recipe_id)
        )
        for rid, count, average in ratings.all():
            stats[rid]["ratingsCount"] = count
            stats[rid]["averageRating"] = round(float(average or 0), 2)

        return stats

    async def recipe_details(
        self, db: AsyncSession, recipe_ids: List[int]
    ) -> Tuple[Dict[int, List[dict]], Dict[int, List[dict]]]:
        ingredients: Dict[int, List[dict]] = {rid: [] for rid in recipe_ids}
        instructions: Dict[int, List[dict]] = {rid: [] for rid in recipe_ids}
        if not recipe_ids:
            return ingredients, instructions

        rows = await db.execute(
            select(Ingredient).where(Ingredient.recipe_id.in_(recipe_ids)).order_by(Ingredient.id)
        )
        for ingredient in rows.scalars():
            ingredients[ingredient.recipe_id].append(ingredient.to_dict())

        rows = await db.execute(
            select(Instruction)
            .where(Instruction.recipe_id.in_(recipe_ids))
            .order_by(Instruction.step, Instruction.id)
        )
        for instruction in rows.scalars():
            instructions[instruction.recipe_id].append(instruction.to_dict())

        return ingredients, instructions

    async def enrich(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        recipes: Iterable[Recipe],
        include_details: bool = True,
    ) -> List[Dict[str, Any]]:
        """Recipe dicts with author profile, stats and optionally ingredients/instructions"""
        recipes = list(recipes)
        recipe_ids = [recipe.id for recipe in recipes]

        stats = await self.recipe_stats(db, recipe_ids)
        if include_details:
            ingredients, instructions = await self.recipe_details(db, recipe_ids)
        profiles = await fetch_profiles(identity, (recipe.user_id for recipe in recipes))

        enriched = []
        for recipe in recipes:
            item = recipe.to_dict()
            item["user"] = profiles.get(recipe.user_id)
            item["stats"] = stats[recipe.id]
            if include_details:
                item["ingredients"] = ingredients[recipe.id]
                item["instructions"] = instructions[recipe.id]
            enriched.append(item)
        return enriched

    async def _page(self, db: AsyncSession, conditions: list, offset: int, limit: int) -> Tuple[List[Recipe], int]:
        total = await db.scalar(select(func.count(Recipe.id)).where(*conditions))
        result = await db.execute(
            select(Recipe)
            .where(*conditions)
            .order_by(Recipe.created_at.desc(), Recipe.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def list_approved(self, db: AsyncSession, offset: int, limit: int) -> Tuple[List[Recipe], int]:
        return await self._page(db, [Recipe.status == RecipeStatus.APPROVED.value], offset, limit)

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        offset: int,
        limit: int,
        status: Optional[RecipeStatus] = None,
    ) -> Tuple[List[Recipe], int]:
        conditions = [Recipe.user_id == user_id]
        if status is not None:
            conditions.append(Recipe.status == status.value)
        return await self._page(db, conditions, offset, limit)

    async def list_following_feed(
        self, db: AsyncSession, user_id: str, offset: int, limit: int
    ) -> Tuple[List[Recipe], int]:
        followed = select(Follow.following_id).where(Follow.follower_id == user_id)
        conditions = [
            Recipe.status == RecipeStatus.APPROVED.value,
            Recipe.user_id.in_(followed),
        ]
        return await self._page(db, conditions, offset, limit)

    async def list_trending(self, db: AsyncSession, days: int, limit: int) -> List[Tuple[Recipe, int]]:
        """Approved recipes ranked by likes received in the last ``days`` days"""
        recent_likes = (
            select(RecipeLike.recipe_id, func.count(RecipeLike.id).label("likes"))
            .where(RecipeLike.created_at >= days_ago(days))
            .group_by(RecipeLike.recipe_id)
            .subquery()
        )
        likes = func.coalesce(recent_likes.c.likes, 0)
        result = await db.execute(
            select(Recipe, likes)
            .outerjoin(recent_likes, recent_likes.c.recipe_id == Recipe.id)
            .where(Recipe.status == RecipeStatus.APPROVED.value)
            .order_by(likes.desc(), Recipe.created_at.desc(), Recipe.id.desc())
            .limit(limit)
        )
        return [(recipe, count) for recipe, count in result.all()]


# Global recipe service instance
recipe_service = RecipeService()
