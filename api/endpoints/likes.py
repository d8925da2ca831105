"""
Gloo Like Endpoints
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
import structlog

from core.dependencies import DbSession, Identity, OwnerId
from core.errors import ServiceError
from models.notification_models import NotificationType
from models.social_models import RecipeLike
from schemas.social_schemas import RecipeRef
from services.notification_service import notification_service
from services.recipe_service import recipe_service
from services.user_service import user_service
from utils.responses import success_response

logger = structlog.get_logger()
router = APIRouter()

LIKE_TEMPLATE = '{sender} liked your recipe "{title}"'


async def _find_like(db, user_id: str, recipe_id: int):
    result = await db.execute(
        select(RecipeLike).where(RecipeLike.user_id == user_id, RecipeLike.recipe_id == recipe_id)
    )
    return result.scalar_one_or_none()


@router.post("/{user_id}/like", status_code=status.HTTP_201_CREATED)
async def like_recipe(user_id: str, payload: RecipeRef, owner_id: OwnerId, identity: Identity, db: DbSession):
    try:
        recipe = await recipe_service.get_recipe(db, payload.recipe_id)
        if await _find_like(db, owner_id, payload.recipe_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Recipe already liked")

        await user_service.ensure_user(db, owner_id)
        like = RecipeLike(user_id=owner_id, recipe_id=recipe.id)
        db.add(like)
        await db.commit()
        data = like.to_dict()

        await notification_service.notify_social(
            db,
            identity,
            NotificationType.LIKE,
            recipe.user_id,
            owner_id,
            "New like",
            LIKE_TEMPLATE,
            related_id=recipe.id,
            related_type="recipe",
            title=recipe.title,
        )
        return success_response(data=data, message="Recipe liked")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to like recipe {payload.recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to like recipe")


@router.delete("/{user_id}/unlike")
async def unlike_recipe(user_id: str, payload: RecipeRef, owner_id: OwnerId, db: DbSession):
    try:
        like = await _find_like(db, owner_id, payload.recipe_id)
        if like is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Like not found")
        await db.delete(like)
        return success_response(message="Recipe unliked")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to unlike recipe {payload.recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to unlike recipe")


@router.get("/recipe/{recipe_id}")
async def recipe_likes(recipe_id: int, db: DbSession):
    try:
        await recipe_service.get_recipe(db, recipe_id)
        result = await db.execute(
            select(RecipeLike)
            .where(RecipeLike.recipe_id == recipe_id)
            .order_by(RecipeLike.created_at.desc(), RecipeLike.id.desc())
        )
        likes = [like.to_dict() for like in result.scalars()]
        return success_response(data={"likes": likes, "totalLikes": len(likes)})
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get likes for recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve likes")


@router.get("/{user_id}/status/{recipe_id}")
async def like_status(user_id: str, recipe_id: int, db: DbSession):
    try:
        like = await _find_like(db, user_id, recipe_id)
        return success_response(data={"hasLiked": like is not None})
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get like status: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve like status")
