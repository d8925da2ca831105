"""
Gloo Rating Endpoints
One 1-5 star rating per user and recipe
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, func
import structlog

from core.dependencies import DbSession, Identity, OwnerId
from core.errors import ServiceError
from models.notification_models import NotificationType
from models.social_models import Rate
from schemas.social_schemas import RateRequest, RecipeRef
from services.notification_service import notification_service
from services.recipe_service import recipe_service
from services.user_service import user_service
from utils.date_utils import utcnow
from utils.responses import success_response

logger = structlog.get_logger()
router = APIRouter()

RATING_TEMPLATE = '{sender} rated your recipe "{title}" with {rating} stars'


async def _find_rate(db, user_id: str, recipe_id: int):
    result = await db.execute(
        select(Rate).where(Rate.user_id == user_id, Rate.recipe_id == recipe_id)
    )
    return result.scalar_one_or_none()


@router.post("/{user_id}/rate", status_code=status.HTTP_201_CREATED)
async def rate_recipe(user_id: str, payload: RateRequest, owner_id: OwnerId, identity: Identity, db: DbSession):
    """Rate a recipe and notify its author"""
    try:
        recipe = await recipe_service.get_recipe(db, payload.recipe_id)
        if await _find_rate(db, owner_id, payload.recipe_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Recipe already rated")

        await user_service.ensure_user(db, owner_id)
        rate = Rate(user_id=owner_id, recipe_id=recipe.id, rating=payload.rating)
        db.add(rate)
        await db.commit()
        data = rate.to_dict()

        await notification_service.notify_social(
            db,
            identity,
            NotificationType.RATING,
            recipe.user_id,
            owner_id,
            "New rating",
            RATING_TEMPLATE,
            related_id=recipe.id,
            related_type="recipe",
            title=recipe.title,
            rating=str(payload.rating),
        )
        return success_response(data=data, message="Recipe rated successfully")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to rate recipe {payload.recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to rate recipe")


@router.put("/{user_id}/rate")
async def update_rating(user_id: str, payload: RateRequest, owner_id: OwnerId, db: DbSession):
    try:
        rate = await _find_rate(db, owner_id, payload.recipe_id)
        if rate is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rating not found")
        rate.rating = payload.rating
        rate.updated_at = utcnow()
        await db.flush()
        return success_response(data=rate.to_dict(), message="Rating updated")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to update rating on recipe {payload.recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update rating")


@router.delete("/{user_id}/rate")
async def delete_rating(user_id: str, payload: RecipeRef, owner_id: OwnerId, db: DbSession):
    try:
        rate = await _find_rate(db, owner_id, payload.recipe_id)
        if rate is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rating not found")
        await db.delete(rate)
        return success_response(message="Rating removed")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete rating on recipe {payload.recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove rating")


@router.get("/recipe/{recipe_id}")
async def recipe_ratings(recipe_id: int, db: DbSession):
    """All ratings of a recipe with their average"""
    try:
        await recipe_service.get_recipe(db, recipe_id)
        result = await db.execute(
            select(Rate).where(Rate.recipe_id == recipe_id).order_by(Rate.created_at.desc(), Rate.id.desc())
        )
        ratings = [rate.to_dict() for rate in result.scalars()]
        average = await db.scalar(select(func.avg(Rate.rating)).where(Rate.recipe_id == recipe_id))
        return success_response(data={
            "ratings": ratings,
            "totalRatings": len(ratings),
            "averageRating": round(float(average), 2) if average is not None else 0.0,
        })
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get ratings for recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve ratings")


@router.get("/{user_id}/status/{recipe_id}")
async def rating_status(user_id: str, recipe_id: int, db: DbSession):
    try:
        rate = await _find_rate(db, user_id, recipe_id)
        return success_response(data={
            "hasRated": rate is not None,
            "rating": rate.rating if rate else None,
        })
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get rating status: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve rating status")
