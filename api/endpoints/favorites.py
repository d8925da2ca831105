"""
Gloo Favorite Endpoints
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, func
import structlog

from core.dependencies import DbSession, Identity, OwnerId, PaginationParams
from core.errors import ServiceError
from models.recipe_models import Recipe
from models.social_models import Favorite, Collection, CollectionRecipe
from schemas.social_schemas import RecipeRef, CollectionFromFavorites
from services.recipe_service import recipe_service
from services.user_service import user_service
from utils.date_utils import days_ago, utcnow
from utils.responses import success_response, pagination_meta

logger = structlog.get_logger()
router = APIRouter()

RECENT_FAVORITES_DAYS = 7


async def _find_favorite(db, user_id: str, recipe_id: int):
    result = await db.execute(
        select(Favorite).where(Favorite.user_id == user_id, Favorite.recipe_id == recipe_id)
    )
    return result.scalar_one_or_none()


@router.post("/{user_id}", status_code=status.HTTP_201_CREATED)
async def add_favorite(user_id: str, payload: RecipeRef, owner_id: OwnerId, db: DbSession):
    try:
        recipe = await recipe_service.get_recipe(db, payload.recipe_id)
        if await _find_favorite(db, owner_id, recipe.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Recipe already in favorites")

        await user_service.ensure_user(db, owner_id)
        now = utcnow()
        favorite = Favorite(user_id=owner_id, recipe_id=recipe.id, created_at=now, updated_at=now)
        db.add(favorite)
        await db.flush()
        return success_response(data=favorite.to_dict(), message="Recipe added to favorites")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to add favorite {payload.recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add favorite")


@router.delete("/{user_id}")
async def remove_favorite(user_id: str, payload: RecipeRef, owner_id: OwnerId, db: DbSession):
    try:
        favorite = await _find_favorite(db, owner_id, payload.recipe_id)
        if favorite is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Favorite not found")
        await db.delete(favorite)
        return success_response(message="Recipe removed from favorites")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to remove favorite {payload.recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove favorite")


@router.get("/{user_id}")
async def list_favorites(user_id: str, pagination: PaginationParams, identity: Identity, db: DbSession):
    """Favorited recipes, most recently favorited first"""
    try:
        total = await db.scalar(select(func.count(Favorite.id)).where(Favorite.user_id == user_id))
        result = await db.execute(
            select(Favorite, Recipe)
            .join(Recipe, Recipe.id == Favorite.recipe_id)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
            .offset(pagination["offset"])
            .limit(pagination["limit"])
        )
        rows = result.all()
        recipes = await recipe_service.enrich(db, identity, [recipe for _, recipe in rows], include_details=False)
        for item, (favorite, _) in zip(recipes, rows):
            item["favoritedAt"] = favorite.to_dict()["createdAt"]
        return success_response(
            data=recipes,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total or 0)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get favorites of {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve favorites")


@router.get("/{user_id}/check/{recipe_id}")
async def check_favorite(user_id: str, recipe_id: int, db: DbSession):
    try:
        favorite = await _find_favorite(db, user_id, recipe_id)
        return success_response(data={"isFavorite": favorite is not None})
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to check favorite: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to check favorite")


@router.get("/{user_id}/stats")
async def favorite_stats(user_id: str, db: DbSession):
    try:
        total = await db.scalar(select(func.count(Favorite.id)).where(Favorite.user_id == user_id))
        recent = await db.scalar(
            select(func.count(Favorite.id)).where(
                Favorite.user_id == user_id,
                Favorite.created_at >= days_ago(RECENT_FAVORITES_DAYS),
            )
        )
        return success_response(data={
            "totalFavorites": total or 0,
            "recentFavorites": recent or 0,
        })
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get favorite stats of {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve favorite stats")


@router.post("/{user_id}/collections", status_code=status.HTTP_201_CREATED)
async def collection_from_favorites(user_id: str, payload: CollectionFromFavorites, owner_id: OwnerId, db: DbSession):
    """Create a collection holding some of the caller's favorited recipes"""
    try:
        result = await db.execute(
            select(Favorite.recipe_id).where(
                Favorite.user_id == owner_id,
                Favorite.recipe_id.in_(payload.recipe_ids),
            )
        )
        favorited = set(result.scalars().all())
        recipe_ids = [rid for rid in dict.fromkeys(payload.recipe_ids) if rid in favorited]
        if not recipe_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="None of the given recipes are in your favorites"
            )

        now = utcnow()
        collection = Collection(
            user_id=owner_id,
            created_at=now,
            updated_at=now,
            **payload.model_dump(exclude={"recipe_ids"}),
        )
        db.add(collection)
        await db.flush()
        db.add_all(
            CollectionRecipe(collection_id=collection.id, recipe_id=rid, added_at=now) for rid in recipe_ids
        )
        await db.flush()

        data = collection.to_dict()
        data["recipeIds"] = recipe_ids
        return success_response(data=data, message="Collection created from favorites")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to create collection from favorites for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create collection")
