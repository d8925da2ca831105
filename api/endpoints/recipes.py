"""
Gloo Recipe Endpoints
Recipe listings, creation, editing and deletion requests
"""

from fastapi import APIRouter, HTTPException, Query, status
from typing import Optional
import structlog

from core.dependencies import CurrentUserId, DbSession, Identity, OwnerId, PaginationParams
from core.errors import InvalidTransitionError, ServiceError
from models.recipe_models import RecipeStatus
from schemas.recipe_schemas import RecipeCreate, RecipeUpdate
from services.moderation_service import moderation_service
from services.recipe_service import recipe_service
from services.user_service import user_service
from utils.responses import success_response, pagination_meta

logger = structlog.get_logger()
router = APIRouter()


@router.get("/")
async def list_recipes(pagination: PaginationParams, identity: Identity, db: DbSession):
    """Approved recipes, newest first"""
    try:
        recipes, total = await recipe_service.list_approved(db, pagination["offset"], pagination["limit"])
        data = await recipe_service.enrich(db, identity, recipes)
        return success_response(
            data=data,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to list recipes: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve recipes")


@router.get("/trending")
async def trending_recipes(
    identity: Identity,
    db: DbSession,
    days: int = Query(7, ge=1, le=90),
    limit: int = Query(10, ge=1, le=50),
):
    """Approved recipes with the most likes in the recent window"""
    try:
        ranked = await recipe_service.list_trending(db, days, limit)
        data = await recipe_service.enrich(db, identity, [recipe for recipe, _ in ranked], include_details=False)
        for item, (_, recent_likes) in zip(data, ranked):
            item["recentLikes"] = recent_likes
        return success_response(data=data)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get trending recipes: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve trending recipes")


@router.get("/following/{user_id}")
async def following_recipes(user_id: str, pagination: PaginationParams, identity: Identity, db: DbSession):
    """Approved recipes published by the users ``user_id`` follows"""
    try:
        recipes, total = await recipe_service.list_following_feed(
            db, user_id, pagination["offset"], pagination["limit"]
        )
        data = await recipe_service.enrich(db, identity, recipes)
        return success_response(
            data=data,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get following feed for user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve recipes")


@router.get("/user/{user_id}")
async def user_recipes(
    user_id: str,
    pagination: PaginationParams,
    identity: Identity,
    db: DbSession,
    status_filter: Optional[RecipeStatus] = Query(None, alias="status"),
):
    try:
        recipes, total = await recipe_service.list_by_user(
            db, user_id, pagination["offset"], pagination["limit"], status_filter
        )
        data = await recipe_service.enrich(db, identity, recipes)
        return success_response(
            data=data,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get recipes for user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve recipes")


@router.get("/{recipe_id}")
async def get_recipe(recipe_id: int, identity: Identity, db: DbSession):
    try:
        recipe = await recipe_service.get_recipe(db, recipe_id)
        data = await recipe_service.enrich(db, identity, [recipe])
        return success_response(data=data[0])
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve recipe")


@router.post("/{user_id}", status_code=status.HTTP_201_CREATED)
async def create_recipe(user_id: str, payload: RecipeCreate, owner_id: OwnerId, identity: Identity, db: DbSession):
    """
    Create a recipe for the authenticated user

    The recipe starts in ``pending`` and the admins of the author's
    organization are notified to review it.
    """
    try:
        fields = payload.model_dump()
        if fields.get("media") and not fields.get("media_type"):
            fields["media_type"] = "image"

        await user_service.ensure_user(db, owner_id)
        result = await moderation_service.submit(db, identity, owner_id, fields)
        return success_response(
            data=result.recipe.to_dict(),
            message="Recipe created and pending approval"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to create recipe for user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create recipe")


@router.put("/{recipe_id}")
async def update_recipe(
    recipe_id: int,
    payload: RecipeUpdate,
    current_user_id: CurrentUserId,
    identity: Identity,
    db: DbSession,
):
    """Edit a recipe; any edit sends it back to review"""
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    try:
        result = await moderation_service.edit(db, identity, recipe_id, current_user_id, changes)
        return success_response(
            data=result.recipe.to_dict(),
            message="Recipe updated and pending approval"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to update recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update recipe")


@router.delete("/{recipe_id}")
async def delete_recipe(recipe_id: int, current_user_id: CurrentUserId, identity: Identity, db: DbSession):
    """Ask the organization admins to delete a recipe"""
    try:
        result = await moderation_service.request_deletion(db, identity, recipe_id, current_user_id)
        return success_response(
            data=result.recipe.to_dict(),
            message="Deletion requested and pending approval"
        )
    except InvalidTransitionError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Recipe deletion already requested")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to request deletion of recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete recipe")
