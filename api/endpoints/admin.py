"""
Gloo Admin Moderation Endpoints
Review queue, approval decisions and moderation statistics.
Every route requires an admin acting as the ``user_id`` in the path.
"""

from fastapi import APIRouter, HTTPException, Query, status
from typing import Optional
import structlog

from core.dependencies import AdminOwner, DbSession, Identity, PaginationParams
from core.errors import ServiceError
from models.recipe_models import RecipeStatus
from schemas.recipe_schemas import ApproveRecipeRequest, RejectRecipeRequest
from services.moderation_service import moderation_service, ModerationResult
from services.recipe_service import recipe_service
from utils.responses import success_response, pagination_meta

logger = structlog.get_logger()
router = APIRouter()


def _decision_payload(result: ModerationResult) -> dict:
    return {
        "recipe": result.recipe.to_dict() if result.recipe else None,
        "recipeId": result.recipe_id,
        "status": result.status.value if result.status else "deleted",
        "notificationSent": result.notification.ok and result.notification.delivered > 0,
    }


async def _queue(status_value: RecipeStatus, pagination: dict, identity, db) -> dict:
    recipes, total = await moderation_service.list_by_status(
        db, status_value, pagination["offset"], pagination["limit"]
    )
    data = await recipe_service.enrich(db, identity, recipes)
    return success_response(
        data=data,
        pagination=pagination_meta(pagination["page"], pagination["limit"], total)
    )


@router.get("/{user_id}/pending")
async def pending_recipes(
    user_id: str, admin: AdminOwner, pagination: PaginationParams, identity: Identity, db: DbSession
):
    """Recipes waiting for a first review, newest first"""
    try:
        return await _queue(RecipeStatus.PENDING, pagination, identity, db)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get pending recipes: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve pending recipes")


@router.get("/{user_id}/delete-pending")
async def delete_pending_recipes(
    user_id: str, admin: AdminOwner, pagination: PaginationParams, identity: Identity, db: DbSession
):
    try:
        return await _queue(RecipeStatus.DELETE_PENDING, pagination, identity, db)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get delete-pending recipes: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve recipes pending deletion")


@router.post("/{user_id}/approve/{recipe_id}")
async def approve_recipe(
    user_id: str,
    recipe_id: int,
    admin: AdminOwner,
    identity: Identity,
    db: DbSession,
    payload: Optional[ApproveRecipeRequest] = None,
):
    try:
        comment = payload.comment if payload else None
        result = await moderation_service.approve(db, identity, recipe_id, admin.id, comment)
        return success_response(data=_decision_payload(result), message="Recipe approved successfully")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to approve recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to approve recipe")


@router.post("/{user_id}/reject/{recipe_id}")
async def reject_recipe(
    user_id: str,
    recipe_id: int,
    payload: RejectRecipeRequest,
    admin: AdminOwner,
    identity: Identity,
    db: DbSession,
):
    """Reject a pending recipe; a non-empty comment is required"""
    try:
        result = await moderation_service.reject(db, identity, recipe_id, admin.id, payload.comment)
        return success_response(data=_decision_payload(result), message="Recipe rejected successfully")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to reject recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to reject recipe")


@router.post("/{user_id}/approve-deletion/{recipe_id}")
async def approve_deletion(
    user_id: str,
    recipe_id: int,
    admin: AdminOwner,
    identity: Identity,
    db: DbSession,
    payload: Optional[ApproveRecipeRequest] = None,
):
    """Permanently delete a recipe whose author asked for its removal"""
    try:
        comment = payload.comment if payload else None
        result = await moderation_service.approve_deletion(db, identity, recipe_id, admin.id, comment)
        return success_response(data=_decision_payload(result), message="Recipe deleted successfully")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to approve deletion of recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete recipe")


@router.post("/{user_id}/reject-deletion/{recipe_id}")
async def reject_deletion(
    user_id: str,
    recipe_id: int,
    admin: AdminOwner,
    identity: Identity,
    db: DbSession,
    payload: Optional[ApproveRecipeRequest] = None,
):
    """Keep a recipe whose author asked for its removal; it returns to ``approved``"""
    try:
        comment = payload.comment if payload else None
        result = await moderation_service.reject_deletion(db, identity, recipe_id, admin.id, comment)
        return success_response(data=_decision_payload(result), message="Deletion request rejected")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to reject deletion of recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to reject deletion request")


@router.get("/{user_id}/stats")
async def moderation_stats(user_id: str, admin: AdminOwner, db: DbSession):
    try:
        return success_response(data=await moderation_service.status_counts(db))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get moderation stats: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve statistics")


@router.get("/{user_id}/my-reviews")
async def my_reviews(
    user_id: str,
    admin: AdminOwner,
    pagination: PaginationParams,
    identity: Identity,
    db: DbSession,
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(approved|rejected)$"),
):
    """Recipes this admin has reviewed, most recent review first"""
    try:
        recipes, total = await moderation_service.list_reviewed_by(
            db,
            admin.id,
            pagination["offset"],
            pagination["limit"],
            RecipeStatus(status_filter) if status_filter else None,
        )
        data = await recipe_service.enrich(db, identity, recipes, include_details=False)
        return success_response(
            data=data,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get reviews of admin {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve reviews")


@router.get("/{user_id}/my-stats")
async def my_stats(user_id: str, admin: AdminOwner, db: DbSession):
    try:
        return success_response(data=await moderation_service.admin_counts(db, admin.id))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get stats of admin {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve statistics")
