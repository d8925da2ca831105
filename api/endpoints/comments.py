"""
Gloo Comment Endpoints
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, func
import structlog

from core.dependencies import DbSession, Identity, OwnerId, PaginationParams
from core.errors import ServiceError
from models.notification_models import NotificationType
from models.social_models import RecipeComment
from schemas.social_schemas import CommentCreate, CommentUpdate
from services.identity_service import fetch_profiles
from services.notification_service import notification_service
from services.recipe_service import recipe_service
from services.user_service import user_service
from utils.date_utils import utcnow
from utils.responses import success_response, pagination_meta

logger = structlog.get_logger()
router = APIRouter()

COMMENT_TEMPLATE = '{sender} commented on your recipe "{title}"'


async def _authored_comment(db, comment_id: int, user_id: str) -> RecipeComment:
    comment = await db.get(RecipeComment, comment_id)
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    if comment.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only modify your own comments")
    return comment


@router.post("/{user_id}", status_code=status.HTTP_201_CREATED)
async def create_comment(user_id: str, payload: CommentCreate, owner_id: OwnerId, identity: Identity, db: DbSession):
    try:
        recipe = await recipe_service.get_recipe(db, payload.recipe_id)
        await user_service.ensure_user(db, owner_id)

        now = utcnow()
        comment = RecipeComment(
            user_id=owner_id,
            recipe_id=recipe.id,
            content=payload.content,
            created_at=now,
            updated_at=now,
        )
        db.add(comment)
        await db.commit()
        data = comment.to_dict()

        await notification_service.notify_social(
            db,
            identity,
            NotificationType.COMMENT,
            recipe.user_id,
            owner_id,
            "New comment",
            COMMENT_TEMPLATE,
            related_id=recipe.id,
            related_type="recipe",
            title=recipe.title,
        )
        return success_response(data=data, message="Comment added")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to comment on recipe {payload.recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add comment")


@router.get("/recipe/{recipe_id}")
async def recipe_comments(recipe_id: int, pagination: PaginationParams, identity: Identity, db: DbSession):
    """Comments on a recipe, newest first, with author profiles"""
    try:
        await recipe_service.get_recipe(db, recipe_id)
        total = await db.scalar(
            select(func.count(RecipeComment.id)).where(RecipeComment.recipe_id == recipe_id)
        )
        result = await db.execute(
            select(RecipeComment)
            .where(RecipeComment.recipe_id == recipe_id)
            .order_by(RecipeComment.created_at.desc(), RecipeComment.id.desc())
            .offset(pagination["offset"])
            .limit(pagination["limit"])
        )
        comments = list(result.scalars().all())
        profiles = await fetch_profiles(identity, (comment.user_id for comment in comments))

        data = []
        for comment in comments:
            item = comment.to_dict()
            item["user"] = profiles.get(comment.user_id)
            data.append(item)
        return success_response(
            data=data,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total or 0)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get comments for recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve comments")


@router.put("/{user_id}/{comment_id}")
async def update_comment(user_id: str, comment_id: int, payload: CommentUpdate, owner_id: OwnerId, db: DbSession):
    try:
        comment = await _authored_comment(db, comment_id, owner_id)
        comment.content = payload.content
        comment.updated_at = utcnow()
        await db.flush()
        return success_response(data=comment.to_dict(), message="Comment updated")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to update comment {comment_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update comment")


@router.delete("/{user_id}/{comment_id}")
async def delete_comment(user_id: str, comment_id: int, owner_id: OwnerId, db: DbSession):
    try:
        comment = await _authored_comment(db, comment_id, owner_id)
        await db.delete(comment)
        return success_response(message="Comment deleted")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete comment {comment_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete comment")
