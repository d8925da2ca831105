"""
Gloo Follow Endpoints
"""

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select, func
import structlog

from core.dependencies import DbSession, Identity, OwnerId, PaginationParams
from core.errors import ServiceError
from models.notification_models import NotificationType
from models.social_models import Follow
from schemas.social_schemas import FollowRequest
from services.identity_service import fetch_profiles, safe_get_user
from services.notification_service import notification_service
from services.user_service import user_service
from utils.responses import success_response, pagination_meta

logger = structlog.get_logger()
router = APIRouter()

FOLLOW_TEMPLATE = "{sender} started following you"


async def _find_follow(db, follower_id: str, following_id: str):
    result = await db.execute(
        select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    )
    return result.scalar_one_or_none()


async def _people(db, identity, column, match_column, user_id: str, pagination: dict) -> dict:
    """Page of follow rows where ``match_column`` is ``user_id``, keyed on the other side"""
    total = await db.scalar(select(func.count(Follow.id)).where(match_column == user_id))
    result = await db.execute(
        select(Follow)
        .where(match_column == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .offset(pagination["offset"])
        .limit(pagination["limit"])
    )
    follows = list(result.scalars().all())
    other_ids = [getattr(follow, column) for follow in follows]
    profiles = await fetch_profiles(identity, other_ids)

    data = []
    for follow, other_id in zip(follows, other_ids):
        item = follow.to_dict()
        item["user"] = profiles.get(other_id)
        data.append(item)
    return success_response(
        data=data,
        pagination=pagination_meta(pagination["page"], pagination["limit"], total or 0)
    )


@router.post("/{user_id}/follow", status_code=status.HTTP_201_CREATED)
async def follow_user(user_id: str, payload: FollowRequest, owner_id: OwnerId, identity: Identity, db: DbSession):
    """Follow another user and notify them"""
    if payload.following_id == owner_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot follow yourself")

    try:
        target = await safe_get_user(identity, payload.following_id)
        if target is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        if await _find_follow(db, owner_id, payload.following_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already following this user")

        await user_service.ensure_user(db, owner_id)
        await user_service.ensure_user(db, payload.following_id)
        follow = Follow(follower_id=owner_id, following_id=payload.following_id)
        db.add(follow)
        await db.commit()
        data = follow.to_dict()

        await notification_service.notify_social(
            db,
            identity,
            NotificationType.FOLLOW,
            payload.following_id,
            owner_id,
            "New follower",
            FOLLOW_TEMPLATE,
            related_type="user",
        )
        return success_response(data=data, message="User followed")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to follow user {payload.following_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to follow user")


@router.delete("/{user_id}/unfollow")
async def unfollow_user(user_id: str, payload: FollowRequest, owner_id: OwnerId, db: DbSession):
    try:
        follow = await _find_follow(db, owner_id, payload.following_id)
        if follow is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not following this user")
        await db.delete(follow)
        return success_response(message="User unfollowed")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to unfollow user {payload.following_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to unfollow user")


@router.get("/{user_id}/followers")
async def followers(user_id: str, pagination: PaginationParams, identity: Identity, db: DbSession):
    try:
        return await _people(db, identity, "follower_id", Follow.following_id, user_id, pagination)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get followers of {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve followers")


@router.get("/{user_id}/following")
async def following(user_id: str, pagination: PaginationParams, identity: Identity, db: DbSession):
    try:
        return await _people(db, identity, "following_id", Follow.follower_id, user_id, pagination)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get users followed by {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve following")


@router.get("/{user_id}/status")
async def follow_status(
    user_id: str,
    db: DbSession,
    target_user_id: str = Query(..., alias="targetUserId", min_length=1),
):
    try:
        follow = await _find_follow(db, user_id, target_user_id)
        return success_response(data={"isFollowing": follow is not None})
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get follow status: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve follow status")


@router.get("/{user_id}/stats")
async def follow_stats(user_id: str, db: DbSession):
    try:
        followers_count = await db.scalar(select(func.count(Follow.id)).where(Follow.following_id == user_id))
        following_count = await db.scalar(select(func.count(Follow.id)).where(Follow.follower_id == user_id))
        return success_response(data={
            "followersCount": followers_count or 0,
            "followingCount": following_count or 0,
        })
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get follow stats for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve follow stats")
