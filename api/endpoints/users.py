"""
Gloo User Endpoints
Profiles combine the identity provider's record with the local ``users`` row
"""

from fastapi import APIRouter, HTTPException, status
import structlog

from core.dependencies import DbSession, Identity, OwnerId
from core.errors import IdentityLookupError, ServiceError
from models.users import User
from schemas.user_schemas import IDENTITY_FIELDS, UserUpdate
from services.identity_service import safe_get_user
from services.user_service import user_service
from utils.date_utils import utcnow
from utils.responses import success_response

logger = structlog.get_logger()
router = APIRouter()


def _profile(identity_user, local_user) -> dict:
    profile = identity_user.to_dict() if identity_user else {"id": local_user.id}
    profile["description"] = local_user.description if local_user else None
    profile["idSocialMedia"] = local_user.id_social_media if local_user else None
    return profile


@router.get("/{user_id}")
async def get_user(user_id: str, identity: Identity, db: DbSession):
    try:
        identity_user = await safe_get_user(identity, user_id)
        local_user = await db.get(User, user_id)
        if identity_user is None and local_user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return success_response(data=_profile(identity_user, local_user))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve user")


@router.put("/{user_id}")
async def update_user(user_id: str, payload: UserUpdate, owner_id: OwnerId, identity: Identity, db: DbSession):
    """
    Update the caller's profile

    Name and username are written to the identity provider; description and
    social handle are stored locally.
    """
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    identity_changes = {key: value for key, value in changes.items() if key in IDENTITY_FIELDS}
    local_changes = {key: value for key, value in changes.items() if key not in IDENTITY_FIELDS}

    try:
        if identity_changes:
            try:
                identity_user = await identity.update_user(owner_id, identity_changes)
            except IdentityLookupError as e:
                logger.warning("Identity profile update failed", user_id=owner_id, error=str(e))
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to update identity profile")
        else:
            identity_user = await safe_get_user(identity, owner_id)

        local_user = await user_service.ensure_user(db, owner_id)
        if local_changes:
            for key, value in local_changes.items():
                setattr(local_user, key, value)
            local_user.updated_at = utcnow()
            await db.flush()

        return success_response(data=_profile(identity_user, local_user), message="Profile updated")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to update user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update profile")


@router.get("/{user_id}/stats")
async def user_stats(user_id: str, db: DbSession):
    try:
        return success_response(data=await user_service.stats(db, user_id))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get stats for user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve user stats")
