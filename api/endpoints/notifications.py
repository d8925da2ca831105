"""
Gloo Notification Endpoints
Inbox listing, read state and admin-issued notifications
"""

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select, func, update
from typing import Optional
import structlog

from core.dependencies import AdminUser, DbSession, Identity, OwnerId, PaginationParams
from core.errors import ServiceError
from models.notification_models import Notification, NotificationType, READ, UNREAD
from schemas.notification_schemas import MarkReadRequest, MarkAllReadRequest, NotificationCreate
from services.identity_service import fetch_profiles, safe_get_user
from utils.responses import success_response, pagination_meta

logger = structlog.get_logger()
router = APIRouter()


async def _unread_count(db, user_id: str) -> int:
    count = await db.scalar(
        select(func.count(Notification.id)).where(Notification.user_id == user_id, Notification.read == UNREAD)
    )
    return count or 0


@router.get("/{user_id}")
async def list_notifications(
    user_id: str,
    owner_id: OwnerId,
    pagination: PaginationParams,
    identity: Identity,
    db: DbSession,
    notification_type: Optional[NotificationType] = Query(None, alias="type"),
    read: Optional[bool] = None,
):
    """Newest notifications first, with sender profiles and the unread total"""
    try:
        conditions = [Notification.user_id == owner_id]
        if notification_type is not None:
            conditions.append(Notification.type == notification_type.value)
        if read is not None:
            conditions.append(Notification.read == (READ if read else UNREAD))

        total = await db.scalar(select(func.count(Notification.id)).where(*conditions))
        result = await db.execute(
            select(Notification)
            .where(*conditions)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(pagination["offset"])
            .limit(pagination["limit"])
        )
        notifications = list(result.scalars().all())
        senders = await fetch_profiles(identity, (n.sender_id for n in notifications))

        data = []
        for notification in notifications:
            item = notification.to_dict()
            item["sender"] = senders.get(notification.sender_id)
            data.append(item)
        return success_response(
            data=data,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total or 0),
            unreadCount=await _unread_count(db, owner_id),
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get notifications for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve notifications")


@router.put("/{user_id}/read")
async def mark_read(user_id: str, payload: MarkReadRequest, owner_id: OwnerId, db: DbSession):
    try:
        result = await db.execute(
            update(Notification)
            .where(Notification.user_id == owner_id, Notification.id.in_(payload.notification_ids))
            .values(read=READ)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No notifications found")
        return success_response(
            data={"updatedCount": result.rowcount},
            message="Notifications marked as read"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to mark notifications read for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update notifications")


@router.put("/{user_id}/read-all")
async def mark_all_read(
    user_id: str, owner_id: OwnerId, db: DbSession, payload: Optional[MarkAllReadRequest] = None
):
    try:
        conditions = [Notification.user_id == owner_id, Notification.read == UNREAD]
        if payload and payload.type:
            conditions.append(Notification.type == payload.type.value)
        result = await db.execute(
            update(Notification)
            .where(*conditions)
            .values(read=READ)
            .execution_options(synchronize_session=False)
        )
        return success_response(
            data={"updatedCount": result.rowcount},
            message="All notifications marked as read"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to mark all notifications read for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update notifications")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_notification(payload: NotificationCreate, admin: AdminUser, identity: Identity, db: DbSession):
    """Internal endpoint for admins to address a notification to any user"""
    try:
        recipient = await safe_get_user(identity, payload.user_id)
        if recipient is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")

        notification = Notification(
            user_id=payload.user_id,
            sender_id=payload.sender_id or admin.id,
            type=payload.type.value,
            title=payload.title,
            message=payload.message,
            related_id=payload.related_id,
            related_type=payload.related_type,
            read=UNREAD,
        )
        db.add(notification)
        await db.flush()
        return success_response(data=notification.to_dict(), message="Notification created")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to create notification for {payload.user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create notification")


@router.get("/{user_id}/unread-count")
async def unread_count(user_id: str, owner_id: OwnerId, db: DbSession):
    try:
        result = await db.execute(
            select(Notification.type, func.count(Notification.id))
            .where(Notification.user_id == owner_id, Notification.read == UNREAD)
            .group_by(Notification.type)
        )
        by_type = {notification_type: count for notification_type, count in result.all()}
        return success_response(data={
            "unreadCount": sum(by_type.values()),
            "byType": by_type,
        })
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to count unread notifications for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to count notifications")


@router.delete("/{user_id}/{notification_id}")
async def delete_notification(user_id: str, notification_id: int, owner_id: OwnerId, db: DbSession):
    try:
        notification = await db.get(Notification, notification_id)
        if notification is None or notification.user_id != owner_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
        await db.delete(notification)
        return success_response(message="Notification deleted")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete notification {notification_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete notification")
