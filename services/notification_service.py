"""
Gloo Notification Service
Admin resolution, moderation fan-out, decision and social notifications.

Every public method here is best-effort: failures are logged and reported
in the returned NotificationDispatch, never raised to the caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from models.notification_models import Notification, NotificationType, UNREAD
from core.errors import IdentityLookupError
from services.identity_service import IdentityProvider, safe_get_user

logger = structlog.get_logger()

AUTHOR_FALLBACK_NAME = "A user"
ADMIN_FALLBACK_NAME = "Admin"
SENDER_FALLBACK_NAME = "Someone"


@dataclass
class NotificationDispatch:
    """Outcome of a notification side effect"""
    delivered: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FanOutEvent(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class Decision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    DELETION_APPROVED = "deletion_approved"
    DELETION_REJECTED = "deletion_rejected"


FAN_OUT_TEMPLATES = {
    FanOutEvent.CREATED: (
        NotificationType.RECIPE_APPROVAL,
        "New recipe pending approval",
        '{author} submitted the recipe "{title}" for review',
    ),
    FanOutEvent.UPDATED: (
        NotificationType.RECIPE_UPDATE_PENDING,
        "Recipe update pending review",
        '{author} edited the recipe "{title}" and it needs a new review',
    ),
    FanOutEvent.DELETED: (
        NotificationType.RECIPE_DELETE_PENDING,
        "Recipe deletion requested",
        '{author} requested deletion of the recipe "{title}"',
    ),
}

DECISION_TEMPLATES = {
    Decision.APPROVED: (
        NotificationType.RECIPE_APPROVED,
        "Recipe approved",
        'Your recipe "{title}" has been approved by {admin}{comment}',
    ),
    Decision.REJECTED: (
        NotificationType.RECIPE_REJECTED,
        "Recipe rejected",
        'Your recipe "{title}" has been rejected by {admin}{comment}',
    ),
    Decision.DELETION_APPROVED: (
        NotificationType.RECIPE_DELETED,
        "Recipe deleted",
        'Your request to delete "{title}" has been approved by {admin}{comment}',
    ),
    Decision.DELETION_REJECTED: (
        NotificationType.RECIPE_APPROVED,
        "Deletion request rejected",
        'Your request to delete "{title}" has been rejected by {admin}{comment}. The recipe has been restored',
    ),
}


class NotificationService:
    def __init__(self):
        self.members_limit = settings.ORGANIZATION_MEMBERS_LIMIT

    async def resolve_admins(self, identity: IdentityProvider, author_id: str) -> List[str]:
        """
        Admins of the author's first organization, excluding the author

        Lookup failures are logged and produce an empty list.
        """
        try:
            memberships = await identity.get_organization_memberships(author_id)
            if not memberships:
                logger.info("Author has no organization, no admins to notify", author_id=author_id)
                return []

            organization_id = memberships[0].organization_id
            members = await identity.get_organization_members(organization_id, limit=self.members_limit)
        except IdentityLookupError as e:
            logger.warning("Admin resolution failed", author_id=author_id, error=str(e))
            return []
        except Exception as e:
            logger.error("Unexpected error resolving admins", author_id=author_id, error=str(e))
            return []

        admins = []
        for member in members:
            if member.user_id != author_id and settings.is_admin_role(member.role) and member.user_id not in admins:
                admins.append(member.user_id)
        return admins

    async def _insert(self, db: AsyncSession, rows: List[Notification]) -> NotificationDispatch:
        if not rows:
            return NotificationDispatch(delivered=0)
        try:
            db.add_all(rows)
            await db.commit()
            return NotificationDispatch(delivered=len(rows))
        except Exception as e:
            await db.rollback()
            logger.error(
                "Failed to insert notifications",
                count=len(rows),
                type=rows[0].type,
                error=str(e)
            )
            return NotificationDispatch(delivered=0, error=str(e))

    async def fan_out(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        event: FanOutEvent,
        recipe_id: int,
        recipe_title: str,
        author_id: str,
    ) -> NotificationDispatch:
        """Notify every admin entitled to moderate the author's recipe"""
        admins = await self.resolve_admins(identity, author_id)
        if not admins:
            return NotificationDispatch(delivered=0)

        author = await safe_get_user(identity, author_id)
        author_name = author.display_name(AUTHOR_FALLBACK_NAME) if author else AUTHOR_FALLBACK_NAME
        notification_type, title, template = FAN_OUT_TEMPLATES[event]
        message = template.format(author=author_name, title=recipe_title)

        rows = [
            Notification(
                user_id=admin_id,
                sender_id=author_id,
                type=notification_type.value,
                title=title,
                message=message,
                related_id=recipe_id,
                related_type="recipe",
                read=UNREAD,
            )
            for admin_id in admins
        ]
        dispatch = await self._insert(db, rows)
        logger.info(
            "Moderation fan-out",
            fan_out_event=event.value,
            recipe_id=recipe_id,
            admins=len(admins),
            delivered=dispatch.delivered
        )
        return dispatch

    async def notify_decision(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        decision: Decision,
        admin_id: str,
        author_id: str,
        recipe_id: int,
        recipe_title: str,
        comment: Optional[str] = None,
    ) -> NotificationDispatch:
        """Tell the author what an admin decided about their recipe"""
        admin = await safe_get_user(identity, admin_id)
        admin_name = admin.display_name(ADMIN_FALLBACK_NAME) if admin else ADMIN_FALLBACK_NAME

        notification_type, title, template = DECISION_TEMPLATES[decision]
        message = template.format(
            title=recipe_title,
            admin=admin_name,
            comment=f": {comment}" if comment else "",
        )
        row = Notification(
            user_id=author_id,
            sender_id=admin_id,
            type=notification_type.value,
            title=title,
            message=message,
            related_id=recipe_id,
            related_type="recipe",
            read=UNREAD,
        )
        return await self._insert(db, [row])

    async def notify_social(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        notification_type: NotificationType,
        recipient_id: str,
        sender_id: str,
        heading: str,
        template: str,
        related_id: Optional[int] = None,
        related_type: Optional[str] = None,
        **context: str,
    ) -> NotificationDispatch:
        """
        Single notification for a social action

        ``template`` is formatted with ``sender`` plus any extra ``context`` values.

        Actions on one's own content are not notified.
        """
        if recipient_id == sender_id:
            return NotificationDispatch(delivered=0)

        sender = await safe_get_user(identity, sender_id)
        sender_name = sender.display_name(SENDER_FALLBACK_NAME) if sender else SENDER_FALLBACK_NAME
        row = Notification(
            user_id=recipient_id,
            sender_id=sender_id,
            type=notification_type.value,
            title=heading,
            message=template.format(sender=sender_name, **context),
            related_id=related_id,
            related_type=related_type,
            read=UNREAD,
        )
        return await self._insert(db, [row])


# Global notification service instance
notification_service = NotificationService()
