"""
Gloo Notification Models
Notification rows addressed to a single recipient
"""

from sqlalchemy import String, Text, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional
import enum

from core.database import Base
from utils.date_utils import utcnow, to_iso


class NotificationType(str, enum.Enum):
    RECIPE_APPROVAL = "recipe_approval"
    RECIPE_APPROVED = "recipe_approved"
    RECIPE_REJECTED = "recipe_rejected"
    RECIPE_UPDATE_PENDING = "recipe_update_pending"
    RECIPE_DELETE_PENDING = "recipe_delete_pending"
    RECIPE_DELETED = "recipe_deleted"
    FOLLOW = "follow"
    LIKE = "like"
    COMMENT = "comment"
    RATING = "rating"


# Read flag is persisted as text
READ = "true"
UNREAD = "false"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    sender_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    related_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    read: Mapped[str] = mapped_column(String(5), default=UNREAD, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def is_read(self) -> bool:
        return self.read == READ

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "senderId": self.sender_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "relatedId": self.related_id,
            "relatedType": self.related_type,
            "read": self.is_read,
            "createdAt": to_iso(self.created_at),
        }
