"""
Gloo Notification Schemas
Pydantic models for notification requests
"""

from typing import List, Optional
from pydantic import Field

from models.notification_models import NotificationType
from schemas.recipe_schemas import CamelModel


class MarkReadRequest(CamelModel):
    notification_ids: List[int] = Field(..., min_length=1)


class MarkAllReadRequest(CamelModel):
    type: Optional[NotificationType] = None


class NotificationCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    sender_id: Optional[str] = None
    related_id: Optional[int] = None
    related_type: Optional[str] = Field(None, max_length=50)
