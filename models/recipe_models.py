"""
Gloo Recipe Models
Database models for recipes, their ingredients, instructions and categories,
plus the moderation status lifecycle
"""

from sqlalchemy import String, Text, Float, Integer, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Tuple
import enum

from core.database import Base
from core.errors import InvalidTransitionError
from utils.date_utils import utcnow, to_iso


class RecipeStatus(str, enum.Enum):
    """Moderation lifecycle stage of a recipe"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELETE_PENDING = "delete_pending"


class ModerationEvent(str, enum.Enum):
    """Actions that move a recipe between statuses"""
    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"
    REQUEST_DELETION = "request_deletion"
    APPROVE_DELETION = "approve_deletion"
    REJECT_DELETION = "reject_deletion"


# A target of None means the recipe row is removed
TRANSITIONS: Dict[Tuple[RecipeStatus, ModerationEvent], Optional[RecipeStatus]] = {
    (RecipeStatus.PENDING, ModerationEvent.APPROVE): RecipeStatus.APPROVED,
    (RecipeStatus.PENDING, ModerationEvent.REJECT): RecipeStatus.REJECTED,
    (RecipeStatus.PENDING, ModerationEvent.EDIT): RecipeStatus.PENDING,
    (RecipeStatus.APPROVED, ModerationEvent.EDIT): RecipeStatus.PENDING,
    (RecipeStatus.REJECTED, ModerationEvent.EDIT): RecipeStatus.PENDING,
    (RecipeStatus.DELETE_PENDING, ModerationEvent.EDIT): RecipeStatus.PENDING,
    (RecipeStatus.PENDING, ModerationEvent.REQUEST_DELETION): RecipeStatus.DELETE_PENDING,
    (RecipeStatus.APPROVED, ModerationEvent.REQUEST_DELETION): RecipeStatus.DELETE_PENDING,
    (RecipeStatus.REJECTED, ModerationEvent.REQUEST_DELETION): RecipeStatus.DELETE_PENDING,
    (RecipeStatus.DELETE_PENDING, ModerationEvent.APPROVE_DELETION): None,
    (RecipeStatus.DELETE_PENDING, ModerationEvent.REJECT_DELETION): RecipeStatus.APPROVED,
}


def next_status(current: RecipeStatus, event: ModerationEvent) -> Optional[RecipeStatus]:
    """
    Resolve the status reached by applying ``event`` to a recipe in ``current``

    Raises InvalidTransitionError for pairs outside the transition table.
    """
    key = (RecipeStatus(current), event)
    if key not in TRANSITIONS:
        raise InvalidTransitionError(RecipeStatus(current).value, event.value)
    return TRANSITIONS[key]


def source_statuses(event: ModerationEvent) -> FrozenSet[RecipeStatus]:
    """Statuses from which ``event`` is allowed"""
    return frozenset(status for status, evt in TRANSITIONS if evt == event)


def target_status(event: ModerationEvent) -> Optional[RecipeStatus]:
    """Status every allowed source reaches for ``event``"""
    targets = {target for (_, evt), target in TRANSITIONS.items() if evt == event}
    if len(targets) != 1:
        raise ValueError(f"Event {event.value} has no single target status")
    return targets.pop()


class Recipe(Base):
    """Recipe submitted by a user and reviewed by organization admins"""
    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_time: Mapped[int] = mapped_column(Integer, nullable=False)
    servings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    media: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    media_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Moderation
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RecipeStatus.PENDING.value, index=True
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    review_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "description": self.description,
            "estimatedTime": self.estimated_time,
            "servings": self.servings,
            "media": self.media,
            "mediaType": self.media_type,
            "status": self.status,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": to_iso(self.reviewed_at),
            "reviewComment": self.review_comment,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


class Ingredient(Base):
    __tablename__ = "ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "recipeId": self.recipe_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "description": self.description,
        }


class Instruction(Base):
    __tablename__ = "instructions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    step: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "recipeId": self.recipe_id,
            "step": self.step,
            "description": self.description,
            "imageUrl": self.image_url,
        }


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "color": self.color,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
        }


class RecipeCategory(Base):
    __tablename__ = "recipe_categories"
    __table_args__ = (UniqueConstraint("recipe_id", "category_id", name="uq_recipe_categories_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
