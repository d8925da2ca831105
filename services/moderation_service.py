"""
Gloo Recipe Moderation Service
Owns the recipe status lifecycle and the notifications each transition emits.

Admin decisions are applied with a single conditional statement guarded on the
expected source status, so each transition succeeds at most once even when two
admins act on the same recipe concurrently.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import structlog
from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from middleware.logging import log_business_event
from models.recipe_models import (
    Recipe, Ingredient, Instruction, RecipeCategory,
    RecipeStatus, ModerationEvent, next_status, source_statuses, target_status,
)
from models.social_models import Rate, RecipeLike, RecipeComment, Favorite, CollectionRecipe
from core.errors import (
    RecipeNotFoundError, PermissionDeniedError, InvalidTransitionError, ValidationFailedError,
)
from services.identity_service import IdentityProvider
from services.notification_service import (
    NotificationService, NotificationDispatch, FanOutEvent, Decision, notification_service,
)
from utils.date_utils import utcnow

logger = structlog.get_logger()

NOT_FOUND_OR_PROCESSED = "Recipe not found or already processed"

# Rows that only exist for a recipe and go away with it
RECIPE_DEPENDENTS = (
    Ingredient, Instruction, Rate, RecipeLike, RecipeComment,
    Favorite, CollectionRecipe, RecipeCategory,
)

EDITABLE_FIELDS = ("title", "description", "estimated_time", "servings", "media", "media_type")


@dataclass
class ModerationResult:
    """
    Outcome of a moderation operation

    ``status`` is None once a recipe has been removed. A failed notification
    leaves ``notification.ok`` False but the transition itself stands.
    """
    recipe_id: int
    status: Optional[RecipeStatus]
    recipe: Optional[Recipe] = None
    notification: NotificationDispatch = field(default_factory=NotificationDispatch)


class RecipeModerationService:
    def __init__(self, notifications: NotificationService = notification_service):
        self.notifications = notifications

    async def _load(self, db: AsyncSession, recipe_id: int) -> Recipe:
        recipe = await db.get(Recipe, recipe_id, populate_existing=True)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    async def _result(
        self,
        db: AsyncSession,
        recipe_id: int,
        status: RecipeStatus,
        recipe: Recipe,
        dispatch: NotificationDispatch,
    ) -> ModerationResult:
        # A failed notification insert rolls back the session and expires loaded rows
        if not dispatch.ok:
            recipe = await self._load(db, recipe_id)
        return ModerationResult(recipe_id, status, recipe, dispatch)

    async def _apply(
        self,
        db: AsyncSession,
        recipe_id: int,
        event: ModerationEvent,
        values: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Move the recipe to the event's target status if it is still in a source status"""
        target = target_status(event)
        sources = [status.value for status in source_statuses(event)]
        stmt = (
            update(Recipe)
            .where(Recipe.id == recipe_id, Recipe.status.in_(sources))
            .values(status=target.value, updated_at=utcnow(), **(values or {}))
            .returning(Recipe.id)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.first() is not None

    async def submit(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        author_id: str,
        fields: Dict[str, Any],
    ) -> ModerationResult:
        """Create a recipe in ``pending`` and ask the author's admins to review it"""
        now = utcnow()
        recipe = Recipe(
            user_id=author_id,
            status=RecipeStatus.PENDING.value,
            created_at=now,
            updated_at=now,
            **{key: value for key, value in fields.items() if key in EDITABLE_FIELDS},
        )
        db.add(recipe)
        await db.commit()
        recipe_id = recipe.id

        log_business_event("recipe_submitted", {"recipe_id": recipe_id, "author_id": author_id})
        dispatch = await self.notifications.fan_out(
            db, identity, FanOutEvent.CREATED, recipe_id, recipe.title, author_id
        )
        return await self._result(db, recipe_id, RecipeStatus.PENDING, recipe, dispatch)

    async def edit(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        recipe_id: int,
        editor_id: str,
        changes: Dict[str, Any],
    ) -> ModerationResult:
        """Apply the author's changes and send the recipe back to review"""
        recipe = await self._load(db, recipe_id)
        if recipe.user_id != editor_id:
            raise PermissionDeniedError("You can only edit your own recipes")

        next_status(RecipeStatus(recipe.status), ModerationEvent.EDIT)

        for key, value in changes.items():
            if key in EDITABLE_FIELDS:
                setattr(recipe, key, value)
        recipe.status = RecipeStatus.PENDING.value
        recipe.reviewed_by = None
        recipe.reviewed_at = None
        recipe.review_comment = None
        recipe.updated_at = utcnow()
        await db.commit()

        log_business_event("recipe_edited", {"recipe_id": recipe_id, "author_id": editor_id})
        dispatch = await self.notifications.fan_out(
            db, identity, FanOutEvent.UPDATED, recipe.id, recipe.title, editor_id
        )
        return await self._result(db, recipe_id, RecipeStatus.PENDING, recipe, dispatch)

    async def request_deletion(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        recipe_id: int,
        requester_id: str,
    ) -> ModerationResult:
        recipe = await self._load(db, recipe_id)
        if recipe.user_id != requester_id:
            raise PermissionDeniedError("You can only delete your own recipes")

        current = RecipeStatus(recipe.status)
        next_status(current, ModerationEvent.REQUEST_DELETION)

        if not await self._apply(db, recipe_id, ModerationEvent.REQUEST_DELETION):
            # Another request moved it to delete_pending first
            await db.rollback()
            raise InvalidTransitionError(RecipeStatus.DELETE_PENDING.value, ModerationEvent.REQUEST_DELETION.value)
        await db.commit()

        recipe = await self._load(db, recipe_id)
        log_business_event("recipe_deletion_requested", {"recipe_id": recipe_id, "author_id": requester_id})
        dispatch = await self.notifications.fan_out(
            db, identity, FanOutEvent.DELETED, recipe.id, recipe.title, requester_id
        )
        return await self._result(db, recipe_id, RecipeStatus.DELETE_PENDING, recipe, dispatch)

    async def _decide(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        recipe_id: int,
        admin_id: str,
        event: ModerationEvent,
        decision: Decision,
        comment: Optional[str],
    ) -> ModerationResult:
        values = {
            "reviewed_by": admin_id,
            "reviewed_at": utcnow(),
            "review_comment": comment or None,
        }
        if not await self._apply(db, recipe_id, event, values):
            await db.rollback()
            raise RecipeNotFoundError(recipe_id, NOT_FOUND_OR_PROCESSED)
        await db.commit()

        recipe = await self._load(db, recipe_id)
        new_status = RecipeStatus(recipe.status)
        log_business_event(
            f"recipe_{decision.value}",
            {"recipe_id": recipe_id, "admin_id": admin_id, "status": new_status.value}
        )
        dispatch = await self.notifications.notify_decision(
            db, identity, decision, admin_id, recipe.user_id, recipe.id, recipe.title, comment
        )
        if not dispatch.ok:
            logger.warning("Decision notification not delivered", recipe_id=recipe_id, decision=decision.value)
        return await self._result(db, recipe_id, new_status, recipe, dispatch)

    async def approve(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        recipe_id: int,
        admin_id: str,
        comment: Optional[str] = None,
    ) -> ModerationResult:
        return await self._decide(
            db, identity, recipe_id, admin_id, ModerationEvent.APPROVE, Decision.APPROVED, comment
        )

    async def reject(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        recipe_id: int,
        admin_id: str,
        comment: str,
    ) -> ModerationResult:
        if not comment or not comment.strip():
            raise ValidationFailedError("A comment is required to reject a recipe")
        return await self._decide(
            db, identity, recipe_id, admin_id, ModerationEvent.REJECT, Decision.REJECTED, comment.strip()
        )

    async def reject_deletion(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        recipe_id: int,
        admin_id: str,
        comment: Optional[str] = None,
    ) -> ModerationResult:
        return await self._decide(
            db, identity, recipe_id, admin_id,
            ModerationEvent.REJECT_DELETION, Decision.DELETION_REJECTED, comment
        )

    async def approve_deletion(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        recipe_id: int,
        admin_id: str,
        comment: Optional[str] = None,
    ) -> ModerationResult:
        """Permanently remove a recipe whose deletion was requested, with its dependent rows"""
        sources = [status.value for status in source_statuses(ModerationEvent.APPROVE_DELETION)]
        result = await db.execute(
            select(Recipe.user_id, Recipe.title).where(Recipe.id == recipe_id, Recipe.status.in_(sources))
        )
        row = result.first()
        if row is None:
            raise RecipeNotFoundError(recipe_id, NOT_FOUND_OR_PROCESSED)
        author_id, title = row

        for model in RECIPE_DEPENDENTS:
            await db.execute(
                delete(model)
                .where(model.recipe_id == recipe_id)
                .execution_options(synchronize_session=False)
            )
        removed = await db.execute(
            delete(Recipe)
            .where(Recipe.id == recipe_id, Recipe.status.in_(sources))
            .execution_options(synchronize_session=False)
        )
        if removed.rowcount == 0:
            await db.rollback()
            raise RecipeNotFoundError(recipe_id, NOT_FOUND_OR_PROCESSED)
        await db.commit()

        log_business_event("recipe_deleted", {"recipe_id": recipe_id, "admin_id": admin_id, "author_id": author_id})
        dispatch = await self.notifications.notify_decision(
            db, identity, Decision.DELETION_APPROVED, admin_id, author_id, recipe_id, title, comment
        )
        return ModerationResult(recipe_id, None, None, dispatch)

    async def list_by_status(
        self,
        db: AsyncSession,
        status: RecipeStatus,
        offset: int,
        limit: int,
    ) -> Tuple[List[Recipe], int]:
        total = await db.scalar(select(func.count(Recipe.id)).where(Recipe.status == status.value))
        result = await db.execute(
            select(Recipe)
            .where(Recipe.status == status.value)
            .order_by(Recipe.created_at.desc(), Recipe.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def list_reviewed_by(
        self,
        db: AsyncSession,
        admin_id: str,
        offset: int,
        limit: int,
        status: Optional[RecipeStatus] = None,
    ) -> Tuple[List[Recipe], int]:
        conditions = [Recipe.reviewed_by == admin_id]
        if status is not None:
            conditions.append(Recipe.status == status.value)
        else:
            conditions.append(Recipe.status.in_([RecipeStatus.APPROVED.value, RecipeStatus.REJECTED.value]))

        total = await db.scalar(select(func.count(Recipe.id)).where(*conditions))
        result = await db.execute(
            select(Recipe)
            .where(*conditions)
            .order_by(Recipe.reviewed_at.desc(), Recipe.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def status_counts(self, db: AsyncSession) -> Dict[str, int]:
        result = await db.execute(select(Recipe.status, func.count(Recipe.id)).group_by(Recipe.status))
        counts = {status.value: 0 for status in RecipeStatus}
        for status, count in result.all():
            counts[status] = count
        return {
            "pending": counts[RecipeStatus.PENDING.value],
            "approved": counts[RecipeStatus.APPROVED.value],
            "rejected": counts[RecipeStatus.REJECTED.value],
            "deletePending": counts[RecipeStatus.DELETE_PENDING.value],
            "total": sum(counts.values()),
        }

    async def admin_counts(self, db: AsyncSession, admin_id: str) -> Dict[str, int]:
        result = await db.execute(
            select(Recipe.status, func.count(Recipe.id))
            .where(Recipe.reviewed_by == admin_id)
            .group_by(Recipe.status)
        )
        counts = dict(result.all())
        approved = counts.get(RecipeStatus.APPROVED.value, 0)
        rejected = counts.get(RecipeStatus.REJECTED.value, 0)
        return {
            "approvedByMe": approved,
            "rejectedByMe": rejected,
            "totalReviewedByMe": approved + rejected,
        }


# Global moderation service instance
moderation_service = RecipeModerationService()
