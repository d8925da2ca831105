from __future__ import annotations

import pytest

from core.errors import InvalidTransitionError
from models.recipe_models import (
    ModerationEvent,
    RecipeStatus,
    TRANSITIONS,
    next_status,
    source_statuses,
    target_status,
)


class TestNextStatus:
    @pytest.mark.parametrize(
        "current, event, expected",
        [
            (RecipeStatus.PENDING, ModerationEvent.APPROVE, RecipeStatus.APPROVED),
            (RecipeStatus.PENDING, ModerationEvent.REJECT, RecipeStatus.REJECTED),
            (RecipeStatus.APPROVED, ModerationEvent.EDIT, RecipeStatus.PENDING),
            (RecipeStatus.REJECTED, ModerationEvent.EDIT, RecipeStatus.PENDING),
            (RecipeStatus.APPROVED, ModerationEvent.REQUEST_DELETION, RecipeStatus.DELETE_PENDING),
            (RecipeStatus.DELETE_PENDING, ModerationEvent.REJECT_DELETION, RecipeStatus.APPROVED),
        ],
    )
    def test_allowed_transitions(self, current, event, expected) -> None:
        assert next_status(current, event) == expected

    def test_approved_deletion_removes_recipe(self) -> None:
        assert next_status(RecipeStatus.DELETE_PENDING, ModerationEvent.APPROVE_DELETION) is None

    @pytest.mark.parametrize(
        "current, event",
        [
            (RecipeStatus.APPROVED, ModerationEvent.APPROVE),
            (RecipeStatus.REJECTED, ModerationEvent.REJECT),
            (RecipeStatus.APPROVED, ModerationEvent.REJECT),
            (RecipeStatus.PENDING, ModerationEvent.APPROVE_DELETION),
            (RecipeStatus.APPROVED, ModerationEvent.REJECT_DELETION),
            (RecipeStatus.DELETE_PENDING, ModerationEvent.REQUEST_DELETION),
        ],
    )
    def test_disallowed_transitions_raise(self, current, event) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            next_status(current, event)
        assert exc_info.value.status == current.value
        assert exc_info.value.event == event.value

    def test_accepts_raw_status_strings(self) -> None:
        assert next_status("pending", ModerationEvent.APPROVE) == RecipeStatus.APPROVED


class TestTransitionTable:
    def test_admin_decisions_only_apply_to_pending(self) -> None:
        assert source_statuses(ModerationEvent.APPROVE) == {RecipeStatus.PENDING}
        assert source_statuses(ModerationEvent.REJECT) == {RecipeStatus.PENDING}

    def test_deletion_decisions_only_apply_to_delete_pending(self) -> None:
        assert source_statuses(ModerationEvent.APPROVE_DELETION) == {RecipeStatus.DELETE_PENDING}
        assert source_statuses(ModerationEvent.REJECT_DELETION) == {RecipeStatus.DELETE_PENDING}

    def test_edit_is_allowed_from_every_status(self) -> None:
        assert source_statuses(ModerationEvent.EDIT) == set(RecipeStatus)

    def test_every_event_has_a_single_target(self) -> None:
        for event in ModerationEvent:
            targets = {target for (_, evt), target in TRANSITIONS.items() if evt == event}
            assert target_status(event) in targets
            assert len(targets) == 1
