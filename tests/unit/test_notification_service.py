from __future__ import annotations

import pytest
from sqlalchemy import select

from models.notification_models import Notification, NotificationType, UNREAD
from services.notification_service import (
    Decision,
    FanOutEvent,
    NotificationDispatch,
    NotificationService,
)
from services.identity_service import OrganizationMembership

from conftest import ADMIN_ID, AUTHOR_ID, LONER_ID, ORG_ID, SECOND_ADMIN_ID


class BrokenSession:
    """Session double whose commit always fails"""

    def __init__(self) -> None:
        self.added = []
        self.rolled_back = False

    def add_all(self, rows) -> None:
        self.added.extend(rows)

    async def commit(self) -> None:
        raise RuntimeError("database is locked")

    async def rollback(self) -> None:
        self.rolled_back = True


@pytest.fixture
def service() -> NotificationService:
    return NotificationService()


class TestResolveAdmins:
    async def test_returns_admins_of_first_organization(self, service, identity) -> None:
        admins = await service.resolve_admins(identity, AUTHOR_ID)
        assert admins == [ADMIN_ID, SECOND_ADMIN_ID]

    async def test_excludes_the_author(self, service, identity) -> None:
        admins = await service.resolve_admins(identity, ADMIN_ID)
        assert admins == [SECOND_ADMIN_ID]

    async def test_only_first_organization_counts(self, service, identity) -> None:
        identity.memberships[AUTHOR_ID].append(
            OrganizationMembership(organization_id="org_other", user_id=AUTHOR_ID, role="org:member")
        )
        identity.add_user("user_other_admin", organization_id="org_other", role="org:admin")

        admins = await service.resolve_admins(identity, AUTHOR_ID)
        assert "user_other_admin" not in admins

    async def test_author_without_organization(self, service, identity) -> None:
        assert await service.resolve_admins(identity, LONER_ID) == []

    async def test_lookup_failure_yields_no_admins(self, service, identity) -> None:
        identity.fail_members = True
        assert await service.resolve_admins(identity, AUTHOR_ID) == []

    async def test_unexpected_error_yields_no_admins(self, service, identity, monkeypatch) -> None:
        async def broken_members(organization_id, limit=100):
            raise KeyError("public_user_data")

        monkeypatch.setattr(identity, "get_organization_members", broken_members)
        assert await service.resolve_admins(identity, AUTHOR_ID) == []

    async def test_plain_admin_role_is_recognised(self, service, identity) -> None:
        identity.add_user("user_legacy_admin", organization_id=ORG_ID, role="admin")
        admins = await service.resolve_admins(identity, AUTHOR_ID)
        assert "user_legacy_admin" in admins


class TestFanOut:
    async def test_one_unread_notification_per_admin(self, service, identity, session) -> None:
        dispatch = await service.fan_out(session, identity, FanOutEvent.CREATED, 7, "Lentil soup", AUTHOR_ID)

        assert dispatch == NotificationDispatch(delivered=2)
        rows = (await session.execute(select(Notification).order_by(Notification.user_id))).scalars().all()
        assert [row.user_id for row in rows] == [ADMIN_ID, SECOND_ADMIN_ID]
        for row in rows:
            assert row.type == NotificationType.RECIPE_APPROVAL.value
            assert row.sender_id == AUTHOR_ID
            assert row.related_id == 7
            assert row.related_type == "recipe"
            assert row.read == UNREAD
            assert row.message == 'chef_ana submitted the recipe "Lentil soup" for review'

    async def test_no_admins_means_no_rows(self, service, identity, session) -> None:
        dispatch = await service.fan_out(session, identity, FanOutEvent.DELETED, 7, "Soup", LONER_ID)

        assert dispatch.ok
        assert dispatch.delivered == 0
        assert (await session.execute(select(Notification))).scalars().all() == []

    async def test_unknown_author_name_falls_back(self, service, identity, session) -> None:
        identity.fail_users = True
        await service.fan_out(session, identity, FanOutEvent.UPDATED, 3, "Soup", AUTHOR_ID)

        row = (await session.execute(select(Notification).limit(1))).scalar_one()
        assert row.type == NotificationType.RECIPE_UPDATE_PENDING.value
        assert row.message.startswith("A user edited the recipe")


class TestNotifyDecision:
    async def test_comment_is_appended(self, service, identity, session) -> None:
        dispatch = await service.notify_decision(
            session, identity, Decision.REJECTED, ADMIN_ID, AUTHOR_ID, 5, "Soup", "Too salty"
        )

        assert dispatch.delivered == 1
        row = (await session.execute(select(Notification))).scalar_one()
        assert row.user_id == AUTHOR_ID
        assert row.type == NotificationType.RECIPE_REJECTED.value
        assert row.message == 'Your recipe "Soup" has been rejected by admin_one: Too salty'

    async def test_rejected_deletion_is_reported_as_approval(self, service, identity, session) -> None:
        await service.notify_decision(
            session, identity, Decision.DELETION_REJECTED, ADMIN_ID, AUTHOR_ID, 5, "Soup"
        )

        row = (await session.execute(select(Notification))).scalar_one()
        assert row.type == NotificationType.RECIPE_APPROVED.value
        assert row.message.endswith("The recipe has been restored")

    async def test_insert_failure_is_reported_not_raised(self, service, identity) -> None:
        db = BrokenSession()
        dispatch = await service.notify_decision(
            db, identity, Decision.APPROVED, ADMIN_ID, AUTHOR_ID, 5, "Soup"
        )

        assert not dispatch.ok
        assert dispatch.delivered == 0
        assert "database is locked" in dispatch.error
        assert db.rolled_back


class TestNotifySocial:
    async def test_self_action_is_skipped(self, service, identity) -> None:
        db = BrokenSession()
        dispatch = await service.notify_social(
            db, identity, NotificationType.LIKE, AUTHOR_ID, AUTHOR_ID, "New like", "{sender} liked it"
        )
        assert dispatch == NotificationDispatch(delivered=0)
        assert db.added == []

    async def test_user_content_is_not_formatted(self, service, identity, session) -> None:
        await service.notify_social(
            session,
            identity,
            NotificationType.COMMENT,
            AUTHOR_ID,
            "user_ghost",
            "New comment",
            '{sender} commented on your recipe "{title}"',
            title="{sender} {0}",
        )

        row = (await session.execute(select(Notification))).scalar_one()
        assert row.message == 'Someone commented on your recipe "{sender} {0}"'
