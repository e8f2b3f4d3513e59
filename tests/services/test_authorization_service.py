"""Tests for AuthorizationService."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from famtrack.models import (
    ActionType,
    FamilyRole,
    ParentAction,
    ParentalControl,
    ParentalControlCreate,
)
from famtrack.repositories import FamilyRepository, ParentalControlRepository
from famtrack.services.authorization_service import (
    APPROVAL_POLICY,
    DIRECT_PARENT_ACTIONS,
    AuthorizationService,
)

NOW = datetime(2024, 3, 6, 10, 0, tzinfo=UTC)


def _control(**settings) -> ParentalControl:
    return ParentalControl(
        id="pc-1",
        parent_user_id="parent",
        child_user_id="child",
        created_at=NOW,
        updated_at=NOW,
        **settings,
    )


@pytest.fixture
def mock_controls():
    return AsyncMock(spec=ParentalControlRepository)


@pytest.fixture
def mock_families():
    families = AsyncMock(spec=FamilyRepository)
    families.list_family_ids_for_user.return_value = []
    return families


@pytest.fixture
def service(mock_controls, mock_families):
    return AuthorizationService(mock_controls, mock_families)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def test_tables_cover_every_enum_member():
    assert set(APPROVAL_POLICY) == set(ActionType)
    assert set(DIRECT_PARENT_ACTIONS) == set(ParentAction)


# ---------------------------------------------------------------------------
# has_parent_permission
# ---------------------------------------------------------------------------


class TestHasParentPermission:
    @pytest.mark.asyncio
    async def test_direct_parent(self, service, mock_controls, mock_families):
        mock_controls.is_direct_parent.return_value = True

        assert await service.has_parent_permission("parent", "child") is True
        mock_families.list_family_ids_for_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_guardian_role_in_shared_family(self, service, mock_controls, mock_families):
        mock_controls.is_direct_parent.return_value = False
        mock_families.list_family_ids_for_user.side_effect = lambda user: {
            "aunt": ["f1", "f2"],
            "child": ["f2"],
        }[user]
        mock_families.get_role.return_value = FamilyRole(id="r", name="Guardian")

        assert await service.has_parent_permission("aunt", "child") is True
        mock_families.get_role.assert_awaited_once_with("f2", "aunt")

    @pytest.mark.asyncio
    async def test_non_guardian_role_denied(self, service, mock_controls, mock_families):
        mock_controls.is_direct_parent.return_value = False
        mock_families.list_family_ids_for_user.return_value = ["f1"]
        mock_families.get_role.return_value = FamilyRole(id="r", name="Member")

        assert await service.has_parent_permission("cousin", "child") is False

    @pytest.mark.asyncio
    async def test_no_shared_family(self, service, mock_controls, mock_families):
        mock_controls.is_direct_parent.return_value = False
        mock_families.list_family_ids_for_user.side_effect = lambda user: {
            "stranger": ["f1"],
            "child": ["f2"],
        }[user]

        assert await service.has_parent_permission("stranger", "child") is False
        mock_families.get_role.assert_not_called()

    @pytest.mark.asyncio
    async def test_guardian_roles_configurable(self, mock_controls, mock_families):
        service = AuthorizationService(mock_controls, mock_families, guardian_roles=["Nanny"])
        mock_controls.is_direct_parent.return_value = False
        mock_families.list_family_ids_for_user.return_value = ["f1"]
        mock_families.get_role.return_value = FamilyRole(id="r", name="Parent")

        assert await service.has_parent_permission("p", "child") is False


# ---------------------------------------------------------------------------
# validate_parent_action
# ---------------------------------------------------------------------------


class TestValidateParentAction:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "action", [ParentAction.DELETE_CHILD, ParentAction.VIEW_SENSITIVE_DATA]
    )
    async def test_reserved_actions_need_direct_parent(
        self, service, mock_controls, mock_families, action
    ):
        # guardian through a family, but not the direct parent
        mock_controls.is_direct_parent.return_value = False
        mock_families.list_family_ids_for_user.return_value = ["f1"]
        mock_families.get_role.return_value = FamilyRole(id="r", name="Parent")

        assert await service.validate_parent_action("guardian", "child", action) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "action",
        [ParentAction.MANAGE_CONTROLS, ParentAction.VIEW_ACTIVITY, ParentAction.RESPOND_TO_REQUEST],
    )
    async def test_other_actions_need_only_authority(
        self, service, mock_controls, mock_families, action
    ):
        mock_controls.is_direct_parent.return_value = False
        mock_families.list_family_ids_for_user.return_value = ["f1"]
        mock_families.get_role.return_value = FamilyRole(id="r", name="Parent")

        assert await service.validate_parent_action("guardian", "child", action) is True

    @pytest.mark.asyncio
    async def test_no_authority_denies_everything(self, service, mock_controls):
        mock_controls.is_direct_parent.return_value = False

        for action in ParentAction:
            assert await service.validate_parent_action("x", "child", action) is False

    @pytest.mark.asyncio
    async def test_direct_parent_may_delete(self, service, mock_controls):
        mock_controls.is_direct_parent.return_value = True

        assert await service.validate_parent_action("parent", "child", ParentAction.DELETE_CHILD) is True

    @pytest.mark.asyncio
    async def test_unknown_action_needs_only_authority(self, service, mock_controls, mock_families):
        mock_controls.is_direct_parent.return_value = False
        mock_families.list_family_ids_for_user.return_value = ["f1"]
        mock_families.get_role.return_value = FamilyRole(id="r", name="Guardian")

        assert await service.validate_parent_action("guardian", "child", "ViewReports") is True

    @pytest.mark.asyncio
    async def test_unknown_action_without_authority(self, service, mock_controls):
        mock_controls.is_direct_parent.return_value = False

        assert await service.validate_parent_action("x", "child", "ViewReports") is False

    @pytest.mark.asyncio
    async def test_action_given_as_plain_string(self, service, mock_controls, mock_families):
        mock_controls.is_direct_parent.return_value = False
        mock_families.list_family_ids_for_user.return_value = ["f1"]
        mock_families.get_role.return_value = FamilyRole(id="r", name="Parent")

        assert await service.validate_parent_action("guardian", "child", "DeleteChild") is False


# ---------------------------------------------------------------------------
# requires_approval
# ---------------------------------------------------------------------------


class TestRequiresApproval:
    @pytest.mark.asyncio
    async def test_no_control_never_requires_approval(self, service, mock_controls):
        mock_controls.get_by_child.return_value = None

        for action in ActionType:
            assert await service.requires_approval("child", action) is False

    @pytest.mark.asyncio
    async def test_policy_follows_settings(self, service, mock_controls):
        mock_controls.get_by_child.return_value = _control(
            point_spending_approval_required=False,
            task_approval_required=True,
            can_invite_others=True,
            chat_monitoring_enabled=False,
        )

        assert await service.requires_approval("child", ActionType.SPEND_POINTS) is False
        assert await service.requires_approval("child", ActionType.CREATE_TASK) is True
        assert await service.requires_approval("child", ActionType.MODIFY_TASK) is True
        assert await service.requires_approval("child", ActionType.INVITE_FAMILY_MEMBER) is False
        assert await service.requires_approval("child", ActionType.CHAT_WITH_OTHERS) is False
        assert await service.requires_approval("child", ActionType.DELETE_TASK) is False
        assert await service.requires_approval("child", ActionType.JOIN_FAMILY) is False

    @pytest.mark.asyncio
    async def test_change_profile_always_requires_approval(self, service, mock_controls):
        mock_controls.get_by_child.return_value = _control(
            point_spending_approval_required=False,
            task_approval_required=False,
            can_invite_others=True,
            chat_monitoring_enabled=False,
        )

        assert await service.requires_approval("child", ActionType.CHANGE_PROFILE) is True

    @pytest.mark.asyncio
    async def test_defaults(self, service, mock_controls):
        mock_controls.get_by_child.return_value = _control()

        assert await service.requires_approval("child", ActionType.SPEND_POINTS) is True
        assert await service.requires_approval("child", ActionType.CREATE_TASK) is False
        assert await service.requires_approval("child", ActionType.INVITE_FAMILY_MEMBER) is True
        assert await service.requires_approval("child", ActionType.CHAT_WITH_OTHERS) is True

    @pytest.mark.asyncio
    async def test_unknown_action_never_requires_approval(self, service, mock_controls):
        mock_controls.get_by_child.return_value = _control()

        assert await service.requires_approval("child", "ViewReports") is False
        assert await service.requires_approval("child", "ChangeProfile") is True


# ---------------------------------------------------------------------------
# Against the real store
# ---------------------------------------------------------------------------


class TestWithStore:
    @pytest.mark.asyncio
    async def test_family_guardian_and_direct_parent(self, context, users, make_family, join_family):
        family_id = make_family("Smiths", users["parent"], owner_role="Parent")
        join_family(family_id, users["child"], "Child")
        join_family(family_id, users["other"], "Guardian")
        await context.control_repository.create(
            users["parent"], ParentalControlCreate(child_user_id=users["child"])
        )
        auth = context.authorization_service

        assert await auth.has_parent_permission(users["parent"], users["child"]) is True
        assert await auth.has_parent_permission(users["other"], users["child"]) is True
        assert await auth.has_parent_permission(users["teen"], users["child"]) is False
        assert await auth.is_direct_parent(users["other"], users["child"]) is False
        assert (
            await auth.validate_parent_action(users["other"], users["child"], ParentAction.DELETE_CHILD)
            is False
        )
        assert (
            await auth.validate_parent_action(users["parent"], users["child"], ParentAction.DELETE_CHILD)
            is True
        )
