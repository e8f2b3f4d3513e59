"""Authorization service - who may act on a child, and what needs approval."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from famtrack.models import ActionType, ParentAction, ParentalControl
from famtrack.repositories import FamilyRepository, ParentalControlRepository
from famtrack.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_GUARDIAN_ROLES = ("Parent", "Guardian")

# Whether an action is reserved to the child's direct parent. Every
# ParentAction has an entry; anything not reserved only needs parent authority.
DIRECT_PARENT_ACTIONS: dict[ParentAction, bool] = {
    ParentAction.MANAGE_CONTROLS: False,
    ParentAction.VIEW_ACTIVITY: False,
    ParentAction.RESPOND_TO_REQUEST: False,
    ParentAction.DELETE_CHILD: True,
    ParentAction.VIEW_SENSITIVE_DATA: True,
}

# Approval policy: which control setting decides whether a child's action
# needs a parent's approval.
APPROVAL_POLICY: dict[ActionType, Callable[[ParentalControl], bool]] = {
    ActionType.SPEND_POINTS: lambda control: control.point_spending_approval_required,
    ActionType.CREATE_TASK: lambda control: control.task_approval_required,
    ActionType.MODIFY_TASK: lambda control: control.task_approval_required,
    ActionType.DELETE_TASK: lambda control: False,
    ActionType.INVITE_FAMILY_MEMBER: lambda control: not control.can_invite_others,
    ActionType.CHANGE_PROFILE: lambda control: True,
    ActionType.CHAT_WITH_OTHERS: lambda control: control.chat_monitoring_enabled,
    ActionType.JOIN_FAMILY: lambda control: False,
}


def _as_enum(enum_cls, value):
    """Member of *enum_cls* for *value*, or None for values outside the enum."""
    try:
        return enum_cls(value)
    except ValueError:
        return None


class AuthorizationService:
    """Answers parent-authority and approval-policy questions.

    A user has parent authority over a child when they own the child's
    control record, or when both belong to a family in which the user holds
    one of the guardian roles.
    """

    def __init__(
        self,
        control_repository: ParentalControlRepository,
        family_repository: FamilyRepository,
        guardian_roles: Iterable[str] = DEFAULT_GUARDIAN_ROLES,
    ):
        """Initialize the authorization service.

        Args:
            control_repository: Parental control storage
            family_repository: Family membership and role lookups
            guardian_roles: Family role names that carry parent authority
        """
        self.controls = control_repository
        self.families = family_repository
        self.guardian_roles = frozenset(guardian_roles)

    async def is_direct_parent(self, parent_user_id: str, child_user_id: str) -> bool:
        return await self.controls.is_direct_parent(parent_user_id, child_user_id)

    async def has_parent_permission(self, parent_user_id: str, child_user_id: str) -> bool:
        """Whether the user may act as a parent for the child."""
        if await self.controls.is_direct_parent(parent_user_id, child_user_id):
            return True

        parent_families = set(await self.families.list_family_ids_for_user(parent_user_id))
        for family_id in await self.families.list_family_ids_for_user(child_user_id):
            if family_id not in parent_families:
                continue
            role = await self.families.get_role(family_id, parent_user_id)
            if role is not None and role.name in self.guardian_roles:
                return True
        return False

    async def validate_parent_action(
        self, parent_user_id: str, child_user_id: str, action: ParentAction | str
    ) -> bool:
        """Whether the user may perform *action* on the child.

        Actions outside ParentAction only need parent authority.
        """
        if not await self.has_parent_permission(parent_user_id, child_user_id):
            return False
        if DIRECT_PARENT_ACTIONS.get(_as_enum(ParentAction, action), False):
            allowed = await self.controls.is_direct_parent(parent_user_id, child_user_id)
            if not allowed:
                logger.info(
                    "%s on child %s refused for non-direct parent %s",
                    action, child_user_id, parent_user_id,
                )
            return allowed
        return True

    async def requires_approval(self, child_user_id: str, action_type: ActionType | str) -> bool:
        """Whether the child must ask a parent before performing *action_type*.

        Children without a control record, and actions outside ActionType,
        never need approval.
        """
        control = await self.controls.get_by_child(child_user_id)
        if control is None:
            return False
        rule = APPROVAL_POLICY.get(_as_enum(ActionType, action_type))
        return rule(control) if rule is not None else False
