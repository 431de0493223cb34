# hall_booking/permissions.py
"""
Role model and the single authorization predicate used everywhere.

The rules are a fixed table keyed on role. Institution scope is checked
here too: apart from super_admin, an institution-scoped role may only act
on targets inside its own institution.
"""
import enum
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

from hall_booking.errors import AuthorizationError


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    PRINCIPAL = "principal"
    DEPARTMENT_USER = "department_user"
    PRESS_RELEASE_TEAM = "press_release_team"
    DESIGNING_TEAM = "designing_team"
    PHOTOGRAPHY_TEAM = "photography_team"


class Action(str, enum.Enum):
    CREATE_BOOKING = "create-booking"
    APPROVE_BOOKING = "approve-booking"
    EDIT_BOOKING = "edit-booking"
    DELETE_BOOKING = "delete-booking"
    MANAGE_HALLS = "manage-halls"
    MANAGE_DEPARTMENTS = "manage-departments"
    MANAGE_INSTITUTIONS = "manage-institutions"
    MANAGE_USERS = "manage-users"
    VIEW_SETTINGS = "view-settings"
    MANAGE_SETTINGS = "manage-settings"
    UPLOAD_FINAL_DESIGN = "upload-final-design"
    UPDATE_PHOTOGRAPHY_LINK = "update-photography-link"
    SUBMIT_PRESS_RELEASE = "submit-press-release"
    VIEW_OWN_PRESS_RELEASES = "view-own-press-releases"
    REVIEW_PRESS_RELEASE = "review-press-release"
    MODERATE_PRESS_RELEASE = "moderate-press-release"


# Roles that book halls as "blocking": their bookings are approved on creation
AUTO_APPROVE_ROLES = frozenset({Role.SUPER_ADMIN, Role.PRINCIPAL})

# Service teams work on approved events of every institution
SERVICE_TEAM_ROLES = frozenset({Role.PRESS_RELEASE_TEAM, Role.DESIGNING_TEAM, Role.PHOTOGRAPHY_TEAM})

# Default target of can_perform: no concrete record, only the role table applies
ANY_TARGET = object()

_ROLE_ACTIONS: Dict[Role, FrozenSet[Action]] = {
    Role.SUPER_ADMIN: frozenset(Action),
    Role.PRINCIPAL: frozenset({
        Action.CREATE_BOOKING,
        Action.APPROVE_BOOKING,
        Action.EDIT_BOOKING,
        Action.DELETE_BOOKING,
        Action.VIEW_SETTINGS,
        Action.MODERATE_PRESS_RELEASE,
    }),
    Role.DEPARTMENT_USER: frozenset({
        Action.CREATE_BOOKING,
        Action.SUBMIT_PRESS_RELEASE,
        Action.VIEW_OWN_PRESS_RELEASES,
    }),
    Role.PRESS_RELEASE_TEAM: frozenset({Action.REVIEW_PRESS_RELEASE}),
    Role.DESIGNING_TEAM: frozenset({Action.UPLOAD_FINAL_DESIGN}),
    Role.PHOTOGRAPHY_TEAM: frozenset({Action.UPDATE_PHOTOGRAPHY_LINK}),
}


@dataclass(frozen=True)
class Actor:
    """The authenticated identity, fixed for the lifetime of a request."""

    id: str
    role: Role
    institution_id: Optional[str] = None
    department_id: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "Actor":
        institution_id = user.institution_id
        if institution_id is None and user.department is not None:
            institution_id = user.department.institution_id
        return cls(
            id=user.id,
            role=Role(user.role),
            institution_id=institution_id,
            department_id=user.department_id,
            email=user.email,
        )

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @property
    def auto_approves(self) -> bool:
        return self.role in AUTO_APPROVE_ROLES


def can_perform(actor: Actor, action: Action, target_institution_id: Any = ANY_TARGET) -> bool:
    """
    Return True when ``actor`` may perform ``action``.

    ``target_institution_id`` is the institution owning a concrete target
    (the hall of a booking, the department of a press release...).
    Institution-scoped roles must belong to it. A target that belongs to no
    institution (``None``) is out of scope for them, and so is every target
    for an actor with no known institution. Leave it out to check the role
    table alone.
    """
    if action not in _ROLE_ACTIONS.get(actor.role, frozenset()):
        return False
    if actor.is_super_admin or actor.role in SERVICE_TEAM_ROLES:
        return True
    if target_institution_id is ANY_TARGET:
        return True
    return actor.institution_id is not None and actor.institution_id == target_institution_id


def require(actor: Actor, action: Action, target_institution_id: Any = ANY_TARGET) -> None:
    if not can_perform(actor, action, target_institution_id):
        raise AuthorizationError(
            f"Role '{actor.role.value}' may not perform '{action.value}' here",
            details={"action": action.value, "role": actor.role.value},
        )
