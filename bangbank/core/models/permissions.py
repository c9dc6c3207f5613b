"""
Role capabilities
Single place that decides what each role may do
"""

from enum import Enum
from typing import Union, FrozenSet

from core.models.entities import UserRole
from utils.exceptions import AuthorizationException

class Capability(Enum):
    MANAGE_USERS = 'manage_users'
    MANAGE_PRODUCTS = 'manage_products'
    REVIEW_APPLICATIONS = 'review_applications'
    VIEW_REPORTS = 'view_reports'
    MANAGE_SLOTS = 'manage_slots'
    MANAGE_CONSULTATIONS = 'manage_consultations'
    APPLY_PRODUCTS = 'apply_products'
    MOVE_FUNDS = 'move_funds'
    BOOK_CONSULTATIONS = 'book_consultations'
    EDIT_PROFILE = 'edit_profile'

_ADMIN_CAPABILITIES = frozenset({
    Capability.MANAGE_USERS,
    Capability.MANAGE_PRODUCTS,
    Capability.REVIEW_APPLICATIONS,
    Capability.VIEW_REPORTS,
    Capability.EDIT_PROFILE,
})

ROLE_CAPABILITIES = {
    UserRole.CUSTOMER: frozenset({
        Capability.APPLY_PRODUCTS,
        Capability.MOVE_FUNDS,
        Capability.BOOK_CONSULTATIONS,
        Capability.EDIT_PROFILE,
    }),
    UserRole.ADVISOR: frozenset({
        Capability.MANAGE_SLOTS,
        Capability.MANAGE_CONSULTATIONS,
        Capability.EDIT_PROFILE,
    }),
    UserRole.ADMIN: _ADMIN_CAPABILITIES,
    UserRole.SUPER_ADMIN: _ADMIN_CAPABILITIES,
}

# Roles each administrator may create, edit, view and delete
MANAGEABLE_ROLES = {
    UserRole.ADMIN: frozenset({UserRole.CUSTOMER, UserRole.ADVISOR}),
    UserRole.SUPER_ADMIN: frozenset({UserRole.CUSTOMER, UserRole.ADVISOR, UserRole.ADMIN}),
}


def to_role(role: Union[UserRole, str]) -> UserRole:
    """Coerce a role value (enum or stored string) into UserRole"""
    if isinstance(role, UserRole):
        return role
    return UserRole(str(role).lower())


def has_capability(role: Union[UserRole, str], capability: Capability) -> bool:
    """Check whether a role grants a capability"""
    try:
        return capability in ROLE_CAPABILITIES[to_role(role)]
    except ValueError:
        return False


def manageable_roles(actor_role: Union[UserRole, str]) -> FrozenSet[UserRole]:
    try:
        return MANAGEABLE_ROLES.get(to_role(actor_role), frozenset())
    except ValueError:
        return frozenset()


def can_manage(actor_role: Union[UserRole, str], target_role: Union[UserRole, str]) -> bool:
    """Whether an administrator may act on a user holding target_role"""
    try:
        return to_role(target_role) in manageable_roles(actor_role)
    except ValueError:
        return False


def require_capability(role: Union[UserRole, str], capability: Capability) -> None:
    """Raise AuthorizationException unless the role grants the capability"""
    if not has_capability(role, capability):
        raise AuthorizationException("You are not authorized to perform this action")
