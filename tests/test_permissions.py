import pytest

from core.models.entities import UserRole
from core.models.permissions import (
    Capability, can_manage, has_capability, manageable_roles, require_capability, to_role
)
from utils.exceptions import AuthorizationException


class TestCapabilities:
    @pytest.mark.parametrize("role,capability,expected", [
        (UserRole.CUSTOMER, Capability.MOVE_FUNDS, True),
        (UserRole.CUSTOMER, Capability.REVIEW_APPLICATIONS, False),
        (UserRole.ADVISOR, Capability.MANAGE_SLOTS, True),
        (UserRole.ADVISOR, Capability.BOOK_CONSULTATIONS, False),
        (UserRole.ADMIN, Capability.VIEW_REPORTS, True),
        (UserRole.ADMIN, Capability.MOVE_FUNDS, False),
        (UserRole.SUPER_ADMIN, Capability.MANAGE_USERS, True),
    ])
    def test_role_matrix(self, role, capability, expected):
        assert has_capability(role, capability) is expected

    def test_stored_string_roles(self):
        assert has_capability('advisor', Capability.MANAGE_CONSULTATIONS)
        assert has_capability('ADMIN', Capability.MANAGE_PRODUCTS)

    def test_unknown_role_has_nothing(self):
        assert not has_capability('auditor', Capability.EDIT_PROFILE)

    def test_every_role_edits_profile(self):
        assert all(has_capability(role, Capability.EDIT_PROFILE) for role in UserRole)

    def test_require_capability(self):
        require_capability(UserRole.ADMIN, Capability.REVIEW_APPLICATIONS)
        with pytest.raises(AuthorizationException):
            require_capability(UserRole.CUSTOMER, Capability.REVIEW_APPLICATIONS)


class TestUserManagement:
    def test_admin_reach(self):
        assert manageable_roles(UserRole.ADMIN) == {UserRole.CUSTOMER, UserRole.ADVISOR}

    def test_super_admin_reach(self):
        assert can_manage(UserRole.SUPER_ADMIN, UserRole.ADMIN)
        assert not can_manage(UserRole.SUPER_ADMIN, UserRole.SUPER_ADMIN)

    def test_non_admins_manage_nobody(self):
        assert manageable_roles(UserRole.CUSTOMER) == frozenset()
        assert not can_manage(UserRole.ADVISOR, UserRole.CUSTOMER)

    def test_bad_target_role(self):
        assert not can_manage(UserRole.ADMIN, 'wizard')

    def test_to_role(self):
        assert to_role('super_admin') is UserRole.SUPER_ADMIN
        assert to_role(UserRole.CUSTOMER) is UserRole.CUSTOMER
        with pytest.raises(ValueError):
            to_role('wizard')
