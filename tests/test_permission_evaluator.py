# tests/test_permission_evaluator.py

"""
Tests for pure permission decisions and hierarchy comparisons.
"""

import pytest

from core.errors import InvalidPermission
from core.permission_evaluator import PermissionEvaluator
from models.enums import Decision, Role


@pytest.fixture
def evaluator(catalog):
    return PermissionEvaluator(catalog)


def test_allow_iff_permission_in_catalog(evaluator, catalog):
    """For every non-admin role and catalog permission: allow iff granted."""
    for role in Role:
        if role == Role.admin:
            continue
        granted = catalog.permissions_for(role)
        for permission in catalog.all_permissions():
            expected = Decision.allow if permission in granted else Decision.deny
            assert evaluator.evaluate(role, permission) == expected


def test_customer_can_view_orders(evaluator):
    assert evaluator.evaluate(Role.customer, "orders:view") == Decision.allow


def test_customer_cannot_manage_inventory(evaluator):
    assert evaluator.evaluate(Role.customer, "inventory:manage") == Decision.deny


def test_admin_allowed_everything(evaluator, catalog):
    for permission in catalog.all_permissions():
        assert evaluator.evaluate(Role.admin, permission) == Decision.allow


def test_admin_allowed_outside_catalog(evaluator):
    assert evaluator.evaluate(Role.admin, "anything:whatever") == Decision.allow
    assert evaluator.is_admin_override(Role.admin)
    assert not evaluator.is_admin_override(Role.executive)


def test_unknown_permission_rejected_for_non_admin(evaluator):
    with pytest.raises(InvalidPermission) as exc_info:
        evaluator.evaluate(Role.executive, "analytics:veiw")
    assert exc_info.value.permission == "analytics:veiw"


@pytest.mark.parametrize("role", list(Role))
def test_malformed_permission_rejected_for_every_role(evaluator, role):
    with pytest.raises(InvalidPermission):
        evaluator.evaluate(role, "view_orders")


def test_meets_minimum_role_is_monotonic(evaluator, catalog):
    roles = catalog.roles()
    for i, role in enumerate(roles):
        for j, required in enumerate(roles):
            assert evaluator.meets_minimum_role(role, required) is (i >= j)


def test_has_higher_privileges(evaluator):
    assert evaluator.has_higher_privileges(Role.admin, Role.executive)
    assert not evaluator.has_higher_privileges(Role.customer, Role.customer)
    assert not evaluator.has_higher_privileges(Role.inventory_staff, Role.marketing_staff)
