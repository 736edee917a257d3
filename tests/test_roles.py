# tests/test_roles.py

"""
Tests for the role catalog: validation, lookups, strict role parsing.
"""

import json

import pytest

from core.errors import UnknownRole
from core.permissions import ROLE_HIERARCHY, ROLE_PERMISSIONS
from core.roles import RoleCatalog, is_well_formed_permission, load_role_catalog
from models.enums import Role


def test_default_catalog_covers_every_role(catalog):
    for role in Role:
        assert isinstance(catalog.level(role), int)
        assert catalog.permissions_for(role) is not None


def test_roles_ordered_by_level(catalog):
    assert catalog.roles() == [
        Role.customer,
        Role.inventory_staff,
        Role.marketing_staff,
        Role.executive,
        Role.admin,
    ]


def test_permissions_for_customer(catalog):
    perms = catalog.permissions_for(Role.customer)
    assert "orders:view" in perms
    assert "inventory:manage" not in perms


def test_is_valid_permission(catalog):
    assert catalog.is_valid_permission("analytics:view")
    assert catalog.is_valid_permission("inventory:manage")
    assert not catalog.is_valid_permission("analytics:veiw")
    assert not catalog.is_valid_permission("anything:whatever")


def test_ordered_permissions_preserve_declaration_order(catalog):
    assert list(catalog.ordered_permissions_for(Role.customer)) == ROLE_PERMISSIONS["customer"]


def test_customer_permissions_repeated_in_staff_roles(catalog):
    """Superset roles enumerate the customer permissions explicitly."""
    customer = catalog.permissions_for(Role.customer)
    for role in (Role.inventory_staff, Role.marketing_staff, Role.executive):
        assert customer <= catalog.permissions_for(role)


@pytest.mark.parametrize("raw,expected", [
    ("customer", Role.customer),
    ("inventory_staff", Role.inventory_staff),
    ("admin", Role.admin),
    (Role.executive, Role.executive),
])
def test_parse_role(catalog, raw, expected):
    assert catalog.parse_role(raw) == expected


@pytest.mark.parametrize("raw", ["manager", "staff", "Admin", "", 3, None])
def test_parse_role_rejects_unknown_values(catalog, raw):
    with pytest.raises(UnknownRole) as exc_info:
        catalog.parse_role(raw, user_id="user-1")
    assert exc_info.value.user_id == "user-1"


@pytest.mark.parametrize("permission,ok", [
    ("orders:view", True),
    ("users:manage_roles", True),
    ("orders", False),
    ("orders:view:all", False),
    ("Orders:View", False),
    (":view", False),
    ("", False),
    (None, False),
])
def test_is_well_formed_permission(permission, ok):
    assert is_well_formed_permission(permission) is ok


def test_catalog_rejects_missing_role():
    permissions = {k: v for k, v in ROLE_PERMISSIONS.items() if k != "executive"}
    with pytest.raises(ValueError, match="executive"):
        RoleCatalog(permissions, ROLE_HIERARCHY)


def test_catalog_rejects_unknown_role_key():
    permissions = dict(ROLE_PERMISSIONS, manager=["orders:view"])
    with pytest.raises(ValueError, match="manager"):
        RoleCatalog(permissions, ROLE_HIERARCHY)


def test_catalog_rejects_malformed_permission():
    permissions = dict(ROLE_PERMISSIONS, customer=["view_orders"])
    with pytest.raises(ValueError, match="view_orders"):
        RoleCatalog(permissions, ROLE_HIERARCHY)


def test_catalog_rejects_duplicate_levels():
    hierarchy = dict(ROLE_HIERARCHY, executive=ROLE_HIERARCHY["marketing_staff"])
    with pytest.raises(ValueError, match="unique"):
        RoleCatalog(ROLE_PERMISSIONS, hierarchy)


def test_load_role_catalog_default():
    catalog = load_role_catalog(None)
    assert catalog.level(Role.admin) == ROLE_HIERARCHY["admin"]


def test_load_role_catalog_from_json(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "hierarchy": {"customer": 10, "inventory_staff": 20, "marketing_staff": 30, "executive": 40, "admin": 50},
        "permissions": {
            "customer": ["orders:view"],
            "inventory_staff": ["orders:view", "inventory:manage"],
            "marketing_staff": ["orders:view"],
            "executive": ["orders:view", "reports:view"],
            "admin": [],
        },
    }))

    catalog = load_role_catalog(str(path))

    assert catalog.level(Role.executive) == 40
    assert catalog.all_permissions() == {"orders:view", "inventory:manage", "reports:view"}


def test_load_role_catalog_bad_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text("{not json")

    with pytest.raises(ValueError):
        load_role_catalog(str(path))


def test_load_role_catalog_missing_file(tmp_path):
    with pytest.raises(ValueError):
        load_role_catalog(str(tmp_path / "missing.json"))
