# core/permission_evaluator.py

"""
Pure allow/deny decisions for a resolved role. No I/O, no auditing.
"""

from core.errors import InvalidPermission
from core.roles import RoleCatalog, is_well_formed_permission
from models.enums import Decision, Role


class PermissionEvaluator:

    def __init__(self, catalog: RoleCatalog):
        self.catalog = catalog

    def is_admin_override(self, role: Role) -> bool:
        """Admin satisfies every permission query without catalog enumeration."""
        return role == Role.admin

    def check_format(self, permission: str):
        if not is_well_formed_permission(permission):
            raise InvalidPermission(
                f"Permission {permission!r} is not of the form 'resource:action'",
                permission=str(permission),
            )

    def validate_permission(self, permission: str):
        """Raise InvalidPermission for strings outside the catalog's known set."""
        self.check_format(permission)
        if not self.catalog.is_valid_permission(permission):
            raise InvalidPermission(
                f"Permission {permission!r} is not defined in the role catalog",
                permission=permission,
            )

    def evaluate(self, role: Role, permission: str) -> Decision:
        """
        Admin → allow (explicit override, checked before catalog membership).
        Otherwise allow iff the catalog grants `permission` to `role`.
        """
        self.check_format(permission)

        if self.is_admin_override(role):
            return Decision.allow

        self.validate_permission(permission)

        if permission in self.catalog.permissions_for(role):
            return Decision.allow
        return Decision.deny

    def meets_minimum_role(self, role: Role, required_role: Role) -> bool:
        return self.catalog.level(role) >= self.catalog.level(required_role)

    def has_higher_privileges(self, role: Role, other: Role) -> bool:
        return self.catalog.level(role) > self.catalog.level(other)
