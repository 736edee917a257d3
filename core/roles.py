# core/roles.py

"""
Role catalog: the static table mapping each role to its permission set
and hierarchy level.

Built once at process start (from core.permissions or a JSON file) and
treated as immutable afterwards.
"""

import json
import re
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from core.errors import UnknownRole
from core.logging_config import logger
from core.permissions import ROLE_PERMISSIONS, ROLE_HIERARCHY
from models.enums import Role
from models.roles import RoleCatalogDefinition

PERMISSION_PATTERN = re.compile(r"^[a-z][a-z0-9_]*:[a-z][a-z0-9_]*$")

RoleKey = Union[Role, str]


def is_well_formed_permission(permission: object) -> bool:
    """True if `permission` has the `resource:action` shape."""
    return isinstance(permission, str) and PERMISSION_PATTERN.match(permission) is not None


def _coerce_role(key: RoleKey) -> Role:
    try:
        return Role(key)
    except ValueError:
        raise ValueError(f"Role catalog references unknown role: {key!r}")


class RoleCatalog:
    """
    Validated role → permissions / hierarchy table.

    Invariants checked at construction:
      - every Role has a permission entry and a level
      - levels are unique integers (the hierarchy is a total order)
      - every permission is `resource:action`
    """

    def __init__(
        self,
        permissions: Mapping[RoleKey, Iterable[str]],
        hierarchy: Mapping[RoleKey, int],
    ):
        self._permissions: Dict[Role, Tuple[str, ...]] = {}
        self._permission_sets: Dict[Role, FrozenSet[str]] = {}
        self._levels: Dict[Role, int] = {}

        for key, perms in permissions.items():
            role = _coerce_role(key)
            ordered: List[str] = []
            for perm in perms:
                if not is_well_formed_permission(perm):
                    raise ValueError(
                        f"Invalid permission {perm!r} for role '{role}': expected 'resource:action'"
                    )
                if perm not in ordered:
                    ordered.append(perm)
            self._permissions[role] = tuple(ordered)
            self._permission_sets[role] = frozenset(ordered)

        for key, level in hierarchy.items():
            role = _coerce_role(key)
            if isinstance(level, bool) or not isinstance(level, int):
                raise ValueError(f"Hierarchy level for role '{role}' must be an integer")
            self._levels[role] = level

        missing_perms = [r.value for r in Role if r not in self._permissions]
        missing_levels = [r.value for r in Role if r not in self._levels]
        if missing_perms:
            raise ValueError(f"Role catalog has no permission entry for: {', '.join(missing_perms)}")
        if missing_levels:
            raise ValueError(f"Role catalog has no hierarchy level for: {', '.join(missing_levels)}")

        if len(set(self._levels.values())) != len(self._levels):
            raise ValueError("Role hierarchy levels must be unique")

        self._all_permissions: FrozenSet[str] = frozenset().union(*self._permission_sets.values())

    # -----------------------------------------------------
    # Lookups
    # -----------------------------------------------------
    def permissions_for(self, role: Role) -> FrozenSet[str]:
        return self._permission_sets[role]

    def ordered_permissions_for(self, role: Role) -> Tuple[str, ...]:
        return self._permissions[role]

    def level(self, role: Role) -> int:
        return self._levels[role]

    def is_valid_permission(self, permission: str) -> bool:
        return permission in self._all_permissions

    def all_permissions(self) -> FrozenSet[str]:
        return self._all_permissions

    def roles(self) -> List[Role]:
        """All roles, lowest level first."""
        return sorted(self._levels, key=self._levels.__getitem__)

    def parse_role(self, raw: object, user_id: Optional[str] = None) -> Role:
        """
        Strict parse of a stored role value.
        Legacy or unknown strings are an error, never mapped to a default.
        """
        if isinstance(raw, Role):
            return raw
        if isinstance(raw, str):
            try:
                return Role(raw)
            except ValueError:
                pass
        raise UnknownRole(
            f"Unknown role {raw!r} for user {user_id}",
            user_id=user_id,
            raw_role=str(raw),
        )

    # -----------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------
    @classmethod
    def default(cls) -> "RoleCatalog":
        return cls(ROLE_PERMISSIONS, ROLE_HIERARCHY)

    @classmethod
    def from_definition(cls, definition: RoleCatalogDefinition) -> "RoleCatalog":
        return cls(definition.permissions, definition.hierarchy)


def load_role_catalog(path: Optional[str] = None) -> RoleCatalog:
    """
    Load the role catalog from a JSON file, or the built-in catalog when
    no path is given. Raises ValueError for any invalid catalog.
    """
    if not path:
        logger.info("Using built-in role catalog")
        return RoleCatalog.default()

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        definition = RoleCatalogDefinition.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Could not load role catalog from {path}: {e}") from e

    catalog = RoleCatalog.from_definition(definition)
    logger.info(f"Loaded role catalog from {path} ({len(catalog.all_permissions())} permissions)")
    return catalog
