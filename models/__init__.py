# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    SecurityContext,
    AuditEventType,
    AuditOutcome,
    Decision,
    FallbackAction,
)

# -------------------------
# Role Models
# -------------------------
from .roles import (
    CachedRoleEntry,
    AuditEvent,
    PermissionResult,
    RoleCatalogDefinition,
    RoleRead,
    RoleUpdate,
    CatalogEntryRead,
)

__all__ = [
    # enums
    "Role",
    "SecurityContext",
    "AuditEventType",
    "AuditOutcome",
    "Decision",
    "FallbackAction",

    # roles
    "CachedRoleEntry",
    "AuditEvent",
    "PermissionResult",
    "RoleCatalogDefinition",
    "RoleRead",
    "RoleUpdate",
    "CatalogEntryRead",
]
