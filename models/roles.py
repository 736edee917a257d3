# models/roles.py

from typing import Dict, List, Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from models.enums import Role, SecurityContext, AuditEventType, AuditOutcome, FallbackAction


# ===============================================================
# CACHE ENTRY
# ===============================================================

class CachedRoleEntry(BaseModel):
    """
    One resolved role, owned by the permission cache.
    Replaced on refresh, never mutated.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Role
    fetched_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


# ===============================================================
# AUDIT EVENT
# ===============================================================

class AuditEvent(BaseModel):
    """
    Append-only record of one role/permission decision or role mutation.
    """
    model_config = ConfigDict(frozen=True)

    event_type: AuditEventType
    user_id: str
    query: str                              # permission, required role, or "role"
    outcome: AuditOutcome
    timestamp: datetime
    context: SecurityContext

    role: Optional[Role] = None
    admin_override: bool = False
    error_code: Optional[str] = None

    # role_changed only
    actor_id: Optional[str] = None
    old_role: Optional[Role] = None

    metadata: Dict[str, Any] = Field(default_factory=dict)


# ===============================================================
# DETAILED PERMISSION RESULT
# ===============================================================

class PermissionResult(BaseModel):
    """
    Non-raising permission answer for gating components that need
    to tell "denied" apart from "cannot determine access".
    """
    allowed: bool
    permission: str
    role: Optional[Role] = None
    reason: Optional[str] = None
    error_code: Optional[str] = None
    retryable: bool = False
    fallback_action: Optional[FallbackAction] = None


# ===============================================================
# CATALOG DEFINITION (JSON file schema)
# ===============================================================

class RoleCatalogDefinition(BaseModel):
    """
    Example:
        {
          "hierarchy": {"customer": 1, "admin": 5},
          "permissions": {"customer": ["orders:view"], "admin": []}
        }
    """
    hierarchy: Dict[str, int]
    permissions: Dict[str, List[str]]


# ===============================================================
# API RESPONSES
# ===============================================================

class RoleRead(BaseModel):
    user_id: str
    role: Role
    level: int
    permissions: List[str]


class RoleUpdate(BaseModel):
    role: Role


class CatalogEntryRead(BaseModel):
    role: Role
    level: int
    permissions: List[str]
