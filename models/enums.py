from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """
    Closed set of authorization roles.
    Hierarchy levels live in the role catalog, not here.
    """

    customer = "customer"
    inventory_staff = "inventory_staff"
    marketing_staff = "marketing_staff"
    executive = "executive"
    admin = "admin"


# -----------------------------------------------------
# SECURITY CONTEXT
# -----------------------------------------------------
class SecurityContext(BaseStrEnum):
    """Feature area that triggered a role or permission check."""

    authentication = "authentication"
    authorization = "authorization"
    data_access = "data_access"
    admin_functions = "admin_functions"


# -----------------------------------------------------
# AUDIT EVENT TYPE
# -----------------------------------------------------
class AuditEventType(BaseStrEnum):
    role_query = "role_query"
    permission_check = "permission_check"
    minimum_role_check = "minimum_role_check"
    role_changed = "role_changed"


# -----------------------------------------------------
# AUDIT OUTCOME
# -----------------------------------------------------
class AuditOutcome(BaseStrEnum):
    granted = "granted"
    denied = "denied"
    error = "error"


# -----------------------------------------------------
# DECISION
# -----------------------------------------------------
class Decision(BaseStrEnum):
    """Result of a single permission evaluation."""

    allow = "allow"
    deny = "deny"


# -----------------------------------------------------
# FALLBACK ACTION
# -----------------------------------------------------
class FallbackAction(BaseStrEnum):
    """What a caller should do when a permission check does not allow."""

    redirect = "redirect"   # access denied, contact support
    retry = "retry"         # transient backend fault
    hide = "hide"           # programmer error, hide the gated element
