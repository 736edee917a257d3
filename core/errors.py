# core/errors.py

from typing import Optional
from fastapi import HTTPException


# ============================================================
# Role resolution error taxonomy
# ============================================================

class RoleResolutionError(Exception):
    """
    Base class for every failure the role engine surfaces.
    Never converted into a default role by the engine itself.
    """

    code = "ROLE_RESOLUTION_ERROR"
    retryable = False
    user_message = "Access denied, please contact support"

    def __init__(self, message: str, user_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.user_id = user_id


class RoleNotFound(RoleResolutionError):
    """No role on record for the user. Treat as unauthenticated / guest."""

    code = "ROLE_NOT_FOUND"


class UnknownRole(RoleResolutionError):
    """Stored role string is not in the catalog (configuration or migration bug)."""

    code = "UNKNOWN_ROLE"

    def __init__(self, message: str, user_id: Optional[str] = None, raw_role: Optional[str] = None):
        super().__init__(message, user_id=user_id)
        self.raw_role = raw_role


class StoreUnavailable(RoleResolutionError):
    """Transient user store fault or lookup timeout. Retryable by the caller."""

    code = "STORE_UNAVAILABLE"
    retryable = True
    user_message = "Temporarily unable to verify access, please try again"


class InvalidPermission(RoleResolutionError):
    """Caller passed a permission string outside the catalog. Programmer error."""

    code = "INVALID_PERMISSION"
    user_message = "Invalid permission requested"

    def __init__(self, message: str, permission: Optional[str] = None, user_id: Optional[str] = None):
        super().__init__(message, user_id=user_id)
        self.permission = permission


# ============================================================
# Supabase error text
# ============================================================

def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: PostgREST / GoTrue errors carry a message attribute
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if error.args:
        return str(error.args[0])

    # Case 3: plain string fallback
    return str(error) or error.__class__.__name__


# ============================================================
# HTTP mapping
# ============================================================

def role_error_to_http(error: RoleResolutionError) -> HTTPException:
    """
    Map a role engine failure to an HTTPException.
    Returns (doesn't raise) so caller can customize or re-raise.

    RoleNotFound / UnknownRole → 403 (deny, contact support)
    StoreUnavailable           → 503 (retry)
    InvalidPermission          → 500 (bug at the call site)
    """
    from core.logging_config import logger

    if isinstance(error, StoreUnavailable):
        return HTTPException(
            status_code=503,
            detail=error.user_message,
            headers={"Retry-After": "1"},
        )

    if isinstance(error, InvalidPermission):
        logger.error(f"Invalid permission requested: {error.message}")
        return HTTPException(status_code=500, detail=error.user_message)

    return HTTPException(status_code=403, detail=error.user_message)
