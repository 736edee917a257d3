from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from core.errors import RoleResolutionError, role_error_to_http
from core.role_service import UnifiedRoleService
from core.supabase_client import get_supabase_client
from models.enums import Role, SecurityContext


bearer_scheme = HTTPBearer()


# ============================================================
# Role service (constructed once in create_app)
# ============================================================
def get_role_service(request: Request) -> UnifiedRoleService:
    service = getattr(request.app.state, "role_service", None)
    if service is None:
        raise HTTPException(500, "Role service not configured")
    return service


# ============================================================
# IDENTITY (Supabase validates the JWT; the engine only sees the id)
# ============================================================
def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    client: Client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    try:
        auth_resp = client.auth.get_user(credentials.credentials)
    except Exception:
        raise unauthorized

    if not auth_resp or not auth_resp.user or not auth_resp.user.id:
        raise unauthorized

    return auth_resp.user.id


# ============================================================
# PERMISSION CHECK
# ============================================================
def requires_permission(permission: str, context: SecurityContext = SecurityContext.authorization):
    """
    Usage:
        @router.post("/", dependencies=[Depends(requires_permission("orders:create"))])

    Denied → 403. Resolution failures map through role_error_to_http
    (403 contact support, 503 retry, 500 invalid permission).
    """

    def dependency(
        user_id: str = Depends(get_current_user_id),
        service: UnifiedRoleService = Depends(get_role_service),
    ) -> str:
        try:
            allowed = service.has_permission(user_id, permission, context=context)
        except RoleResolutionError as e:
            raise role_error_to_http(e)

        if not allowed:
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions: '{permission}' required",
            )
        return user_id

    return dependency


# ============================================================
# MINIMUM ROLE CHECK (coarse-grained hierarchy gate)
# ============================================================
def requires_minimum_role(required_role: Role, context: SecurityContext = SecurityContext.authorization):

    def dependency(
        user_id: str = Depends(get_current_user_id),
        service: UnifiedRoleService = Depends(get_role_service),
    ) -> str:
        try:
            allowed = service.has_minimum_role(user_id, required_role, context=context)
        except RoleResolutionError as e:
            raise role_error_to_http(e)

        if not allowed:
            raise HTTPException(
                status_code=403,
                detail=f"Requires role '{required_role}' or higher",
            )
        return user_id

    return dependency
