# routers/health.py

from fastapi import APIRouter, Depends
from core.role_service import UnifiedRoleService
from core.supabase_client import ping_supabase
from dependencies.auth import get_role_service

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Checks Supabase connection + role tables
# No auth required
# -----------------------------------------------------
@router.get("/db", summary="Supabase / DB health check")
def health_db():
    """
    Verifies Supabase connectivity for the users and audit tables.
    Safe for external health monitors (no auth required).
    """
    status = ping_supabase()
    return {
        "service": "Supabase",
        "status": status.get("status", "unknown"),
        "details": status,
    }


# -----------------------------------------------------
# GET /health/app
# Lightweight check, includes role cache size
# -----------------------------------------------------
@router.get("/app", summary="App health check")
def health_app(service: UnifiedRoleService = Depends(get_role_service)):
    return {
        "service": "Unified Roles API",
        "status": "ok",
        "role_cache_entries": service.cache.size(),
    }
