# routers/roles.py

from typing import List

from fastapi import APIRouter, Depends

from core.role_service import UnifiedRoleService
from dependencies.auth import (
    get_current_user_id,
    get_role_service,
    requires_minimum_role,
    requires_permission,
)
from models.enums import Role, SecurityContext
from models.roles import CatalogEntryRead, PermissionResult, RoleRead, RoleUpdate

router = APIRouter(
    prefix="/roles",
    tags=["Roles"],
)


# -----------------------------------------------------
# GET /roles/me
# Current user's role, level and permissions
# -----------------------------------------------------
@router.get("/me", response_model=RoleRead, summary="Current user's role")
def read_my_role(
    user_id: str = Depends(get_current_user_id),
    service: UnifiedRoleService = Depends(get_role_service),
):
    role = service.get_role(user_id)
    permissions = service.permissions_for_role(role)
    return RoleRead(
        user_id=user_id,
        role=role,
        level=service.catalog.level(role),
        permissions=sorted(permissions),
    )


# -----------------------------------------------------
# GET /roles/me/permissions/{permission}
# Detailed check for UI gating; never raises for resolution failures
# -----------------------------------------------------
@router.get(
    "/me/permissions/{permission}",
    response_model=PermissionResult,
    summary="Check one permission for the current user",
)
def check_my_permission(
    permission: str,
    user_id: str = Depends(get_current_user_id),
    service: UnifiedRoleService = Depends(get_role_service),
):
    return service.check_permission(user_id, permission)


# -----------------------------------------------------
# GET /roles/catalog
# Staff and above can read the role → permission table
# -----------------------------------------------------
@router.get(
    "/catalog",
    response_model=List[CatalogEntryRead],
    summary="Role catalog",
    dependencies=[Depends(requires_minimum_role(Role.inventory_staff))],
)
def read_catalog(service: UnifiedRoleService = Depends(get_role_service)):
    catalog = service.catalog
    return [
        CatalogEntryRead(
            role=role,
            level=catalog.level(role),
            permissions=list(catalog.ordered_permissions_for(role)),
        )
        for role in service.all_roles()
    ]


# -----------------------------------------------------
# PUT /roles/users/{user_id}
# Change a user's stored role (cache invalidated + audited)
# -----------------------------------------------------
@router.put("/users/{user_id}", summary="Change a user's role")
def update_user_role(
    user_id: str,
    payload: RoleUpdate,
    actor_id: str = Depends(requires_permission("users:manage_roles", SecurityContext.admin_functions)),
    service: UnifiedRoleService = Depends(get_role_service),
):
    service.update_user_role(user_id, payload.role, actor_id=actor_id)
    return {"success": True, "user_id": user_id, "role": payload.role}


# -----------------------------------------------------
# POST /roles/users/{user_id}/invalidate
# Called by collaborators that changed a role out of band
# -----------------------------------------------------
@router.post("/users/{user_id}/invalidate", summary="Drop a user's cached role")
def invalidate_user_role(
    user_id: str,
    actor_id: str = Depends(requires_permission("users:manage_roles", SecurityContext.admin_functions)),
    service: UnifiedRoleService = Depends(get_role_service),
):
    service.invalidate(user_id, actor_id=actor_id)
    return {"success": True, "user_id": user_id}
