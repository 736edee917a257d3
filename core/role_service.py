# core/role_service.py

"""
Unified role service: the single entry point for role and permission
questions.

Composes RoleResolver (user id → Role, cached), PermissionEvaluator
(pure decisions) and an AuditSink. Every public call that resolves,
checks or mutates a role records exactly one AuditEvent, on success and
on failure alike.

Resolution failures propagate unchanged. A normal deny is a False return,
never an exception.
"""

from datetime import datetime
from typing import Callable, FrozenSet, List, Optional, Union

from core.audit import AuditSink, build_audit_sink
from core.cache import PermissionCache, utc_now
from core.config import Settings
from core.errors import InvalidPermission, RoleResolutionError, StoreUnavailable
from core.logging_config import logger
from core.permission_evaluator import PermissionEvaluator
from core.role_resolver import RoleResolver
from core.roles import RoleCatalog, load_role_catalog
from core.user_store import SupabaseUserStore, UserStore
from models.enums import (
    AuditEventType,
    AuditOutcome,
    Decision,
    FallbackAction,
    Role,
    SecurityContext,
)
from models.roles import AuditEvent, PermissionResult


class UnifiedRoleService:

    def __init__(
        self,
        resolver: RoleResolver,
        evaluator: PermissionEvaluator,
        audit_sink: AuditSink,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.resolver = resolver
        self.evaluator = evaluator
        self.audit_sink = audit_sink
        self._clock = clock

    @property
    def catalog(self) -> RoleCatalog:
        return self.evaluator.catalog

    @property
    def cache(self) -> PermissionCache:
        return self.resolver.cache

    # =========================================================
    # Role lookup
    # =========================================================
    def get_role(self, user_id: str, context: SecurityContext = SecurityContext.data_access) -> Role:
        try:
            entry, cache_hit = self.resolver.resolve_entry(user_id)
        except RoleResolutionError as e:
            self._emit_error(AuditEventType.role_query, user_id, "role", context, e)
            raise

        self._emit(
            AuditEventType.role_query,
            user_id,
            "role",
            AuditOutcome.granted,
            context,
            role=entry.role,
            metadata={"cache_hit": cache_hit},
        )
        return entry.role

    def has_role(
        self,
        user_id: str,
        role: Union[Role, str],
        context: SecurityContext = SecurityContext.authorization,
    ) -> bool:
        """Exact role match. Unlike has_minimum_role, higher roles do not count."""
        resolved = None
        query = str(role)
        try:
            expected = self.catalog.parse_role(role)
            resolved = self.resolver.resolve(user_id)
        except RoleResolutionError as e:
            self._emit_error(AuditEventType.role_query, user_id, query, context, e, role=resolved)
            raise

        matched = resolved == expected
        self._emit(
            AuditEventType.role_query,
            user_id,
            query,
            AuditOutcome.granted if matched else AuditOutcome.denied,
            context,
            role=resolved,
        )
        return matched

    def get_user_permissions(
        self,
        user_id: str,
        context: SecurityContext = SecurityContext.data_access,
    ) -> FrozenSet[str]:
        """
        Permissions held by the user's role. Admin gets every catalog
        permission (its override covers anything else at check time).
        """
        try:
            role = self.resolver.resolve(user_id)
        except RoleResolutionError as e:
            self._emit_error(AuditEventType.role_query, user_id, "permissions", context, e)
            raise

        permissions = self.permissions_for_role(role)

        self._emit(
            AuditEventType.role_query,
            user_id,
            "permissions",
            AuditOutcome.granted,
            context,
            role=role,
            admin_override=self.evaluator.is_admin_override(role),
        )
        return permissions

    def permissions_for_role(self, role: Role) -> FrozenSet[str]:
        """No lookup, no audit. Admin maps to every catalog permission."""
        if self.evaluator.is_admin_override(role):
            return self.catalog.all_permissions()
        return self.catalog.permissions_for(role)

    # =========================================================
    # Permission checks
    # =========================================================
    def has_permission(
        self,
        user_id: str,
        permission: str,
        context: SecurityContext = SecurityContext.authorization,
    ) -> bool:
        """
        True/False for a resolved role. Raises RoleResolutionError when
        access cannot be determined (no role, unknown role, store down,
        invalid permission).
        """
        role = None
        try:
            role = self.resolver.resolve(user_id)
            decision = self.evaluator.evaluate(role, permission)
        except RoleResolutionError as e:
            self._emit_error(AuditEventType.permission_check, user_id, permission, context, e, role=role)
            raise

        self._record_decision(user_id, permission, context, role, decision)
        return decision == Decision.allow

    def check_permission(
        self,
        user_id: str,
        permission: str,
        context: SecurityContext = SecurityContext.authorization,
    ) -> PermissionResult:
        """
        Same decision as has_permission, returned as a PermissionResult
        instead of raising, so gating code can pick its own fallback.
        """
        role = None
        try:
            role = self.resolver.resolve(user_id)
            decision = self.evaluator.evaluate(role, permission)
        except RoleResolutionError as e:
            self._emit_error(AuditEventType.permission_check, user_id, permission, context, e, role=role)
            if e.retryable:
                fallback = FallbackAction.retry
            elif isinstance(e, InvalidPermission):
                fallback = FallbackAction.hide
            else:
                fallback = FallbackAction.redirect
            return PermissionResult(
                allowed=False,
                permission=permission,
                role=role,
                reason=e.user_message,
                error_code=e.code,
                retryable=e.retryable,
                fallback_action=fallback,
            )

        self._record_decision(user_id, permission, context, role, decision)

        if decision == Decision.allow:
            return PermissionResult(allowed=True, permission=permission, role=role)

        return PermissionResult(
            allowed=False,
            permission=permission,
            role=role,
            reason=f"Role '{role}' does not have permission '{permission}'",
            fallback_action=FallbackAction.redirect,
        )

    def can_perform_action(
        self,
        user_id: str,
        resource: str,
        action: str,
        context: SecurityContext = SecurityContext.authorization,
    ) -> bool:
        return self.has_permission(user_id, f"{resource}:{action}", context=context)

    def has_minimum_role(
        self,
        user_id: str,
        required_role: Union[Role, str],
        context: SecurityContext = SecurityContext.authorization,
    ) -> bool:
        role = None
        query = str(required_role)
        try:
            required = self.catalog.parse_role(required_role)
            role = self.resolver.resolve(user_id)
        except RoleResolutionError as e:
            self._emit_error(AuditEventType.minimum_role_check, user_id, query, context, e, role=role)
            raise

        allowed = self.evaluator.meets_minimum_role(role, required)
        self._emit(
            AuditEventType.minimum_role_check,
            user_id,
            query,
            AuditOutcome.granted if allowed else AuditOutcome.denied,
            context,
            role=role,
        )
        return allowed

    # =========================================================
    # Role mutation
    # =========================================================
    def invalidate(
        self,
        user_id: str,
        actor_id: Optional[str] = None,
        context: SecurityContext = SecurityContext.admin_functions,
    ):
        """
        Called after a user's stored role changed. Clears the cached entry
        so the next lookup hits the user store, and records a role_changed event.
        """
        previous = self.cache.get(user_id)
        removed = self.cache.invalidate(user_id)
        logger.info(f"Role cache invalidated for user {user_id}")

        self._emit(
            AuditEventType.role_changed,
            user_id,
            "invalidate",
            AuditOutcome.granted,
            context,
            actor_id=actor_id,
            old_role=previous.role if previous else None,
            metadata={"cache_entry_removed": removed},
        )

    def update_user_role(
        self,
        user_id: str,
        new_role: Role,
        actor_id: Optional[str] = None,
        context: SecurityContext = SecurityContext.admin_functions,
    ):
        """Write the new role to the user store, then invalidate and audit once."""
        previous = self.cache.get(user_id)
        old_role = previous.role if previous else None

        try:
            self.resolver.user_store.update_role(user_id, new_role)
        except RoleResolutionError as e:
            self._emit_error(
                AuditEventType.role_changed, user_id, new_role.value, context, e,
                actor_id=actor_id, old_role=old_role,
            )
            raise
        except Exception as e:
            wrapped = StoreUnavailable(f"Role update failed: {e}", user_id=user_id)
            self._emit_error(
                AuditEventType.role_changed, user_id, new_role.value, context, wrapped,
                actor_id=actor_id, old_role=old_role,
            )
            raise wrapped from e

        self.cache.invalidate(user_id)
        logger.info(f"Role changed for user {user_id}: {old_role} → {new_role} (by {actor_id})")

        self._emit(
            AuditEventType.role_changed,
            user_id,
            new_role.value,
            AuditOutcome.granted,
            context,
            role=new_role,
            actor_id=actor_id,
            old_role=old_role,
        )

    # =========================================================
    # Hierarchy helpers / cache management
    # =========================================================
    def has_higher_privileges(self, role: Role, other: Role) -> bool:
        return self.evaluator.has_higher_privileges(role, other)

    def all_roles(self) -> List[Role]:
        return self.catalog.roles()

    def clear_all_caches(self):
        self.cache.invalidate_all()
        logger.info("All role cache entries cleared")

    def close(self):
        self.cache.close()
        close_sink = getattr(self.audit_sink, "close", None)
        if close_sink is not None:
            close_sink()

    # =========================================================
    # Auditing
    # =========================================================
    def _record_decision(self, user_id, permission, context, role, decision):
        override = self.evaluator.is_admin_override(role)
        if override and not self.catalog.is_valid_permission(permission):
            logger.warning(
                f"Admin override granted permission outside the catalog: {permission} (user {user_id})"
            )

        self._emit(
            AuditEventType.permission_check,
            user_id,
            permission,
            AuditOutcome.granted if decision == Decision.allow else AuditOutcome.denied,
            context,
            role=role,
            admin_override=override,
        )

    def _emit_error(self, event_type, user_id, query, context, error: RoleResolutionError, **fields):
        self._emit(
            event_type,
            user_id,
            query,
            AuditOutcome.error,
            context,
            error_code=error.code,
            metadata={"message": error.message, "retryable": error.retryable},
            **fields,
        )

    def _emit(self, event_type, user_id, query, outcome, context, **fields):
        event = AuditEvent(
            event_type=event_type,
            user_id=user_id or "",
            query=str(query),
            outcome=outcome,
            timestamp=self._clock(),
            context=context,
            **fields,
        )
        # Audit persistence must never decide access.
        try:
            self.audit_sink.record(event)
        except Exception as e:
            logger.error(f"Audit sink failed for {event_type} (user {user_id}): {e}", exc_info=True)


# ============================================================
# Factory
# ============================================================

def build_role_service(
    settings: Settings,
    user_store: Optional[UserStore] = None,
    audit_sink: Optional[AuditSink] = None,
    catalog: Optional[RoleCatalog] = None,
    clock: Callable[[], datetime] = utc_now,
) -> UnifiedRoleService:
    """
    Construct the service once at process start. Collaborators default to
    the Supabase-backed implementations configured by `settings`.
    """
    catalog = catalog or load_role_catalog(settings.ROLE_CATALOG_PATH)
    user_store = user_store or SupabaseUserStore(table=settings.USERS_TABLE)
    audit_sink = audit_sink or build_audit_sink(settings)

    cache = PermissionCache(
        ttl_seconds=settings.ROLE_CACHE_TTL_SECONDS,
        clock=clock,
        max_workers=settings.ROLE_LOOKUP_MAX_WORKERS,
    )
    resolver = RoleResolver(
        user_store=user_store,
        catalog=catalog,
        cache=cache,
        timeout_seconds=settings.ROLE_LOOKUP_TIMEOUT_SECONDS,
    )

    return UnifiedRoleService(
        resolver=resolver,
        evaluator=PermissionEvaluator(catalog),
        audit_sink=audit_sink,
        clock=clock,
    )
