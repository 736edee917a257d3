# core/role_resolver.py

"""
Resolves a user id to exactly one Role through the permission cache.

Sequence: cache lookup → single-flighted user store fetch on a miss →
strict parse against the catalog → cache fill. No default role is ever
returned; every failure is a typed RoleResolutionError.
"""

from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Tuple

from core.cache import PermissionCache
from core.errors import RoleNotFound, RoleResolutionError, StoreUnavailable
from core.logging_config import logger
from core.roles import RoleCatalog
from core.user_store import UserStore
from models.enums import Role
from models.roles import CachedRoleEntry


class RoleResolver:

    def __init__(
        self,
        user_store: UserStore,
        catalog: RoleCatalog,
        cache: PermissionCache,
        timeout_seconds: Optional[float] = 5.0,
    ):
        self.user_store = user_store
        self.catalog = catalog
        self.cache = cache
        self.timeout_seconds = timeout_seconds

    def resolve(self, user_id: str) -> Role:
        return self.resolve_entry(user_id)[0].role

    def resolve_entry(self, user_id: str) -> Tuple[CachedRoleEntry, bool]:
        """Return (entry, cache_hit) or raise a RoleResolutionError."""
        if not user_id:
            raise RoleNotFound("User ID is required for role lookup", user_id=user_id)

        try:
            return self.cache.get_or_fetch(user_id, self._fetch, timeout=self.timeout_seconds)
        except FutureTimeoutError:
            logger.error(f"Role lookup timed out after {self.timeout_seconds}s for user {user_id}")
            raise StoreUnavailable(
                f"Role lookup timed out after {self.timeout_seconds}s",
                user_id=user_id,
            )

    def _fetch(self, user_id: str) -> Role:
        # Runs on a cache worker thread, once per single-flight group.
        try:
            raw = self.user_store.lookup_role(user_id)
        except RoleResolutionError:
            raise
        except Exception as e:
            logger.error(f"User store error for user {user_id}: {e}", exc_info=True)
            raise StoreUnavailable(f"User store error: {e}", user_id=user_id) from e

        if raw is None:
            raise RoleNotFound(f"No role found for user {user_id}", user_id=user_id)

        try:
            return self.catalog.parse_role(raw, user_id=user_id)
        except RoleResolutionError as e:
            logger.error(f"Stored role rejected for user {user_id}: {e.message}")
            raise
