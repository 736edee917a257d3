# core/user_store.py

"""
User store collaborator: the only source of a user's authoritative role.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from supabase import Client

from core.errors import RoleNotFound, StoreUnavailable, extract_supabase_error
from core.logging_config import logger
from core.supabase_client import get_supabase_client
from models.enums import Role


class UserStore(Protocol):
    def lookup_role(self, user_id: str) -> Optional[str]:
        """
        Return the stored role string, or None when the user has no role
        on record. Raise on backend faults.
        """
        ...

    def update_role(self, user_id: str, role: Role) -> None:
        ...


class SupabaseUserStore:
    """
    Reads and writes `role` on the users table through the service-role client.
    """

    def __init__(
        self,
        client_factory: Callable[[], Optional[Client]] = get_supabase_client,
        table: str = "users",
    ):
        self._client_factory = client_factory
        self._table = table

    def _client(self) -> Client:
        client = self._client_factory()
        if client is None:
            raise StoreUnavailable("Supabase client not configured")
        return client

    def lookup_role(self, user_id: str) -> Optional[str]:
        client = self._client()

        try:
            result = (
                client.table(self._table)
                .select("id, role")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Role lookup failed for user {user_id}: {detail}")
            raise StoreUnavailable(f"Role lookup failed: {detail}", user_id=user_id) from e

        rows = result.data or []
        if not rows:
            return None

        role = rows[0].get("role")
        if role is None or (isinstance(role, str) and not role.strip()):
            return None
        return role

    def update_role(self, user_id: str, role: Role) -> None:
        client = self._client()

        try:
            result = (
                client.table(self._table)
                .update({
                    "role": role.value,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Role update failed for user {user_id}: {detail}")
            raise StoreUnavailable(f"Role update failed: {detail}", user_id=user_id) from e

        if not result.data:
            raise RoleNotFound(f"No user record for {user_id}", user_id=user_id)
