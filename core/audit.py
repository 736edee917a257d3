# core/audit.py

"""
Audit sinks for role and permission decisions.

The role service calls `record()` exactly once per decision. Sinks are
append-only: nothing here updates or deletes an event.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Protocol

from supabase import Client

from core.config import Settings
from core.errors import extract_supabase_error
from core.logging_config import logger
from core.supabase_client import get_supabase_client
from models.roles import AuditEvent


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None:
        ...


def event_to_row(event: AuditEvent) -> dict:
    """Flatten an AuditEvent into a JSON-safe row."""
    return event.model_dump(mode="json")


# ============================================================
# Log sink
# ============================================================

class LoggingAuditSink:
    """Writes each event as one structured line to the application log."""

    def record(self, event: AuditEvent) -> None:
        logger.info(
            "Role audit: type=%s user=%s query=%s outcome=%s context=%s role=%s admin_override=%s error=%s",
            event.event_type,
            event.user_id,
            event.query,
            event.outcome,
            event.context,
            event.role,
            event.admin_override,
            event.error_code,
        )


# ============================================================
# Supabase sink
# ============================================================

class SupabaseAuditSink:
    """Inserts each event as a row into the audit table."""

    def __init__(
        self,
        client_factory: Callable[[], Optional[Client]] = get_supabase_client,
        table: str = "role_audit_events",
    ):
        self._client_factory = client_factory
        self._table = table

    def record(self, event: AuditEvent) -> None:
        client = self._client_factory()
        if client is None:
            raise RuntimeError("Supabase client not configured")

        try:
            client.table(self._table).insert(event_to_row(event)).execute()
        except Exception as e:
            raise RuntimeError(f"Audit insert failed: {extract_supabase_error(e)}") from e


# ============================================================
# Fire-and-forget wrapper
# ============================================================

class BackgroundAuditSink:
    """
    Hands each event to a worker thread so a permission decision never
    waits on audit persistence. Each event is submitted exactly once;
    failures are logged, not retried.
    """

    def __init__(self, sink: AuditSink, max_workers: int = 2):
        self._sink = sink
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="role-audit",
        )

    def record(self, event: AuditEvent) -> None:
        future = self._executor.submit(self._sink.record, event)
        future.add_done_callback(lambda f: self._report(f, event))

    @staticmethod
    def _report(future, event: AuditEvent):
        error = future.exception()
        if error is not None:
            logger.error(
                f"Audit event lost ({event.event_type} for user {event.user_id}): {error}"
            )

    def close(self):
        self._executor.shutdown(wait=True)


# ============================================================
# Factory
# ============================================================

def build_audit_sink(settings: Settings) -> AuditSink:
    backend = (settings.AUDIT_BACKEND or "log").lower()

    if backend == "supabase":
        return BackgroundAuditSink(SupabaseAuditSink(table=settings.ROLE_AUDIT_TABLE))

    if backend == "log":
        return LoggingAuditSink()

    raise ValueError(f"Unsupported AUDIT_BACKEND: {settings.AUDIT_BACKEND}")
