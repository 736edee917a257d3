# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from core.cache import PermissionCache
from core.permission_evaluator import PermissionEvaluator
from core.role_resolver import RoleResolver
from core.role_service import UnifiedRoleService
from core.roles import RoleCatalog
from models.enums import Role
from models.roles import AuditEvent


class FakeClock:
    """Controllable clock for TTL tests."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now = self.now + timedelta(seconds=seconds)


class InMemoryUserStore:
    """
    Dict-backed user store that counts lookups.
    Set `gate` to an Event to hold lookups until the test releases them.
    """

    def __init__(self, roles: Optional[Dict[str, Optional[str]]] = None):
        self.roles = dict(roles or {})
        self.lookups: List[str] = []
        self.updates: List[tuple] = []
        self.gate: Optional[threading.Event] = None
        self.error: Optional[Exception] = None
        self._lock = threading.Lock()

    def lookup_role(self, user_id: str) -> Optional[str]:
        with self._lock:
            self.lookups.append(user_id)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.roles.get(user_id)

    def update_role(self, user_id: str, role: Role) -> None:
        if self.error is not None:
            raise self.error
        self.updates.append((user_id, role))
        self.roles[user_id] = role.value

    def lookup_count(self, user_id: str) -> int:
        with self._lock:
            return self.lookups.count(user_id)


class RecordingAuditSink:
    def __init__(self):
        self.events: List[AuditEvent] = []
        self._lock = threading.Lock()

    def record(self, event: AuditEvent) -> None:
        with self._lock:
            self.events.append(event)

    def for_user(self, user_id: str) -> List[AuditEvent]:
        return [e for e in self.events if e.user_id == user_id]


USERS = {
    "customer-1": "customer",
    "inventory-1": "inventory_staff",
    "marketing-1": "marketing_staff",
    "executive-1": "executive",
    "admin-1": "admin",
    "legacy-1": "manager",
    "empty-1": None,
}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> RoleCatalog:
    return RoleCatalog.default()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore(USERS)


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def cache(clock) -> Generator[PermissionCache, None, None]:
    cache = PermissionCache(ttl_seconds=300, clock=clock)
    yield cache
    cache.close()


@pytest.fixture
def service(user_store, audit_sink, catalog, cache, clock) -> UnifiedRoleService:
    """Role service over in-memory collaborators and a fake clock."""
    resolver = RoleResolver(user_store, catalog, cache, timeout_seconds=2)
    return UnifiedRoleService(
        resolver=resolver,
        evaluator=PermissionEvaluator(catalog),
        audit_sink=audit_sink,
        clock=clock,
    )


@pytest.fixture
def app(service):
    """Create a test FastAPI application around the in-memory service."""
    from main import create_app
    return create_app(role_service=service)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(app):
    """Authenticate requests as the given user id."""
    from dependencies.auth import get_current_user_id

    def _login(user_id: str):
        app.dependency_overrides[get_current_user_id] = lambda: user_id

    yield _login
    app.dependency_overrides.clear()
