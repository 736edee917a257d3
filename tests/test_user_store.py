# tests/test_user_store.py

"""
Tests for the Supabase-backed user store.
"""

from unittest.mock import Mock

import pytest

from core.errors import RoleNotFound, StoreUnavailable
from core.user_store import SupabaseUserStore
from models.enums import Role


def _store_with_rows(rows):
    mock_client = Mock()
    mock_query = Mock()
    mock_query.eq.return_value = mock_query
    mock_query.limit.return_value = mock_query
    mock_query.execute.return_value = Mock(data=rows)
    mock_client.table.return_value.select.return_value = mock_query
    return SupabaseUserStore(client_factory=lambda: mock_client), mock_client


def test_lookup_role_returns_stored_string():
    store, client = _store_with_rows([{"id": "user-1", "role": "inventory_staff"}])

    assert store.lookup_role("user-1") == "inventory_staff"
    client.table.assert_called_once_with("users")


def test_lookup_role_passes_legacy_strings_through():
    """Parsing is the resolver's job; the store returns the raw value."""
    store, _ = _store_with_rows([{"id": "user-1", "role": "manager"}])
    assert store.lookup_role("user-1") == "manager"


@pytest.mark.parametrize("rows", [[], None, [{"id": "user-1", "role": None}], [{"id": "user-1", "role": "  "}]])
def test_lookup_role_not_found(rows):
    store, _ = _store_with_rows(rows)
    assert store.lookup_role("user-1") is None


def test_lookup_role_client_error():
    mock_client = Mock()
    mock_client.table.side_effect = Exception("PGRST301: connection refused")
    store = SupabaseUserStore(client_factory=lambda: mock_client)

    with pytest.raises(StoreUnavailable, match="connection refused"):
        store.lookup_role("user-1")


def test_lookup_role_without_client():
    store = SupabaseUserStore(client_factory=lambda: None)

    with pytest.raises(StoreUnavailable, match="not configured"):
        store.lookup_role("user-1")


def test_update_role():
    mock_client = Mock()
    mock_query = Mock()
    mock_query.eq.return_value = mock_query
    mock_query.execute.return_value = Mock(data=[{"id": "user-1", "role": "executive"}])
    mock_client.table.return_value.update.return_value = mock_query
    store = SupabaseUserStore(client_factory=lambda: mock_client, table="profiles")

    store.update_role("user-1", Role.executive)

    mock_client.table.assert_called_once_with("profiles")
    payload = mock_client.table.return_value.update.call_args[0][0]
    assert payload["role"] == "executive"
    assert "updated_at" in payload
    mock_query.eq.assert_called_once_with("id", "user-1")


def test_update_role_missing_user():
    mock_client = Mock()
    mock_query = Mock()
    mock_query.eq.return_value = mock_query
    mock_query.execute.return_value = Mock(data=[])
    mock_client.table.return_value.update.return_value = mock_query
    store = SupabaseUserStore(client_factory=lambda: mock_client)

    with pytest.raises(RoleNotFound):
        store.update_role("ghost", Role.customer)
