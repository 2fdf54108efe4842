"""Tests for SupabaseRecordStore."""

from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from app.core.exceptions import RecordStoreError
from app.core.repository import SupabaseRecordStore


@pytest.fixture
def client():
    return MagicMock()


class TestCountRows:
    def test_exact_head_count(self, client):
        select = client.table.return_value.select
        select.return_value.execute.return_value = MagicMock(count=42)

        count = SupabaseRecordStore(client).count_rows("activaciones")

        client.table.assert_called_once_with("activaciones")
        select.assert_called_once_with("id", count="exact", head=True)
        assert count == 42

    def test_missing_count_is_zero(self, client):
        client.table.return_value.select.return_value.execute.return_value = MagicMock(count=None)

        assert SupabaseRecordStore(client).count_rows("activaciones") == 0

    def test_non_empty_column_filters(self, client):
        query = client.table.return_value.select.return_value
        filtered = query.not_.is_.return_value.neq.return_value
        filtered.execute.return_value = MagicMock(count=7)

        count = SupabaseRecordStore(client).count_rows(
            "activaciones", non_empty_column="foto_url"
        )

        query.not_.is_.assert_called_once_with("foto_url", "null")
        query.not_.is_.return_value.neq.assert_called_once_with("foto_url", "")
        assert count == 7

    def test_api_error_is_wrapped(self, client):
        client.table.return_value.select.return_value.execute.side_effect = APIError(
            {"message": "relation does not exist", "code": "42P01"}
        )

        with pytest.raises(RecordStoreError) as exc_info:
            SupabaseRecordStore(client).count_rows("activaciones")

        assert exc_info.value.reason == "relation does not exist"
        assert exc_info.value.status_code == 502

    def test_transport_error_is_wrapped(self, client):
        client.table.return_value.select.return_value.execute.side_effect = httpx.ConnectError(
            "connection refused"
        )

        with pytest.raises(RecordStoreError) as exc_info:
            SupabaseRecordStore(client).count_rows("activaciones")

        assert exc_info.value.reason == "connection refused"


class TestFetchRecentRows:
    def test_orders_newest_first_with_limit(self, client):
        chain = client.table.return_value.select.return_value.order.return_value
        chain.limit.return_value.execute.return_value = MagicMock(data=[{"id": 1}, {"id": 2}])

        rows = SupabaseRecordStore(client).fetch_recent_rows(
            "activaciones", order_column="created_at", limit=240
        )

        client.table.return_value.select.assert_called_once_with("*")
        client.table.return_value.select.return_value.order.assert_called_once_with(
            "created_at", desc=True
        )
        chain.limit.assert_called_once_with(240)
        assert rows == [{"id": 1}, {"id": 2}]

    def test_error_is_wrapped(self, client):
        chain = client.table.return_value.select.return_value.order.return_value
        chain.limit.return_value.execute.side_effect = APIError({"message": "timeout"})

        with pytest.raises(RecordStoreError, match="sample activaciones"):
            SupabaseRecordStore(client).fetch_recent_rows(
                "activaciones", order_column="created_at", limit=40
            )


class TestCallRpc:
    def test_returns_raw_data(self, client):
        client.rpc.return_value.execute.return_value = MagicMock(data=123456)

        assert SupabaseRecordStore(client).call_rpc("get_database_size_bytes") == 123456
        client.rpc.assert_called_once_with("get_database_size_bytes")

    def test_missing_function_is_wrapped(self, client):
        client.rpc.return_value.execute.side_effect = APIError(
            {"message": "Could not find the function", "code": "PGRST202"}
        )

        with pytest.raises(RecordStoreError) as exc_info:
            SupabaseRecordStore(client).call_rpc("get_database_size_bytes")

        assert exc_info.value.reason == "Could not find the function"
