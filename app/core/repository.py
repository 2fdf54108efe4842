"""Record store access.

The activations live in a hosted Postgres exposed through PostgREST, so the
application never holds a SQL connection. This module wraps the handful of
reads the admin API needs behind a small protocol so services can be tested
against an in-memory fake.
"""

from typing import Any, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from app.core.exceptions import RecordStoreError


def _error_reason(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


class RecordStore(Protocol):
    def count_rows(
        self,
        table: str,
        *,
        column: str = "id",
        non_empty_column: str | None = None,
    ) -> int:
        """Exact row count, optionally restricted to rows where a column is set."""
        ...

    def fetch_recent_rows(
        self, table: str, *, order_column: str, limit: int
    ) -> list[dict[str, Any]]:
        """Most recent rows (all columns), newest first."""
        ...

    def call_rpc(self, name: str) -> Any:
        """Invoke a remote procedure and return its raw result."""
        ...


class SupabaseRecordStore:
    """Record store backed by the Supabase PostgREST client."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def count_rows(
        self,
        table: str,
        *,
        column: str = "id",
        non_empty_column: str | None = None,
    ) -> int:
        """Count rows without transferring them.

        Args:
            table: Table name.
            column: Column to select; only used to build the HEAD request.
            non_empty_column: If given, only rows where this column is neither
                NULL nor an empty string are counted.

        Returns:
            Exact row count (0 when the backend reports none).
        """
        query = self._client.table(table).select(column, count="exact", head=True)
        if non_empty_column:
            query = query.not_.is_(non_empty_column, "null").neq(non_empty_column, "")
        try:
            response = query.execute()
        except (APIError, httpx.HTTPError) as e:
            raise RecordStoreError(_error_reason(e), operation=f"count {table}") from e
        return int(response.count or 0)

    def fetch_recent_rows(
        self, table: str, *, order_column: str, limit: int
    ) -> list[dict[str, Any]]:
        try:
            response = (
                self._client.table(table)
                .select("*")
                .order(order_column, desc=True)
                .limit(limit)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise RecordStoreError(_error_reason(e), operation=f"sample {table}") from e
        return list(response.data or [])

    def call_rpc(self, name: str) -> Any:
        try:
            response = self._client.rpc(name).execute()
        except (APIError, httpx.HTTPError) as e:
            raise RecordStoreError(_error_reason(e), operation=f"rpc {name}") from e
        return response.data
