import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from supabase import Client

from app.core.config import settings
from app.core.supabase import get_supabase_client


class StorageBackend(Protocol):
    def list_directory(
        self, bucket: str, directory: str, *, limit: int, offset: int
    ) -> list[dict[str, Any]]:
        """List one directory level of a bucket, one page at a time.

        Entries are raw mappings shaped like the Supabase Storage list API:
        ``{"name": str, "id": str | None, "metadata": dict | None}``.
        Folders carry neither ``id`` nor ``metadata``.
        """
        ...


class SupabaseStorage:
    """Supabase Storage buckets for production."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def list_directory(
        self, bucket: str, directory: str, *, limit: int, offset: int
    ) -> list[dict[str, Any]]:
        entries = self._client.storage.from_(bucket).list(
            directory,
            {
                "limit": limit,
                "offset": offset,
                "sortBy": {"column": "name", "order": "asc"},
            },
        )
        return list(entries or [])


class LocalStorage:
    """Local filesystem mirror of the buckets for development.

    Each bucket is a folder under ``base_dir``; listings return the same
    entry shape as Supabase so the rest of the code cannot tell them apart.
    """

    def __init__(self, base_dir: str) -> None:
        self._base_dir = Path(base_dir)

    def _resolve_safe_path(self, bucket: str, directory: str) -> Path:
        """Resolve path and validate it stays within the bucket directory."""
        bucket_root = (self._base_dir / bucket).resolve()
        full_path = (bucket_root / directory).resolve() if directory else bucket_root
        if (
            not str(full_path).startswith(str(bucket_root) + os.sep)
            and full_path != bucket_root
        ):
            raise ValueError(f"Path traversal attempt detected: {directory}")
        return full_path

    def list_directory(
        self, bucket: str, directory: str, *, limit: int, offset: int
    ) -> list[dict[str, Any]]:
        bucket_root = (self._base_dir / bucket).resolve()
        folder_path = self._resolve_safe_path(bucket, directory)
        if not folder_path.is_dir():
            return []

        children = sorted(folder_path.iterdir(), key=lambda p: p.name)
        entries: list[dict[str, Any]] = []
        for child in children[offset : offset + limit]:
            if child.is_dir():
                entries.append({"name": child.name, "id": None, "metadata": None})
                continue
            stat = child.stat()
            entries.append(
                {
                    "name": child.name,
                    "id": child.relative_to(bucket_root).as_posix(),
                    "metadata": {
                        "size": stat.st_size,
                        "lastModified": datetime.fromtimestamp(
                            stat.st_mtime, tz=UTC
                        ).isoformat(),
                    },
                }
            )
        return entries


def get_storage() -> StorageBackend:
    if settings.STORAGE_BACKEND == "local":
        return LocalStorage(settings.UPLOAD_DIR)

    return SupabaseStorage(get_supabase_client())
