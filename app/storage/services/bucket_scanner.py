"""Walks an object-storage bucket and totals its size.

The storage API only lists one folder level per call and paginates, so the
bucket is traversed breadth-first with an explicit worklist. Folders are
not real objects there: an entry without ``id`` and ``metadata`` is a folder.
"""

import logging
import threading
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.core.constants import (
    EMPTY_FOLDER_PLACEHOLDER,
    OBJECT_SIZE_METADATA_KEYS,
    STORAGE_LIST_PAGE_SIZE,
)
from app.core.exceptions import StorageListError
from app.core.numbers import to_finite_number
from app.core.storage import StorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketUsage:
    """Totals for a bucket walk. Only real files count."""

    total_bytes: int = 0
    total_objects: int = 0


@dataclass(frozen=True)
class StorageFile:
    path: str
    size: int | None


@dataclass(frozen=True)
class StorageDirectory:
    path: str


StorageEntry = StorageFile | StorageDirectory


def join_path(parent: str, name: str) -> str:
    """Child path with no leading/trailing slashes; the root is ``""``."""
    parent = parent.strip("/")
    name = name.strip("/")
    return f"{parent}/{name}" if parent else name


def object_size(metadata: Mapping[str, Any] | None) -> int | None:
    """First finite, non-negative size found under the known metadata keys."""
    if not metadata:
        return None
    for key in OBJECT_SIZE_METADATA_KEYS:
        size = to_finite_number(metadata.get(key))
        if size is not None and size >= 0:
            return int(size)
    return None


def classify_entry(raw: Mapping[str, Any], parent: str) -> StorageEntry | None:
    """Turn a raw listing entry into a file or folder; unnamed entries are dropped."""
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        return None

    path = join_path(parent, name.strip())
    metadata = raw.get("metadata")
    if raw.get("id") is None and metadata is None:
        return StorageDirectory(path=path)

    return StorageFile(
        path=path,
        size=object_size(metadata if isinstance(metadata, Mapping) else None),
    )


class BucketUsageScanner:
    """Totals the bytes and live objects of a bucket."""

    def __init__(self, storage: StorageBackend, page_size: int = STORAGE_LIST_PAGE_SIZE):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.storage = storage
        self.page_size = page_size

    def scan(self, bucket: str, cancelled: threading.Event | None = None) -> BucketUsage:
        """Walk every folder of ``bucket`` once.

        Args:
            bucket: Bucket name.
            cancelled: Optional event; when set, the walk stops before the
                next page request.

        Returns:
            BucketUsage with the total size and object count.

        Raises:
            StorageListError: A listing call failed or the walk was cancelled.
                No partial totals are returned.
        """
        queue: deque[str] = deque([""])
        visited: set[str] = set()
        total_bytes = 0
        total_objects = 0

        while queue:
            directory = queue.popleft()
            if directory in visited:
                continue
            visited.add(directory)

            for entry in self._iter_directory(bucket, directory, cancelled):
                if isinstance(entry, StorageDirectory):
                    if entry.path not in visited:
                        queue.append(entry.path)
                    continue

                if entry.path.rsplit("/", 1)[-1] == EMPTY_FOLDER_PLACEHOLDER:
                    continue

                total_objects += 1
                if entry.size is not None:
                    total_bytes += entry.size

        logger.info(
            f"Bucket {bucket}: {total_objects} objects, {total_bytes} bytes "
            f"in {len(visited)} folders"
        )
        return BucketUsage(total_bytes=total_bytes, total_objects=total_objects)

    def _iter_directory(
        self, bucket: str, directory: str, cancelled: threading.Event | None
    ):
        offset = 0
        while True:
            if cancelled is not None and cancelled.is_set():
                raise StorageListError(bucket, directory, reason="cancelled")

            try:
                page = self.storage.list_directory(
                    bucket, directory, limit=self.page_size, offset=offset
                )
            except Exception as e:
                logger.error(f"Failed to list {bucket}/{directory} at offset {offset}: {e}")
                raise StorageListError(bucket, directory, reason=str(e)) from e

            logger.debug(f"Listed {bucket}/{directory}: {len(page)} entries at offset {offset}")
            if not page:
                return

            for raw in page:
                if not isinstance(raw, Mapping):
                    continue
                entry = classify_entry(raw, directory)
                if entry is not None:
                    yield entry

            if len(page) < self.page_size:
                return
            offset += self.page_size
