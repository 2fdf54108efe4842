"""Tests for the bucket listing backends."""

from unittest.mock import MagicMock

import pytest

from app.core.storage import LocalStorage, SupabaseStorage
from app.storage.services.bucket_scanner import BucketUsage, BucketUsageScanner


@pytest.fixture
def local_bucket(tmp_path):
    root = tmp_path / "fotos"
    (root / "2024" / "05").mkdir(parents=True)
    (root / "root.jpg").write_bytes(b"x" * 100)
    (root / "2024" / "a.jpg").write_bytes(b"x" * 250)
    (root / "2024" / "05" / "b.jpg").write_bytes(b"x" * 650)
    (root / "2024" / "05" / ".emptyFolderPlaceholder").write_bytes(b"")
    return tmp_path


class TestLocalStorage:
    def test_lists_one_level_sorted(self, local_bucket):
        storage = LocalStorage(str(local_bucket))

        entries = storage.list_directory("fotos", "", limit=100, offset=0)

        assert [e["name"] for e in entries] == ["2024", "root.jpg"]
        assert entries[0] == {"name": "2024", "id": None, "metadata": None}
        assert entries[1]["id"] == "root.jpg"
        assert entries[1]["metadata"]["size"] == 100

    def test_nested_file_id_is_bucket_relative(self, local_bucket):
        storage = LocalStorage(str(local_bucket))

        entries = storage.list_directory("fotos", "2024/05", limit=100, offset=0)

        by_name = {e["name"]: e for e in entries}
        assert by_name["b.jpg"]["id"] == "2024/05/b.jpg"
        assert by_name["b.jpg"]["metadata"]["size"] == 650

    def test_pagination(self, local_bucket):
        storage = LocalStorage(str(local_bucket))

        first = storage.list_directory("fotos", "2024", limit=1, offset=0)
        second = storage.list_directory("fotos", "2024", limit=1, offset=1)
        third = storage.list_directory("fotos", "2024", limit=1, offset=2)

        assert [e["name"] for e in first] == ["05"]
        assert [e["name"] for e in second] == ["a.jpg"]
        assert third == []

    def test_missing_directory_is_empty(self, local_bucket):
        storage = LocalStorage(str(local_bucket))

        assert storage.list_directory("fotos", "nope", limit=10, offset=0) == []
        assert storage.list_directory("otro-bucket", "", limit=10, offset=0) == []

    def test_rejects_path_traversal(self, local_bucket):
        storage = LocalStorage(str(local_bucket))

        with pytest.raises(ValueError, match="Path traversal"):
            storage.list_directory("fotos", "../..", limit=10, offset=0)

    def test_scanner_totals_local_bucket(self, local_bucket):
        scanner = BucketUsageScanner(LocalStorage(str(local_bucket)), page_size=2)

        assert scanner.scan("fotos") == BucketUsage(total_bytes=1000, total_objects=3)


class TestSupabaseStorage:
    def test_lists_with_page_and_name_order(self):
        client = MagicMock()
        client.storage.from_.return_value.list.return_value = [
            {"name": "a.jpg", "id": "1", "metadata": {"size": 10}}
        ]
        storage = SupabaseStorage(client)

        entries = storage.list_directory("fotos", "2024", limit=1000, offset=2000)

        client.storage.from_.assert_called_once_with("fotos")
        client.storage.from_.return_value.list.assert_called_once_with(
            "2024",
            {"limit": 1000, "offset": 2000, "sortBy": {"column": "name", "order": "asc"}},
        )
        assert entries == [{"name": "a.jpg", "id": "1", "metadata": {"size": 10}}]

    def test_none_listing_is_empty(self):
        client = MagicMock()
        client.storage.from_.return_value.list.return_value = None

        assert SupabaseStorage(client).list_directory("fotos", "", limit=10, offset=0) == []
