from pathlib import Path

from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / ".env.test"
load_dotenv(env_file)

import pytest  # noqa: E402

from tests.utils.fakes import FakeRecordStore, FakeStorage  # noqa: E402


@pytest.fixture
def fake_storage():
    """Empty in-memory bucket listing."""
    return FakeStorage()


@pytest.fixture
def fake_record_store():
    """Record store with no rows."""
    return FakeRecordStore()
