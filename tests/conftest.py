import pytest

from config import SyncConfig

from fakes import FakeDirectory, RecordingReporter


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def config():
    return SyncConfig(
        tenant_id="tenant",
        client_id="client",
        client_secret="secret",
        group_prefix="Test-Roles-",
        page_size=2,
    )
