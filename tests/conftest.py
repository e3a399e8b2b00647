import pytest
from reminders.store import MemoryPreferencesStorage, PreferencesStore
from tests.fakes import FakeSink, make_service

@pytest.fixture
def sink():
    return FakeSink()

@pytest.fixture
def store():
    s = PreferencesStore(MemoryPreferencesStorage())
    s.load()
    return s

@pytest.fixture
def service(sink):
    svc = make_service(sink)
    svc.initialize()
    yield svc
    svc.drafts.cancel()
