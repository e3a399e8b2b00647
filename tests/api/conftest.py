import pytest
from fastapi.testclient import TestClient
from server.dependencies import get_service
from server.main import app
from tests.fakes import FakeSink, make_service

@pytest.fixture
def api_service():
    service = make_service(FakeSink())
    service.initialize()
    yield service
    service.drafts.cancel()

@pytest.fixture
def api_client(api_service):
    # No context manager: startup hooks would build the production service
    app.dependency_overrides[get_service] = lambda: api_service
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
