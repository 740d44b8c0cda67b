from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_circuit_breaker, get_rate_cache, get_rate_service
from api.main import app
from application.services import RateResolutionService
from infrastructure.resilience.circuit_breaker import CircuitBreaker


@pytest.fixture
def mock_rate_service():
    return AsyncMock(spec=RateResolutionService)


@pytest.fixture
def circuit_breaker():
    return CircuitBreaker(name='frankfurter', failure_threshold=5, recovery_timeout=30)


@pytest.fixture
def mock_rate_cache():
    mock_cache = MagicMock()
    mock_cache.enabled = True
    return mock_cache


@pytest.fixture
def client(mock_rate_service, circuit_breaker, mock_rate_cache):
    # Override the real dependencies with mocks
    app.dependency_overrides[get_rate_service] = lambda: mock_rate_service
    app.dependency_overrides[get_circuit_breaker] = lambda: circuit_breaker
    app.dependency_overrides[get_rate_cache] = lambda: mock_rate_cache
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
