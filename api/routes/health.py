from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_circuit_breaker, get_rate_cache
from api.schemas import HealthResponse
from config.settings import get_settings
from infrastructure.cache.rate_cache import RateCache
from infrastructure.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerState

router = APIRouter(tags=['health'])


@router.get('/health', response_model=HealthResponse, summary='Service heartbeat')
async def health_check(
	circuit_breaker: Annotated[CircuitBreaker, Depends(get_circuit_breaker)],
	cache: Annotated[RateCache, Depends(get_rate_cache)],
) -> HealthResponse:
	breaker_status = circuit_breaker.get_status()
	degraded = circuit_breaker.state != CircuitBreakerState.CLOSED
	return HealthResponse(
		status='Degraded' if degraded else 'Healthy',
		service=get_settings().APP_NAME,
		timestamp=datetime.now(UTC),
		cache_enabled=cache.enabled,
		circuit_breaker=breaker_status,
	)
