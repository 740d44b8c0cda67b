from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
	status: str = Field(..., description='Healthy, or Degraded while the circuit is not closed')
	service: str = Field(..., description='Service name')
	timestamp: datetime = Field(..., description='Server time of the check')
	cache_enabled: bool = Field(..., description='Whether rate caching is active')
	circuit_breaker: dict[str, Any] = Field(..., description='Upstream circuit breaker status')

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'status': 'Healthy',
				'service': 'Currency Rates API',
				'timestamp': '2025-09-27T10:30:00Z',
				'cache_enabled': True,
				'circuit_breaker': {'name': 'frankfurter', 'state': 'CLOSED', 'failure_count': 0},
			}
		}
	)
