from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_rate_service
from application.services import RateResolutionService
from domain.exceptions.currency import InvalidPaginationError
from domain.models.rates import HistoricalRates, Page, RateSnapshot

router = APIRouter(prefix='/api/v1/rates', tags=['rates'])


@router.get(
	'/latest',
	response_model=RateSnapshot,
	status_code=status.HTTP_200_OK,
	summary='Latest exchange rates for a base currency',
)
async def get_latest_rates(
	service: Annotated[RateResolutionService, Depends(get_rate_service)],
	base: Annotated[str, Query(min_length=1, max_length=10)] = 'EUR',
) -> RateSnapshot:
	return await service.get_latest(base)


@router.get(
	'/history',
	response_model=Page[HistoricalRates],
	status_code=status.HTTP_200_OK,
	summary='Paginated historical rates over a date range',
)
async def get_historical_rates(
	start: date,
	end: date,
	service: Annotated[RateResolutionService, Depends(get_rate_service)],
	base: Annotated[str, Query(min_length=1, max_length=10)] = 'EUR',
	page: int = 1,
	page_size: Annotated[int, Query(alias='pageSize')] = 10,
) -> Page[HistoricalRates]:
	if page <= 0 or page_size <= 0:
		raise InvalidPaginationError('page and pageSize must be > 0')
	return await service.get_historical(start, end, base, page, page_size)
