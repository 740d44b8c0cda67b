from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_rate_service
from application.services import RateResolutionService
from domain.exceptions.currency import InvalidAmountError
from domain.models.rates import ConversionResult

router = APIRouter(prefix='/api/v1', tags=['convert'])


@router.get(
	'/convert',
	response_model=ConversionResult,
	status_code=status.HTTP_200_OK,
	summary='Convert an amount between currencies',
)
async def convert_currency(
	amount: Decimal,
	from_currency: Annotated[str, Query(alias='from', min_length=1, max_length=10)],
	to_currency: Annotated[str, Query(alias='to', min_length=1, max_length=10)],
	service: Annotated[RateResolutionService, Depends(get_rate_service)],
) -> ConversionResult:
	if not amount.is_finite() or amount <= 0:
		raise InvalidAmountError('amount must be > 0')
	return await service.convert(amount, from_currency, to_currency)
