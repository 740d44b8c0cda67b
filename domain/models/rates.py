import datetime as dt
from decimal import Decimal
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar('T')


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RateSnapshot(_FrozenModel):
    base_currency: str = Field(..., alias='baseCurrency', description='Base currency code')
    as_of_date: dt.date = Field(..., alias='asOfDate', description='Date the rates were resolved')
    rates: dict[str, Decimal] = Field(..., description='Rate per currency code')


class ConversionResult(_FrozenModel):
    from_currency: str = Field(..., alias='from', description='Source currency code')
    to_currency: str = Field(..., alias='to', description='Target currency code')
    amount: Decimal = Field(..., description='Amount in the source currency')
    rate: Decimal = Field(..., description='Unit rate from source to target')
    result: Decimal = Field(..., description='amount * rate')
    date: dt.date = Field(..., description='Date the rate was resolved')

    @classmethod
    def build(
        cls, amount: Decimal, from_currency: str, to_currency: str, rate: Decimal, date: dt.date
    ) -> 'ConversionResult':
        return cls(
            from_currency=from_currency,
            to_currency=to_currency,
            amount=amount,
            rate=rate,
            result=amount * rate,
            date=date,
        )


class HistoricalRates(_FrozenModel):
    date: dt.date
    rates: dict[str, Decimal]


class Page(_FrozenModel, Generic[T]):
    page_number: int = Field(..., alias='pageNumber', ge=1)
    page_size: int = Field(..., alias='pageSize', ge=1)
    total_count: int = Field(..., alias='totalCount', ge=0)
    items: list[T]
