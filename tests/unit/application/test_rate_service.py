from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from application.services import CachePolicy, CurrencyGuard, RateResolutionService
from domain.exceptions.currency import (
    CacheError,
    InputValidationError,
    InvalidCurrencyError,
    InvalidDateRangeError,
    ProviderUnavailableError,
)
from domain.models.rates import ConversionResult, HistoricalRates, Page, RateSnapshot
from infrastructure.cache.base import CacheStore
from infrastructure.cache.memory_cache import InMemoryCacheStore
from infrastructure.cache.rate_cache import RateCache
from infrastructure.providers.base import ExchangeRateProvider

TODAY = date(2025, 11, 5)

FIVE_DAY_HISTORY = {
    date(2024, 1, 3): {'USD': Decimal('1.3')},
    date(2024, 1, 1): {'USD': Decimal('1.1')},
    date(2024, 1, 5): {'USD': Decimal('1.5')},
    date(2024, 1, 2): {'USD': Decimal('1.2')},
    date(2024, 1, 4): {'USD': Decimal('1.4')},
}


@pytest.fixture
def provider():
    mock_provider = AsyncMock(spec=ExchangeRateProvider)
    mock_provider.fetch_latest.return_value = {'USD': Decimal('1.12'), 'GBP': Decimal('0.85')}
    mock_provider.fetch_conversion_rate.return_value = Decimal('0.8')
    mock_provider.fetch_historical.return_value = dict(FIVE_DAY_HISTORY)
    return mock_provider


def make_service(provider, cache_enabled=True, store=None, cache_policy=None):
    cache = RateCache(store or InMemoryCacheStore(), enabled=cache_enabled)
    return RateResolutionService(
        provider=provider,
        cache=cache,
        guard=CurrencyGuard(),
        cache_policy=cache_policy,
        today=lambda: TODAY,
    )


class TestGetLatest:

    @pytest.mark.asyncio
    async def test_returns_snapshot_stamped_with_today(self, provider):
        service = make_service(provider)

        result = await service.get_latest('EUR')

        assert result == RateSnapshot(
            base_currency='EUR',
            as_of_date=TODAY,
            rates={'USD': Decimal('1.12'), 'GBP': Decimal('0.85')},
        )
        provider.fetch_latest.assert_awaited_once_with('EUR')

    @pytest.mark.asyncio
    async def test_normalises_base_to_uppercase(self, provider):
        service = make_service(provider)

        result = await service.get_latest('eur')

        assert result.base_currency == 'EUR'
        provider.fetch_latest.assert_awaited_once_with('EUR')

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, provider):
        service = make_service(provider)

        first = await service.get_latest('EUR')
        second = await service.get_latest('eur')

        assert second == first
        assert provider.fetch_latest.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_disabled_calls_provider_each_time(self, provider):
        service = make_service(provider, cache_enabled=False)

        await service.get_latest('EUR')
        await service.get_latest('EUR')

        assert provider.fetch_latest.await_count == 2

    @pytest.mark.asyncio
    async def test_uses_latest_ttl(self, provider):
        store = AsyncMock(spec=CacheStore)
        store.get.return_value = None
        policy = CachePolicy(latest_ttl=timedelta(seconds=42))
        service = make_service(provider, store=store, cache_policy=policy)

        await service.get_latest('EUR')

        key, _, ttl = store.set.call_args[0]
        assert key == 'latest:EUR'
        assert ttl == timedelta(seconds=42)

    @pytest.mark.asyncio
    async def test_cache_fault_falls_through_to_provider(self, provider):
        store = AsyncMock(spec=CacheStore)
        store.get.side_effect = CacheError('down')
        store.set.side_effect = CacheError('down')
        service = make_service(provider, store=store)

        result = await service.get_latest('EUR')

        assert result.rates['USD'] == Decimal('1.12')
        provider.fetch_latest.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self, provider):
        provider.fetch_latest.side_effect = ProviderUnavailableError('down', circuit_open=True)
        service = make_service(provider)

        with pytest.raises(ProviderUnavailableError):
            await service.get_latest('EUR')


class TestConvert:

    @pytest.mark.asyncio
    async def test_result_is_amount_times_unit_rate(self, provider):
        service = make_service(provider)

        result = await service.convert(Decimal('10'), 'USD', 'GBP')

        assert result.result == Decimal('8.0')
        assert result.rate == Decimal('0.8')
        assert result.amount == Decimal('10')
        assert result.from_currency == 'USD'
        assert result.to_currency == 'GBP'
        assert result.date == TODAY
        provider.fetch_conversion_rate.assert_awaited_once_with('USD', 'GBP')

    @pytest.mark.asyncio
    async def test_rate_is_independent_of_amount(self, provider):
        service = make_service(provider, cache_enabled=False)

        one = await service.convert(Decimal('1'), 'USD', 'GBP')
        ten = await service.convert(Decimal('10'), 'USD', 'GBP')

        assert one.rate == ten.rate
        assert ten.result == Decimal('10') * one.rate
        for call in provider.fetch_conversion_rate.await_args_list:
            assert call.args == ('USD', 'GBP')

    @pytest.mark.asyncio
    async def test_identical_conversion_hits_cache(self, provider):
        service = make_service(provider)

        first = await service.convert(Decimal('10'), 'usd', 'gbp')
        second = await service.convert(Decimal('10'), 'USD', 'GBP')

        assert second == first
        assert isinstance(second, ConversionResult)
        assert provider.fetch_conversion_rate.await_count == 1

    @pytest.mark.asyncio
    async def test_distinct_amounts_are_cached_independently(self, provider):
        service = make_service(provider)

        await service.convert(Decimal('10'), 'USD', 'GBP')
        await service.convert(Decimal('20'), 'USD', 'GBP')

        assert provider.fetch_conversion_rate.await_count == 2

    def test_convert_key_includes_amount_verbatim(self):
        key = RateResolutionService.convert_key(Decimal('10.50'), 'usd', 'gbp')

        assert key == 'convert:USD:GBP:10.50'


class TestGetHistorical:

    @pytest.mark.asyncio
    async def test_paginates_sorted_series(self, provider):
        service = make_service(provider)

        result = await service.get_historical(date(2024, 1, 1), date(2024, 1, 5), 'EUR', 2, 2)

        assert result.page_number == 2
        assert result.page_size == 2
        assert result.total_count == 5
        assert [item.date for item in result.items] == [date(2024, 1, 3), date(2024, 1, 4)]
        assert result.items[0].rates == {'USD': Decimal('1.3')}

    @pytest.mark.asyncio
    async def test_last_partial_page(self, provider):
        service = make_service(provider)

        result = await service.get_historical(date(2024, 1, 1), date(2024, 1, 5), 'EUR', 3, 2)

        assert [item.date for item in result.items] == [date(2024, 1, 5)]
        assert result.total_count == 5

    @pytest.mark.asyncio
    async def test_page_beyond_range_is_empty(self, provider):
        service = make_service(provider)

        result = await service.get_historical(date(2024, 1, 1), date(2024, 1, 5), 'EUR', 10, 2)

        assert result.items == []
        assert result.total_count == 5

    @pytest.mark.asyncio
    async def test_end_before_start_fails_before_cache_or_provider(self, provider):
        store = AsyncMock(spec=CacheStore)
        service = make_service(provider, store=store)

        with pytest.raises(InvalidDateRangeError):
            await service.get_historical(date(2024, 1, 5), date(2024, 1, 1), 'EUR', 1, 10)

        store.get.assert_not_called()
        store.set.assert_not_called()
        provider.fetch_historical.assert_not_called()

    @pytest.mark.asyncio
    async def test_single_day_range_is_valid(self, provider):
        provider.fetch_historical.return_value = {date(2024, 1, 1): {'USD': Decimal('1.1')}}
        service = make_service(provider)

        result = await service.get_historical(date(2024, 1, 1), date(2024, 1, 1), 'EUR', 1, 10)

        assert result.total_count == 1

    @pytest.mark.asyncio
    async def test_each_page_is_cached_independently(self, provider):
        service = make_service(provider)

        first = await service.get_historical(date(2024, 1, 1), date(2024, 1, 5), 'EUR', 1, 2)
        again = await service.get_historical(date(2024, 1, 1), date(2024, 1, 5), 'eur', 1, 2)
        await service.get_historical(date(2024, 1, 1), date(2024, 1, 5), 'EUR', 2, 2)

        assert again == first
        assert isinstance(again, Page)
        assert all(isinstance(item, HistoricalRates) for item in again.items)
        assert provider.fetch_historical.await_count == 2

    @pytest.mark.asyncio
    async def test_caches_page_under_history_key_with_history_ttl(self, provider):
        store = AsyncMock(spec=CacheStore)
        store.get.return_value = None
        policy = CachePolicy(history_ttl=timedelta(seconds=60))
        service = make_service(provider, store=store, cache_policy=policy)

        await service.get_historical(date(2024, 1, 1), date(2024, 1, 5), 'eur', 2, 2)

        key, _, ttl = store.set.call_args[0]
        assert key == 'history:EUR:2024-01-01:2024-01-05:p2:s2'
        assert ttl == timedelta(seconds=60)


class TestExcludedCurrencies:

    @pytest.mark.asyncio
    @pytest.mark.parametrize('code', ['TRY', 'pln', 'Thb', 'MXN'])
    async def test_all_operations_reject_excluded_codes_without_provider_calls(self, provider, code):
        service = make_service(provider)

        with pytest.raises(InvalidCurrencyError):
            await service.get_latest(code)
        with pytest.raises(InvalidCurrencyError):
            await service.convert(Decimal('10'), code, 'USD')
        with pytest.raises(InvalidCurrencyError):
            await service.convert(Decimal('10'), 'USD', code)
        with pytest.raises(InputValidationError):
            await service.get_historical(date(2024, 1, 1), date(2024, 1, 5), code, 1, 10)

        provider.fetch_latest.assert_not_called()
        provider.fetch_conversion_rate.assert_not_called()
        provider.fetch_historical.assert_not_called()
