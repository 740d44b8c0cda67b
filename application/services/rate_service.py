import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from application.services.currency_guard import CurrencyGuard
from domain.exceptions.currency import InvalidDateRangeError
from domain.models.rates import ConversionResult, HistoricalRates, Page, RateSnapshot
from infrastructure.cache.rate_cache import RateCache
from infrastructure.providers.base import ExchangeRateProvider

logger = logging.getLogger(__name__)


def utc_today() -> date:
	return datetime.now(UTC).date()


@dataclass(frozen=True)
class CachePolicy:
	latest_ttl: timedelta = timedelta(seconds=300)
	convert_ttl: timedelta = timedelta(seconds=60)
	history_ttl: timedelta = timedelta(seconds=600)

	@classmethod
	def from_seconds(cls, latest: int, convert: int, history: int) -> 'CachePolicy':
		return cls(
			latest_ttl=timedelta(seconds=latest),
			convert_ttl=timedelta(seconds=convert),
			history_ttl=timedelta(seconds=history),
		)


class RateResolutionService:
	"""Cache-aside orchestration of latest, convert and historical lookups."""

	def __init__(
		self,
		provider: ExchangeRateProvider,
		cache: RateCache,
		guard: CurrencyGuard,
		cache_policy: CachePolicy | None = None,
		today: Callable[[], date] = utc_today,
	):
		self.provider = provider
		self.cache = cache
		self.guard = guard
		self.cache_policy = cache_policy or CachePolicy()
		self._today = today

	@staticmethod
	def latest_key(base_currency: str) -> str:
		return f'latest:{base_currency.upper()}'

	@staticmethod
	def convert_key(amount: Decimal, from_currency: str, to_currency: str) -> str:
		return f'convert:{from_currency.upper()}:{to_currency.upper()}:{amount}'

	@staticmethod
	def history_key(start: date, end: date, base_currency: str, page: int, page_size: int) -> str:
		return (
			f'history:{base_currency.upper()}:{start.isoformat()}:{end.isoformat()}'
			f':p{page}:s{page_size}'
		)

	async def get_latest(self, base_currency: str) -> RateSnapshot:
		self.guard.validate(base_currency)
		base = base_currency.upper()

		key = self.latest_key(base)
		cached = await self.cache.get(key, RateSnapshot)
		if cached is not None:
			return cached

		rates = await self.provider.fetch_latest(base)
		snapshot = RateSnapshot(base_currency=base, as_of_date=self._today(), rates=rates)

		await self.cache.set(key, snapshot, self.cache_policy.latest_ttl)
		logger.info(f'Resolved latest rates for {base} ({len(rates)} currencies)')
		return snapshot

	async def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> ConversionResult:
		"""Convert ``amount``; the caller guarantees it is positive."""
		self.guard.validate(from_currency)
		self.guard.validate(to_currency)
		source = from_currency.upper()
		target = to_currency.upper()

		key = self.convert_key(amount, source, target)
		cached = await self.cache.get(key, ConversionResult)
		if cached is not None:
			return cached

		unit_rate = await self.provider.fetch_conversion_rate(source, target)
		conversion = ConversionResult.build(
			amount=amount,
			from_currency=source,
			to_currency=target,
			rate=unit_rate,
			date=self._today(),
		)

		await self.cache.set(key, conversion, self.cache_policy.convert_ttl)
		logger.info(f'Converted {amount} {source} -> {target} at {unit_rate}')
		return conversion

	async def get_historical(
		self, start: date, end: date, base_currency: str, page: int, page_size: int
	) -> Page[HistoricalRates]:
		self.guard.validate(base_currency)
		if end < start:
			raise InvalidDateRangeError(f'end ({end}) must not be before start ({start})')
		base = base_currency.upper()

		key = self.history_key(start, end, base, page, page_size)
		cached = await self.cache.get(key, Page[HistoricalRates])
		if cached is not None:
			return cached

		series = await self.provider.fetch_historical(start, end, base)
		ordered = [
			HistoricalRates(date=day, rates=rates) for day, rates in sorted(series.items())
		]
		offset = (page - 1) * page_size
		result = Page[HistoricalRates](
			page_number=page,
			page_size=page_size,
			total_count=len(ordered),
			items=ordered[offset:offset + page_size],
		)

		await self.cache.set(key, result, self.cache_policy.history_ttl)
		logger.info(
			f'Resolved history for {base} {start}..{end}: '
			f'page {page} ({len(result.items)}/{result.total_count} days)'
		)
		return result
