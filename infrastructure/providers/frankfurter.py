import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from domain.exceptions.currency import (
	CurrencyNotFoundError,
	MalformedResponseError,
	ProviderError,
	ProviderTimeoutError,
	ProviderUnavailableError,
)
from infrastructure.providers.base import ExchangeRateProvider
from infrastructure.resilience.circuit_breaker import CircuitBreakerError
from infrastructure.resilience.policy import ResiliencePolicy

logger = logging.getLogger(__name__)

UNIT_PRINCIPAL = Decimal('1')


class FrankfurterProvider(ExchangeRateProvider):
	BASE_URL = 'https://api.frankfurter.app'

	def __init__(
		self,
		policy: ResiliencePolicy,
		base_url: str | None = None,
		client: httpx.AsyncClient | None = None,
		timeout: float = 5.0,
	):
		self.base_url = (base_url or self.BASE_URL).rstrip('/')
		self.policy = policy
		self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

	@property
	def name(self) -> str:
		return 'frankfurter'

	async def _send(self, url: str, params: dict[str, str]) -> httpx.Response:
		response = await self._client.get(url, params=params)
		response.raise_for_status()
		return response

	async def _request(
		self, endpoint: str, params: dict[str, str], currency_codes: tuple[str, ...]
	) -> dict[str, Any]:
		url = f'{self.base_url}/{endpoint}'

		try:
			response = await self.policy.execute(lambda: self._send(url, params))
		except CircuitBreakerError as e:
			logger.warning(
				f'Frankfurter call short-circuited: {e}',
				extra={'extra_data': {'endpoint': endpoint, 'circuit_open': True}},
			)
			raise ProviderUnavailableError(
				f'Frankfurter circuit open, retry in {e.retry_after:.0f}s', circuit_open=True
			) from e
		except httpx.TimeoutException as e:
			self._log_exhausted(endpoint, e)
			raise ProviderTimeoutError(f'Frankfurter timed out on {endpoint}') from e
		except httpx.TransportError as e:
			self._log_exhausted(endpoint, e)
			raise ProviderUnavailableError(f'Frankfurter request failed: {e.__class__.__name__}') from e
		except httpx.HTTPStatusError as e:
			status_code = e.response.status_code
			if status_code >= 500:
				self._log_exhausted(endpoint, e)
				raise ProviderUnavailableError(f'Frankfurter HTTP error {status_code}') from e
			if status_code == 404:
				raise CurrencyNotFoundError(*currency_codes) from e
			raise ProviderError(
				f'Frankfurter HTTP error {status_code}: {e.response.text[:200]}'
			) from e
		except httpx.DecodingError as e:
			raise MalformedResponseError(f'Frankfurter sent an undecodable body for {endpoint}') from e
		except httpx.RequestError as e:
			raise ProviderError(f'Frankfurter request to {endpoint} failed: {e.__class__.__name__}') from e

		try:
			data = response.json()
		except ValueError as e:
			raise MalformedResponseError(f'Frankfurter returned invalid JSON for {endpoint}') from e

		if not isinstance(data, dict) or not isinstance(data.get('rates'), dict):
			raise MalformedResponseError(f'Frankfurter response for {endpoint} has no rates object')
		return data

	def _log_exhausted(self, endpoint: str, error: Exception) -> None:
		logger.error(
			f'Frankfurter {endpoint} failed after {self.policy.retry_attempts} attempts: '
			f'{error.__class__.__name__}',
			extra={'extra_data': {'endpoint': endpoint, 'circuit_open': False}},
		)

	@staticmethod
	def _parse_rates(raw_rates: Any) -> dict[str, Decimal]:
		if not isinstance(raw_rates, dict):
			raise MalformedResponseError('Rates must be an object keyed by currency code')

		rates: dict[str, Decimal] = {}
		for code, value in raw_rates.items():
			try:
				rate = Decimal(str(value))
			except InvalidOperation as e:
				raise MalformedResponseError(f'Rate for {code} is not numeric: {value!r}') from e
			if not rate.is_finite() or rate <= 0:
				raise MalformedResponseError(f'Rate for {code} must be positive, got {value!r}')
			rates[str(code).upper()] = rate
		return rates

	async def fetch_latest(self, base_currency: str) -> dict[str, Decimal]:
		base = base_currency.upper()
		data = await self._request('latest', {'from': base}, currency_codes=(base,))
		return self._parse_rates(data['rates'])

	async def fetch_conversion_rate(self, from_currency: str, to_currency: str) -> Decimal:
		source = from_currency.upper()
		target = to_currency.upper()
		data = await self._request(
			'latest',
			{'amount': str(UNIT_PRINCIPAL), 'from': source, 'to': target},
			currency_codes=(source, target),
		)
		rates = self._parse_rates(data['rates'])
		if target not in rates:
			raise CurrencyNotFoundError(target)

		# Upstream answers with the converted principal, not a rate
		try:
			principal = Decimal(str(data.get('amount', UNIT_PRINCIPAL)))
		except InvalidOperation as e:
			raise MalformedResponseError(f'Amount is not numeric: {data.get("amount")!r}') from e
		if principal <= 0:
			raise MalformedResponseError(f'Amount must be positive, got {principal}')
		return rates[target] / principal

	async def fetch_historical(
		self, start: date, end: date, base_currency: str
	) -> dict[date, dict[str, Decimal]]:
		base = base_currency.upper()
		data = await self._request(
			f'{start.isoformat()}..{end.isoformat()}', {'from': base}, currency_codes=(base,)
		)

		series: dict[date, dict[str, Decimal]] = {}
		for day, day_rates in data['rates'].items():
			try:
				parsed_day = date.fromisoformat(day)
			except (TypeError, ValueError):
				logger.warning(f'Skipping unparseable date key {day!r} in history for {base}')
				continue
			series[parsed_day] = self._parse_rates(day_rates)
		return series

	async def close(self) -> None:
		await self._client.aclose()
