import logging
from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from application.services import CachePolicy, CurrencyGuard, RateResolutionService
from config.settings import Settings, get_settings
from infrastructure.cache.base import CacheStore
from infrastructure.cache.memory_cache import InMemoryCacheStore
from infrastructure.cache.rate_cache import RateCache
from infrastructure.cache.redis_cache import RedisCacheStore
from infrastructure.providers import ExchangeRateProvider, FrankfurterProvider
from infrastructure.resilience.circuit_breaker import CircuitBreaker
from infrastructure.resilience.policy import ResiliencePolicy, is_transient_error

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	cache_store: CacheStore | None = None
	rate_cache: RateCache | None = None
	circuit_breaker: CircuitBreaker | None = None
	provider: ExchangeRateProvider | None = None
	guard: CurrencyGuard | None = None
	cache_policy: CachePolicy | None = None


deps = AppDependencies()


def build_cache_store(settings: Settings) -> CacheStore:
	if settings.CACHE_BACKEND == 'redis':
		return RedisCacheStore(Redis.from_url(settings.REDIS_URL, decode_responses=True))
	if settings.CACHE_BACKEND != 'memory':
		raise ValueError(f'Unknown CACHE_BACKEND: {settings.CACHE_BACKEND}')
	return InMemoryCacheStore(max_entries=settings.CACHE_MAX_ENTRIES or None)


def init_dependencies(settings: Settings | None = None) -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = settings or get_settings()

	deps.cache_store = build_cache_store(settings)
	deps.rate_cache = RateCache(deps.cache_store, enabled=settings.CACHE_ENABLED)
	deps.circuit_breaker = CircuitBreaker(
		name='frankfurter',
		failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
		recovery_timeout=settings.CIRCUIT_BREAKER_COOLDOWN_SECONDS,
		is_failure=is_transient_error,
	)
	policy = ResiliencePolicy(
		circuit_breaker=deps.circuit_breaker,
		retry_attempts=settings.PROVIDER_RETRY_ATTEMPTS,
		base_delay=settings.PROVIDER_RETRY_BASE_DELAY_SECONDS,
		max_delay=settings.PROVIDER_RETRY_MAX_DELAY_SECONDS,
	)
	deps.provider = FrankfurterProvider(
		policy=policy,
		base_url=settings.PROVIDER_BASE_URL,
		timeout=settings.PROVIDER_TIMEOUT_SECONDS,
	)
	deps.guard = CurrencyGuard(settings.EXCLUDED_CURRENCIES)
	deps.cache_policy = CachePolicy.from_seconds(
		latest=settings.CACHE_LATEST_TTL_SECONDS,
		convert=settings.CACHE_CONVERT_TTL_SECONDS,
		history=settings.CACHE_HISTORY_TTL_SECONDS,
	)
	logger.info(
		f'Dependencies initialized (cache={settings.CACHE_BACKEND}, enabled={settings.CACHE_ENABLED})'
	)


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.provider:
		await deps.provider.close()
	if deps.cache_store:
		await deps.cache_store.close()

	logger.info('Cleanup complete')


def get_rate_cache() -> RateCache:
	if deps.rate_cache is None:
		raise RuntimeError('Rate cache not initialized')
	return deps.rate_cache


def get_circuit_breaker() -> CircuitBreaker:
	if deps.circuit_breaker is None:
		raise RuntimeError('Circuit breaker not initialized')
	return deps.circuit_breaker


def get_provider() -> ExchangeRateProvider:
	if deps.provider is None:
		raise RuntimeError('Provider not initialized')
	return deps.provider


def get_rate_service(
	provider: Annotated[ExchangeRateProvider, Depends(get_provider)],
	cache: Annotated[RateCache, Depends(get_rate_cache)],
) -> RateResolutionService:
	if deps.guard is None:
		raise RuntimeError('Dependencies not initialized. Call init_dependencies() first.')
	return RateResolutionService(
		provider=provider,
		cache=cache,
		guard=deps.guard,
		cache_policy=deps.cache_policy,
	)
