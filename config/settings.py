from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	# Application
	APP_NAME: str = 'Currency Rates API'
	DEBUG: bool = False
	LOG_LEVEL: str = 'INFO'
	LOG_JSON: bool = False

	# Cache
	CACHE_ENABLED: bool = True
	CACHE_BACKEND: str = 'memory'
	CACHE_MAX_ENTRIES: int = 10_000
	REDIS_URL: str = 'redis://localhost:6379'
	CACHE_LATEST_TTL_SECONDS: int = 300
	CACHE_CONVERT_TTL_SECONDS: int = 60
	CACHE_HISTORY_TTL_SECONDS: int = 600

	# Upstream provider
	PROVIDER_BASE_URL: str = 'https://api.frankfurter.app'
	PROVIDER_TIMEOUT_SECONDS: float = 5.0
	PROVIDER_RETRY_ATTEMPTS: int = 3
	PROVIDER_RETRY_BASE_DELAY_SECONDS: float = 0.2
	PROVIDER_RETRY_MAX_DELAY_SECONDS: float = 5.0
	CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
	CIRCUIT_BREAKER_COOLDOWN_SECONDS: int = 30

	EXCLUDED_CURRENCIES: list[str] = ['TRY', 'PLN', 'THB', 'MXN']

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')


@lru_cache
def get_settings() -> Settings:
	return Settings()
