from .currency_guard import CurrencyGuard
from .rate_service import CachePolicy, RateResolutionService

__all__ = ['CachePolicy', 'CurrencyGuard', 'RateResolutionService']
