from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal


class ExchangeRateProvider(ABC):
    """Upstream rate source consumed by RateResolutionService."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def fetch_latest(self, base_currency: str) -> dict[str, Decimal]:
        ...

    @abstractmethod
    async def fetch_conversion_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Rate for one unit of ``from_currency`` expressed in ``to_currency``."""

    @abstractmethod
    async def fetch_historical(
        self, start: date, end: date, base_currency: str
    ) -> dict[date, dict[str, Decimal]]:
        """Rates keyed by date. Ordering is not guaranteed."""

    async def close(self) -> None:
        return None
