from collections.abc import Iterable

from domain.exceptions.currency import InvalidCurrencyError

EXCLUDED_CURRENCIES = frozenset({'TRY', 'PLN', 'THB', 'MXN'})


class CurrencyGuard:
	"""Rejects currency codes on a fixed denylist.

	This is an exclusion check, not an allowlist: a code that is not excluded
	is passed through and left for the upstream provider to resolve.
	"""

	def __init__(self, excluded: Iterable[str] = EXCLUDED_CURRENCIES):
		self.excluded = frozenset(code.upper() for code in excluded)

	def is_excluded(self, code: str) -> bool:
		return code.upper() in self.excluded

	def validate(self, code: str) -> None:
		if self.is_excluded(code):
			raise InvalidCurrencyError(code.upper())
