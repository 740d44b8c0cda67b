class CurrencyException(Exception):
    pass


class InputValidationError(CurrencyException):
    pass


class InvalidCurrencyError(InputValidationError):
    def __init__(self, currency_code: str):
        self.currency_code = currency_code
        super().__init__(f"Currency '{currency_code}' is excluded")


class InvalidDateRangeError(InputValidationError):
    pass


class InvalidAmountError(InputValidationError):
    pass


class InvalidPaginationError(InputValidationError):
    pass


class ProviderError(CurrencyException):
    pass


class ProviderTimeoutError(ProviderError):
    pass


class ProviderUnavailableError(ProviderError):
    def __init__(self, message: str, circuit_open: bool = False):
        self.circuit_open = circuit_open
        super().__init__(message)


class MalformedResponseError(ProviderError):
    pass


class CurrencyNotFoundError(ProviderError):
    def __init__(self, *currency_codes: str):
        self.currency_codes = currency_codes
        super().__init__(f"Currency {' or '.join(currency_codes)} not found upstream")


class CacheError(CurrencyException):
    pass
