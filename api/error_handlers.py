import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.currency import (
	InputValidationError,
	ProviderError,
	ProviderTimeoutError,
	ProviderUnavailableError,
)

logger = logging.getLogger(__name__)


def internal_error_response(exc: Exception, correlation_id: str | None = None) -> JSONResponse:
	logger.error(
		f'Unhandled exception: {exc}',
		exc_info=exc,
		extra={'extra_data': {'correlation_id': correlation_id}},
	)
	return JSONResponse(status_code=500, content={'detail': 'Internal server error'})


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(InputValidationError)
	async def input_validation_handler(request: Request, exc: InputValidationError):
		return JSONResponse(status_code=400, content={'detail': str(exc)})

	@app.exception_handler(ProviderError)
	async def provider_error_handler(request: Request, exc: ProviderError):
		circuit_open = isinstance(exc, ProviderUnavailableError) and exc.circuit_open
		logger.error(
			f'Provider error on {request.url.path}: {exc}',
			extra={'extra_data': {'error_type': exc.__class__.__name__, 'circuit_open': circuit_open}},
		)
		if isinstance(exc, ProviderTimeoutError):
			return JSONResponse(
				status_code=504, content={'detail': 'Exchange rate service timed out'}
			)
		return JSONResponse(
			status_code=503, content={'detail': 'Exchange rate service unavailable'}
		)

	@app.exception_handler(Exception)
	async def global_exception_handler(request: Request, exc: Exception):
		return internal_error_response(exc)
