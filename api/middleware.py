import logging
import time
import uuid

from fastapi import FastAPI, Request

from api.error_handlers import internal_error_response

logger = logging.getLogger('api.requests')

CORRELATION_HEADER = 'x-correlation-id'


def register_request_logging(app: FastAPI) -> None:
	@app.middleware('http')
	async def log_requests(request: Request, call_next):
		correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
		start_time = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			response = internal_error_response(exc, correlation_id)

		response_time = (time.perf_counter() - start_time) * 1000
		response.headers[CORRELATION_HEADER] = correlation_id
		logger.info(
			f'{request.method} {request.url.path} -> {response.status_code} in {response_time:.2f}ms',
			extra={'extra_data': {'correlation_id': correlation_id}},
		)
		return response
