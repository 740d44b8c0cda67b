import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.dependencies import cleanup_dependencies, init_dependencies
from api.error_handlers import register_exception_handlers
from api.middleware import register_request_logging
from api.routes import convert, health, rates
from config.log_config import configure_logging
from config.settings import get_settings

logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
	configure_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
	logger.info(f'Starting {settings.APP_NAME}...')

	init_dependencies(settings)
	logger.info('Application ready')

	yield

	logger.info('Shutting down...')
	await cleanup_dependencies()


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)

register_request_logging(app)
register_exception_handlers(app)

app.include_router(rates.router)
app.include_router(convert.router)
app.include_router(health.router)


if __name__ == '__main__':
	import uvicorn

	uvicorn.run('api.main:app', host='0.0.0.0', port=8000)
