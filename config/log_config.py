import json
import logging
import sys
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f'{type(value).__name__} is not JSON serialisable')


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    ``extra_data`` is nested under ``data``; its ``correlation_id``, when set,
    is repeated at the top level.
    """
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, UTC).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'source': f'{record.module}.{record.funcName}:{record.lineno}',
        }

        data = getattr(record, 'extra_data', None)
        if data:
            entry['data'] = data
            if data.get('correlation_id'):
                entry['correlation_id'] = data['correlation_id']

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry['exception'] = {
                'type': exc_type.__name__,
                'message': str(exc_value),
                'traceback': self.formatException(record.exc_info),
            }

        return json.dumps(entry, ensure_ascii=False, default=_json_default)


CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'


def configure_logging(level: str = 'INFO', json_logs: bool = False) -> None:
    """Install a single stdout handler on the root logger."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    logging.getLogger('httpx').setLevel(logging.WARNING)

    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    root_logger.addHandler(handler)
