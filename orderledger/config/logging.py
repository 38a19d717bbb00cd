# orderledger/config/logging.py
import logging
import logging.config
import os
from datetime import datetime, timezone
from typing import Dict, Any
from .settings import get_settings

settings = get_settings()

# Custom formatter with colors for console output
class ColoredFormatter(logging.Formatter):
    """Custom formatter with color coding for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record):
        levelname = record.levelname
        color = self.COLORS.get(levelname, self.COLORS['RESET'])
        record.levelname = f"{color}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname

# JSON formatter for structured logging
class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record):
        import json
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if hasattr(record, 'request_id'):
            log_entry['request_id'] = record.request_id
        if hasattr(record, 'tenant_id'):
            log_entry['tenant_id'] = record.tenant_id
        if hasattr(record, 'scope'):
            log_entry['scope'] = record.scope
        if hasattr(record, 'duration'):
            log_entry['duration'] = record.duration

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def build_logging_config() -> Dict[str, Any]:
    """Build the dictConfig payload; file handlers are only attached when LOG_FILE is set."""
    console_handlers = ['console']
    file_handlers = []
    handlers: Dict[str, Any] = {
        'console': {
            'level': 'DEBUG' if settings.DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'colored' if settings.DEBUG else 'standard',
            'stream': 'ext://sys.stdout'
        },
    }

    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE) or "."
        os.makedirs(log_dir, exist_ok=True)
        handlers['file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'detailed',
            'filename': settings.LOG_FILE,
            'maxBytes': 10485760,  # 10MB
            'backupCount': 5,
            'encoding': 'utf8'
        }
        handlers['security_file'] = {
            'level': 'WARNING',
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'json' if not settings.DEBUG else 'detailed',
            'filename': os.path.join(log_dir, 'security.log'),
            'maxBytes': 10485760,  # 10MB
            'backupCount': 10,
            'encoding': 'utf8'
        }
        file_handlers = ['file']

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': settings.LOG_FORMAT,
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'detailed': {
                'format': '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(funcName)s(): %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'colored': {
                '()': ColoredFormatter,
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'json': {
                '()': JSONFormatter
            }
        },
        'handlers': handlers,
        'loggers': {
            '': {  # Root logger
                'handlers': console_handlers + file_handlers,
                'level': settings.LOG_LEVEL,
                'propagate': False
            },
            'uvicorn.access': {
                'handlers': console_handlers,
                'level': 'INFO',
                'propagate': False
            },
            'sqlalchemy.engine': {
                'handlers': file_handlers or console_handlers,
                'level': 'INFO' if settings.DEBUG else 'WARNING',
                'propagate': False
            },
            'api': {
                'handlers': console_handlers + file_handlers,
                'level': 'INFO',
                'propagate': False
            },
            'security': {
                'handlers': console_handlers + (['security_file'] if file_handlers else []),
                'level': 'WARNING',
                'propagate': False
            },
            'orderledger': {
                'handlers': console_handlers + file_handlers,
                'level': 'DEBUG' if settings.DEBUG else settings.LOG_LEVEL,
                'propagate': False
            }
        }
    }

def setup_logging():
    """Setup logging configuration."""
    logging.config.dictConfig(build_logging_config())

    logging.getLogger("multipart").setLevel(logging.WARNING)
    if not settings.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)

def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)

def log_api_request(request_id: str, method: str, path: str, tenant_id: str = None):
    """Log API request information."""
    logger = get_logger("api")
    extra = {'request_id': request_id}
    if tenant_id:
        extra['tenant_id'] = tenant_id
    logger.info(f"{method} {path}", extra=extra)

def log_api_response(request_id: str, status_code: int, duration: float):
    """Log API response information."""
    logger = get_logger("api")
    extra = {'request_id': request_id, 'duration': duration}
    logger.info(f"Response: {status_code} ({duration:.3f}s)", extra=extra)

def log_security_event(event_type: str, tenant_id: str = None, details: str = None, scope: str = None):
    """Log security-related events."""
    logger = get_logger("security")
    extra = {}
    if tenant_id:
        extra['tenant_id'] = tenant_id
    if scope:
        extra['scope'] = scope

    message = f"Security Event: {event_type}"
    if details:
        message += f" - {details}"

    logger.warning(message, extra=extra)

def log_database_operation(operation: str, table: str, duration: float = None, row_count: int = None):
    """Log database operations."""
    logger = get_logger("orderledger.database")
    extra = {}
    if duration:
        extra['duration'] = duration

    message = f"DB Operation: {operation} - Table: {table}"
    if row_count:
        message += f" - Rows: {row_count}"

    logger.info(message, extra=extra)

# Performance logging decorator
def log_performance(logger_name: str = "orderledger.performance"):
    """Decorator to log function performance."""
    def decorator(func):
        import functools
        import time

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(logger_name)
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
                duration = time.time() - start_time
                logger.debug(f"{func.__name__} completed in {duration:.3f}s")
                return result
            except Exception as e:
                duration = time.time() - start_time
                logger.error(f"{func.__name__} failed after {duration:.3f}s: {str(e)}")
                raise
        return wrapper
    return decorator

# Export commonly used functions
__all__ = [
    "setup_logging",
    "get_logger",
    "log_api_request",
    "log_api_response",
    "log_security_event",
    "log_database_operation",
    "log_performance"
]
