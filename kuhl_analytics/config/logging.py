"""
Logging Configuration for KÜHL Merchandising Analytics

structlog in front of the standard library: JSON lines outside development,
colored console output while developing. Import ids and request ids live in
contextvars and are merged into every event.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Iterator, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter

from kuhl_analytics.config.settings import get_settings

# Loggers that are too chatty at DEBUG during large imports
NOISY_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.INFO,
    "multipart": logging.INFO,
}
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _pre_chain() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _handler(level: int, json_output: bool) -> logging.Handler:
    renderer = JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=_pre_chain()))
    return handler


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override for ``MONITORING_LOG_LEVEL``
    """
    settings = get_settings()
    level_name = (log_level or settings.monitoring.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    json_output = settings.monitoring.log_format == "json" and not settings.is_development

    structlog.configure(
        processors=_pre_chain() + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = _handler(level, json_output)
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.propagate = False
        server_logger.setLevel(level)

    for name, floor in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, floor))

    # openpyxl reports unreadable workbook styles through warnings
    logging.captureWarnings(True)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level_name,
        json=json_output,
        environment=settings.app_env,
    )


@contextmanager
def import_context(record_type: str, seasons: Optional[list] = None) -> Iterator[str]:
    """
    Bind an import id to every log event emitted inside the block.

    Example:
        with import_context("sales", ["26FA"]) as import_id:
            logger.info("Deleting season rows")
    """
    import_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(
        import_id=import_id,
        record_type=record_type,
        seasons=seasons or [],
    ):
        yield import_id
