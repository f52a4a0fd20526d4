"""
Structured logging infrastructure with JSON formatting and correlation IDs.
"""
import logging
import logging.handlers
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Optional
import structlog

from app.core.config import settings

# Context variable for correlation ID
correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


class CorrelationIdProcessor:
    """Add correlation ID to log records."""

    def __call__(self, logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Add correlation ID to event dictionary."""
        corr_id = correlation_id.get()
        if corr_id and 'correlation_id' not in event_dict:
            event_dict['correlation_id'] = corr_id
        return event_dict


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        CorrelationIdProcessor(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging() -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if settings.LOG_FORMAT.lower() == 'json':
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    # File handlers are only installed when a log directory is configured
    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / 'app.log',
            maxBytes=50 * 1024 * 1024,  # 50MB
            backupCount=5
        )
        file_handler.setFormatter(formatter)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / 'error.log',
            maxBytes=25 * 1024 * 1024,  # 25MB
            backupCount=3
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        handlers.extend([file_handler, error_handler])

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Set specific logger levels
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.INFO)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        BoundLogger: Configured structlog logger
    """
    return structlog.get_logger(name)


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """
    Set correlation ID for request tracing.

    Args:
        corr_id: Correlation ID to set. If None, generates a new UUID.

    Returns:
        str: The correlation ID that was set
    """
    if corr_id is None:
        corr_id = str(uuid.uuid4())

    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID."""
    return correlation_id.get()


class DatabaseLogHandler:
    """Handler for database operation logging."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def log_slow_query(self, operation: str, table: str, duration: float, statement: str = None) -> None:
        """Log slow database queries for performance monitoring."""
        self.logger.warning(
            "Slow database query detected",
            operation=operation,
            table=table,
            duration_ms=round(duration * 1000, 2),
            statement_preview=statement[:200] if statement else None,
        )

    def log_error(self, operation: str, error: Exception) -> None:
        """Log database error."""
        self.logger.error(
            "Database operation failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )


class VersionLogHandler:
    """Handler for version history and pointer movement logging."""

    def __init__(self):
        self.logger = get_logger("app.versions")

    async def log_version_created(self, document_id, version_number: int, change_type: str,
                                  author_id, section_id=None) -> None:
        """Log a newly appended document version."""
        await self.logger.ainfo(
            "Document version created",
            document_id=str(document_id),
            version_number=version_number,
            change_type=change_type,
            author_id=str(author_id),
            section_id=str(section_id) if section_id else None,
        )

    async def log_pointer_moved(self, document_id, operation: str, from_version: int,
                                to_version: int, head_version: int, max_reachable_version: int) -> None:
        """Log an undo, redo or restore pointer movement."""
        await self.logger.ainfo(
            "Version pointer moved",
            document_id=str(document_id),
            operation=operation,
            from_version=from_version,
            to_version=to_version,
            head_version=head_version,
            max_reachable_version=max_reachable_version,
        )

    async def log_branch_discarded(self, document_id, from_version: int, to_version: int) -> None:
        """Log versions that became unreachable through redo."""
        await self.logger.ainfo(
            "Redo branch discarded",
            document_id=str(document_id),
            orphaned_from=from_version,
            orphaned_to=to_version,
        )

    async def log_corrupt_state(self, document_id, details: Dict[str, Any]) -> None:
        """Log a pointer state that violates its invariants."""
        await self.logger.aerror(
            "Corrupt version pointer state detected",
            document_id=str(document_id),
            **details
        )

    async def log_storage_error(self, document_id, operation: str, error: Exception) -> None:
        """Log a persistence failure during a version operation."""
        await self.logger.aerror(
            "Version storage operation failed",
            document_id=str(document_id),
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )
