"""
Correlation IDs for tool invocation tracing

Every tool call runs under its own correlation ID so that the log lines of
concurrent swaps can be told apart.
"""

import logging
import uuid
import contextvars
from typing import Optional

# Context variable for correlation ID (copied into worker threads by asyncio.to_thread)
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id', default=None
)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for transaction tracing."""
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """Set the correlation ID in context. Returns token for reset."""
    return _correlation_id.set(correlation_id)


class CorrelationContext:
    """
    Context manager for correlation ID scoping.

    Usage:
        with CorrelationContext("inch_swap") as cid:
            logger.info(f"[{cid}] Starting swap")
    """

    def __init__(self, prefix: Optional[str] = None):
        """
        Args:
            prefix: Optional prefix for the correlation ID (e.g., the tool name)
        """
        self.correlation_id = generate_correlation_id()
        if prefix:
            self.correlation_id = f"{prefix}_{self.correlation_id}"
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _correlation_id.reset(self._token)


def log_with_correlation(
    logger: logging.Logger,
    level: int,
    message: str,
    operation_name: str,
    **extra
) -> None:
    """
    Log message prefixed with correlation ID and operation name.

    Args:
        logger: Logger to write to
        level: Logging level (logging.INFO, logging.WARNING, etc.)
        message: Log message
        operation_name: Name of the operation being executed
        **extra: Additional context fields for structured handlers
    """
    cid = get_correlation_id()

    parts = []
    if cid:
        parts.append(f"[{cid}]")
    parts.append(f"[{operation_name}]")
    parts.append(message)

    logger.log(
        level,
        " ".join(parts),
        extra={"correlation_id": cid, "operation": operation_name, **extra},
    )
