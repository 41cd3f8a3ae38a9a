"""
Contextual logging for MDB_KIT.

Registry loads and collection handle writes run inside an operation
context (database, collection, document type). Records emitted through a
logger from ``get_logger`` while that context is active carry those fields
as record attributes, so formatters and filters can use them directly:

    logging.basicConfig(format="%(levelname)s %(collection_name)s %(message)s")
"""

import contextvars
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

_operation_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "mdb_kit_operation_context", default={}
)


@contextmanager
def operation_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """
    Add fields to the logging context for the duration of the block.

    Nested blocks layer on top of the enclosing one; None values are skipped.

    Example:
        with operation_context(db_name="shop", collection_name="widgets"):
            logger.info("loading")   # record.collection_name == "widgets"
    """
    merged = {**_operation_context.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _operation_context.set(merged)
    try:
        yield merged
    finally:
        _operation_context.reset(token)


def current_context() -> dict[str, Any]:
    """Copy of the fields of the innermost active operation context."""
    return dict(_operation_context.get())


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Adds the active operation context to every record; explicit ``extra`` wins."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**current_context(), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **fields: Any,
) -> None:
    """
    Emit one structured record describing a finished operation.

    The record carries ``operation``, ``success``, the active operation
    context, any extra ``fields`` and, when given, ``duration_ms``.
    """
    extra = {**current_context(), **fields, "operation": operation, "success": success}
    message = f"{operation} {'succeeded' if success else 'failed'}"
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
        message += f" in {duration_ms:.2f}ms"
    logger.log(level, message, extra=extra)
