"""
Database utilities and transaction management.
"""

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Iterator, TypeVar

from django.db import OperationalError

from core.domain.exceptions import TransientStoreError
from core.metrics import store_retries_total

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextlib.contextmanager
def translate_transient_errors() -> Iterator[None]:
    """
    Translate aborted transactions into TransientStoreError.

    Deadlocks, serialization failures and lock timeouts surface from
    Django as OperationalError; callers above the store only see the
    domain exception.
    """
    try:
        yield
    except OperationalError as exc:
        logger.warning("Transaction aborted by the database: %s", exc)
        raise TransientStoreError() from exc


async def retry_transient(
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    backoff_seconds: float,
    operation_name: str,
) -> T:
    """
    Run an async store operation, retrying transient failures.

    Args:
        operation: Zero-argument coroutine factory
        attempts: Maximum number of attempts (at least 1)
        backoff_seconds: Base delay, doubled after every failure
        operation_name: Label used for logs and metrics

    Returns:
        The operation's result

    Raises:
        TransientStoreError: If every attempt failed transiently
    """
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except TransientStoreError:
            if attempt == attempts:
                logger.error(
                    "%s failed after %d attempt(s)", operation_name, attempts
                )
                raise
            store_retries_total.labels(operation=operation_name).inc()
            delay = backoff_seconds * (2 ** (attempt - 1))
            logger.info(
                "%s hit a transient store error, retrying in %.3fs (attempt %d/%d)",
                operation_name,
                delay,
                attempt,
                attempts,
            )
            await asyncio.sleep(delay)
    raise TransientStoreError()
