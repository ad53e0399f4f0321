"""
Bounded retry for connection-level database faults.

Only faults that say nothing about the statement itself are retried: dropped or
invalidated connections, pool checkout timeouts and DBAPI OperationalError /
InterfaceError. Constraint violations and bad SQL propagate on the first attempt.
"""

from __future__ import annotations

import functools
import time
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)

from incident_detector.config import get_settings
from incident_detector.infra.logging_config import get_logger

logger = get_logger("db.retry")

F = TypeVar("F", bound=Callable[..., Any])


def is_connection_error(exc: BaseException) -> bool:
    """True when exc is a connection-level fault worth retrying."""
    if isinstance(exc, IntegrityError):
        return False
    if isinstance(exc, (DisconnectionError, PoolTimeoutError)):
        return True
    if isinstance(exc, DBAPIError):
        return exc.connection_invalidated or isinstance(
            exc, (OperationalError, InterfaceError)
        )
    return False


def retry_on_disconnect(
    attempts: Optional[int] = None,
    backoff_seconds: Optional[float] = None,
) -> Callable[[F], F]:
    """
    Decorate a service method so connection-level faults are retried.

    The wrapped method must belong to an object with a ``db`` session; the
    session is rolled back between attempts so the retry starts from a clean
    transaction.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self, *args: Any, **kwargs: Any) -> Any:
            settings = get_settings()
            max_attempts = attempts or settings.db_retry_attempts
            delay = (
                settings.db_retry_backoff_seconds
                if backoff_seconds is None
                else backoff_seconds
            )
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    if not is_connection_error(e) or attempt == max_attempts:
                        raise
                    logger.warning(
                        "Connection fault in %s (attempt %d/%d), retrying: %s",
                        func.__qualname__,
                        attempt,
                        max_attempts,
                        e,
                    )
                    self.db.rollback()
                    if delay:
                        time.sleep(delay * (2 ** (attempt - 1)))
            raise RuntimeError("unreachable")  # pragma: no cover

        return wrapper  # type: ignore[return-value]

    return decorator
