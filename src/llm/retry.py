# src/llm/retry.py — v1
"""Bounded exponential-backoff retry for flaky remote calls.

Every generation and hosting call made by a pipeline goes through a
RetryPolicy. Errors are classified as retryable (transport failures, HTTP
429, explicit "overloaded" signals, plus any extra statuses the policy
opts into) or fatal. Fatal errors propagate unchanged on first sight;
retryable ones are retried until the attempt budget runs out.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Iterator, TypeVar

import httpx

from sitegen.core.cancellation import Canceled, CancellationToken

if TYPE_CHECKING:
    from sitegen.config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

FATAL = "fatal"
SERVER_ERROR_STATUSES = frozenset({500, 502, 503, 504})

_TRANSPORT_ERRORS = (httpx.TransportError, TimeoutError, ConnectionError, socket.gaierror)
_TRANSPORT_NAME_HINTS = ("timeout", "connection", "connecterror", "network")


class RetryExhausted(Exception):
    """A retryable failure persisted through every allowed attempt."""

    def __init__(self, operation: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"'{operation}' failed after {attempts} attempts: {last_error}"
        )


def _status_code(error: Exception) -> int | None:
    """Best-effort HTTP status extraction across SDK and httpx errors."""
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_error(
    error: Exception,
    extra_statuses: frozenset[int] = frozenset(),
) -> str:
    """Classify an exception into a retry error type.

    Returns one of "transport", "rate_limit", "overloaded", "server_error"
    or FATAL.
    """
    if isinstance(error, Canceled):
        return FATAL
    if isinstance(error, _TRANSPORT_ERRORS):
        return "transport"

    status = _status_code(error)
    if status == 429:
        return "rate_limit"
    if status is not None and status in extra_statuses:
        return "server_error"

    msg = str(error).lower()
    name = type(error).__name__.lower()
    if "overloaded" in msg or "overloaded" in name:
        return "overloaded"
    if status is None and "429" in msg:
        return "rate_limit"
    if any(hint in name for hint in _TRANSPORT_NAME_HINTS):
        return "transport"
    return FATAL


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff schedule shared by a family of calls.

    ``max_delay_s`` caps a single wait; None leaves growth unbounded.
    """

    max_attempts: int = 5
    initial_delay_s: float = 2.0
    backoff_factor: float = 1.5
    max_delay_s: float | None = None
    retryable_statuses: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def for_generation(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_attempts=settings.retry_max_attempts,
            initial_delay_s=settings.retry_initial_delay_s,
            backoff_factor=settings.retry_backoff_factor,
            max_delay_s=settings.retry_max_delay_s,
        )

    @classmethod
    def for_hosting(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_attempts=settings.hosting_retry_max_attempts,
            initial_delay_s=settings.hosting_retry_initial_delay_s,
            backoff_factor=settings.hosting_retry_backoff_factor,
            retryable_statuses=(
                SERVER_ERROR_STATUSES
                if settings.hosting_retry_server_errors
                else frozenset()
            ),
        )

    def delays(self) -> Iterator[float]:
        """Waits between consecutive attempts (``max_attempts - 1`` values)."""
        delay = self.initial_delay_s
        for _ in range(self.max_attempts - 1):
            if self.max_delay_s is not None:
                yield min(delay, self.max_delay_s)
            else:
                yield delay
            delay *= self.backoff_factor

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        token: CancellationToken | None = None,
        *,
        label: str = "operation",
    ) -> T:
        """Run ``operation`` under this policy.

        Raises:
            Canceled: If the token is canceled before an attempt, after a
                failure or during a backoff wait.
            RetryExhausted: If every attempt failed with a retryable error.
            Exception: The first fatal error, unchanged.
        """
        schedule = self.delays()
        attempt = 0

        while True:
            if token is not None:
                token.raise_if_canceled()
            attempt += 1
            try:
                return await operation()
            except Canceled:
                raise
            except Exception as exc:
                if token is not None:
                    token.raise_if_canceled()

                error_type = classify_error(exc, self.retryable_statuses)
                if error_type == FATAL:
                    raise
                if attempt >= self.max_attempts:
                    raise RetryExhausted(label, attempt, exc) from exc

                delay = next(schedule)
                logger.warning(
                    "'%s' %s (attempt %d/%d), retrying in %.1fs: %s",
                    label, error_type, attempt, self.max_attempts, delay, exc,
                )
                if token is not None:
                    await token.sleep(delay)
                else:
                    await asyncio.sleep(delay)
