# src/core/cancellation.py — v1
"""Cooperative cancellation for pipeline runs.

A CancellationTokenSource issues one CancellationToken per active run.
Runners and the retry policy poll the token at loop heads, before each
remote attempt and while waiting between attempts.
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class Canceled(Exception):
    """The active run was canceled by the user."""

    def __init__(self, reason: str = "Canceled by user") -> None:
        self.reason = reason
        super().__init__(reason)


class CancellationToken:
    """One-shot cancellation flag observed by pipeline collaborators."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def is_canceled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "Canceled by user") -> None:
        """Set the flag. Later calls are ignored."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    def raise_if_canceled(self) -> None:
        if self._event.is_set():
            raise Canceled(self._reason or "Canceled by user")

    async def sleep(self, delay_s: float) -> None:
        """Wait up to ``delay_s`` seconds, ending early on cancellation.

        Raises:
            Canceled: If the token is (or becomes) canceled.
        """
        self.raise_if_canceled()
        if delay_s > 0:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=delay_s)
            except asyncio.TimeoutError:
                return
        self.raise_if_canceled()


class CancellationTokenSource:
    """Hands out a fresh token per run and cancels the live one on request."""

    def __init__(self) -> None:
        self._current: CancellationToken | None = None

    @property
    def current(self) -> CancellationToken | None:
        return self._current

    def issue(self) -> CancellationToken:
        """Create the token for a new run, replacing any previous one."""
        self._current = CancellationToken()
        return self._current

    def cancel(self, reason: str = "Canceled by user") -> bool:
        """Cancel the live token. Returns False when no run holds one."""
        if self._current is None or self._current.is_canceled:
            return False
        logger.info("Cancellation requested: %s", reason)
        self._current.cancel(reason)
        return True

    def release(self, token: CancellationToken) -> None:
        """Drop ``token`` if it is still the live one."""
        if self._current is token:
            self._current = None
