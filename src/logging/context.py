# src/logging/context.py — v1
"""Contextual logging support: attach run_id, pipeline and phase to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per pipeline run.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_pipeline: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "pipeline", default=None
)
_phase: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "phase", default=None
)


@dataclass
class LogContext:
    """Snapshot of the current logging context."""

    run_id: str | None = None
    pipeline: str | None = None
    phase: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        pipeline=_pipeline.get(),
        phase=_phase.get(),
    )


def set_run_context(run_id: str, pipeline: str) -> None:
    """Set run-level context (called once when a pipeline starts)."""
    _run_id.set(run_id)
    _pipeline.set(pipeline)
    _phase.set(None)


def set_phase_context(phase: str | None) -> None:
    """Set the phase currently executing within the run."""
    _phase.set(phase)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _pipeline.set(None)
    _phase.set(None)
