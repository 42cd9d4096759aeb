# src/pipeline/runner.py — v1
"""Pipeline runner — shared skeleton of the Build, Tune, Import and Publish runs.

A runner owns the ProjectState for the duration of one run: it seeds the
task ledger, walks its phases in order and routes every remote call through
the generation or hosting RetryPolicy with the run's cancellation token.

Whatever happens, the run ends with an empty ledger, no progress detail and
a resting status:
  - success: the pipeline's terminal status (ready or deployed)
  - fatal error or exhausted retries: the running task is marked failed,
    then the state falls back to the last known-good resting status
  - cancellation: same fallback, no task is marked failed

Artifacts written to the state before an abort are kept.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Iterable, TypeVar

from sitegen.core.cancellation import Canceled, CancellationToken
from sitegen.core.models import new_id
from sitegen.llm.retry import RetryPolicy
from sitegen.logging.context import clear_context, set_phase_context, set_run_context
from sitegen.pipeline.ledger import ExecutionTask, TaskStatus
from sitegen.pipeline.state import PipelineStatus, ProjectState

logger = logging.getLogger(__name__)

T = TypeVar("T")

StateObserver = Callable[[ProjectState], None]


class RunResult(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass
class RunOutcome:
    """How a pipeline run ended. The error is for the caller to surface."""

    pipeline: str
    result: RunResult
    status: PipelineStatus
    error: str | None = None
    exception: BaseException | None = field(default=None, repr=False)
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.result == RunResult.COMPLETED


class PipelineRunner(ABC):
    """Base class for the four pipelines.

    Args:
        state: Project state, mutated in place.
        token: Cancellation token of this run.
        generation_retry: Policy for generation-service calls.
        hosting_retry: Policy for hosting-service calls.
        on_change: Called with the state after every status or ledger change.
    """

    name: ClassVar[str] = "pipeline"

    def __init__(
        self,
        state: ProjectState,
        token: CancellationToken,
        generation_retry: RetryPolicy | None = None,
        hosting_retry: RetryPolicy | None = None,
        on_change: StateObserver | None = None,
    ) -> None:
        self.state = state
        self.token = token
        self._generation_retry = generation_retry or RetryPolicy()
        self._hosting_retry = hosting_retry or RetryPolicy(
            max_attempts=3, initial_delay_s=1.0, backoff_factor=2.0,
        )
        self._on_change = on_change
        self._fallback = state.resting_status

    # --- Phases (subclass hooks) ---

    @abstractmethod
    async def _execute(self) -> PipelineStatus:
        """Run every phase; return the terminal resting status."""

    def _abort_status(self) -> PipelineStatus:
        """Resting status after a failure or cancellation."""
        return self._fallback

    async def _cleanup(self) -> None:
        """Release per-run resources. Called on every exit path."""

    # --- Run ---

    async def run(self) -> RunOutcome:
        """Execute the pipeline and leave the state resting."""
        set_run_context(new_id(), self.name)
        self._fallback = self.state.resting_status
        start_ns = time.monotonic_ns()
        logger.info("Pipeline '%s' started", self.name)

        try:
            terminal = await self._execute()
        except Canceled as exc:
            logger.info("Pipeline '%s' canceled: %s", self.name, exc.reason)
            outcome = self._unwind(RunResult.CANCELED, exc)
        except asyncio.CancelledError:
            self._unwind(RunResult.CANCELED, None)
            raise
        except Exception as exc:
            logger.error("Pipeline '%s' failed: %s", self.name, exc)
            self._fail_running_tasks()
            outcome = self._unwind(RunResult.FAILED, exc)
        else:
            self._settle(terminal)
            outcome = RunOutcome(self.name, RunResult.COMPLETED, terminal)
            logger.info("Pipeline '%s' completed: %s", self.name, terminal.value)
        finally:
            await self._cleanup()
            clear_context()

        outcome.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        return outcome

    def _unwind(self, result: RunResult, exc: BaseException | None) -> RunOutcome:
        status = self._abort_status()
        self._settle(status)
        return RunOutcome(
            self.name,
            result,
            status,
            error=str(exc) if exc is not None else None,
            exception=exc,
        )

    def _settle(self, status: PipelineStatus) -> None:
        self.state.status = status
        self.state.ledger.clear()
        self.state.current_detail = None
        self._notify()

    def _fail_running_tasks(self) -> None:
        running = self.state.ledger.running()
        for task in running:
            self.state.ledger.set_status(task.id, TaskStatus.FAILED)
        if running:
            self._notify()

    # --- State helpers ---

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)

    def _update(
        self,
        status: PipelineStatus | None = None,
        detail: str | None = None,
    ) -> None:
        """Change status and/or detail; None leaves a field as is."""
        if status is not None:
            self.state.status = status
            set_phase_context(status.value)
        if detail is not None:
            self.state.current_detail = detail
        self._notify()

    def _seed(self, tasks: Iterable[ExecutionTask]) -> None:
        self.state.ledger.seed(tasks)
        self._notify()

    def _append(self, tasks: Iterable[ExecutionTask]) -> None:
        self.state.ledger.append(tasks)
        self._notify()

    def _task(self, task_id: str, status: TaskStatus) -> None:
        if self.state.ledger.set_status(task_id, status):
            self._notify()

    def _checkpoint(self) -> None:
        self.token.raise_if_canceled()

    # --- Remote calls ---

    async def _generate(
        self, label: str, call: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any,
    ) -> T:
        return await self._generation_retry.execute(
            lambda: call(*args, **kwargs), self.token, label=label,
        )

    async def _hosted(
        self, label: str, call: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any,
    ) -> T:
        return await self._hosting_retry.execute(
            lambda: call(*args, **kwargs), self.token, label=label,
        )
