# src/pipeline/orchestrator.py — v1
"""Site orchestrator — entry point for the four pipelines.

Owns the cancellation token source and the retry policies, and guarantees
that at most one pipeline runs at a time. Each ``start_*`` coroutine runs
its pipeline to the end and returns the RunOutcome; callers that want to
cancel schedule it as a task and call ``cancel_active()`` meanwhile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from sitegen.config.settings import Settings
from sitegen.core.cancellation import CancellationTokenSource
from sitegen.llm.retry import RetryPolicy
from sitegen.pipeline.build import BuildRunner
from sitegen.pipeline.importer import ImportRunner
from sitegen.pipeline.ledger import LedgerView
from sitegen.pipeline.publish import PublishRunner
from sitegen.pipeline.runner import PipelineRunner, RunOutcome, StateObserver
from sitegen.pipeline.state import PipelineStatus, ProjectState
from sitegen.pipeline.tune import ALL_TARGETS, TuneRunner
from sitegen.pipeline.workflows import WorkflowPosition, resolve

if TYPE_CHECKING:
    from sitegen.generation.site_generator import SiteGenerator
    from sitegen.hosting.base_client import HostingFactory

logger = logging.getLogger(__name__)


class PipelineBusy(RuntimeError):
    """A pipeline was started while another one is still running."""

    def __init__(self, active: str):
        self.active = active
        super().__init__(f"Pipeline '{active}' is already running")


@dataclass
class Progress:
    """What a progress display needs, read between notifications."""

    status: PipelineStatus
    detail: str | None
    ledger: LedgerView
    position: WorkflowPosition | None


class SiteOrchestrator:
    """Run Build, Tune, Import and Publish against one ProjectState.

    Args:
        state: Caller-owned project state, mutated in place.
        generator: Generation capabilities.
        hosting_factory: Builds a hosting client for a GitHubConfig.
        settings: Retry policies and commit prefix come from here.
        on_change: Called with the state after every status or ledger change.
    """

    def __init__(
        self,
        state: ProjectState,
        generator: SiteGenerator,
        hosting_factory: HostingFactory,
        settings: Settings | None = None,
        on_change: StateObserver | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self.state = state
        self._generator = generator
        self._hosting_factory = hosting_factory
        self._on_change = on_change
        self._tokens = CancellationTokenSource()
        self._active: PipelineRunner | None = None
        self._generation_retry = RetryPolicy.for_generation(self._settings)
        self._hosting_retry = RetryPolicy.for_hosting(self._settings)

    @property
    def active(self) -> str | None:
        """Name of the running pipeline, if any."""
        return self._active.name if self._active is not None else None

    async def start_build(self) -> RunOutcome:
        return await self._run(BuildRunner)

    async def start_tune(self, instruction: str, target_id: str = ALL_TARGETS) -> RunOutcome:
        """Apply ``instruction`` to the page ``target_id`` (or "all").

        Raises:
            ValueError: If the instruction is empty or no site exists yet.
        """
        if not instruction.strip():
            raise ValueError("Tuning instruction must not be empty")
        if self.state.identity is None:
            raise ValueError("Build or import a site before tuning it")
        return await self._run(
            TuneRunner, instruction=instruction, target_id=target_id,
        )

    async def start_import(self, repo_ref: str, credential: str) -> RunOutcome:
        return await self._run(
            ImportRunner,
            repo_ref=repo_ref,
            credential=credential,
            hosting_factory=self._hosting_factory,
        )

    async def start_publish(
        self, on_file: Callable[[str], None] | None = None,
    ) -> RunOutcome:
        """Deploy to ``state.github``.

        Raises:
            ValueError: If no site exists yet.
        """
        if self.state.identity is None:
            raise ValueError("Build or import a site before publishing it")
        return await self._run(
            PublishRunner,
            hosting_factory=self._hosting_factory,
            commit_prefix=self._settings.github_commit_prefix,
            on_file=on_file,
        )

    def cancel_active(self, reason: str = "Canceled by user") -> bool:
        """Request cancellation of the running pipeline.

        Returns False when nothing is running.
        """
        return self._tokens.cancel(reason)

    def progress(self) -> Progress:
        return Progress(
            status=self.state.status,
            detail=self.state.current_detail,
            ledger=self.state.ledger.render(),
            position=resolve(self.state.status),
        )

    async def _run(self, runner_cls: type[PipelineRunner], **kwargs: Any) -> RunOutcome:
        # Check and claim before the first await
        if self._active is not None:
            raise PipelineBusy(self._active.name)

        token = self._tokens.issue()
        runner = runner_cls(
            self.state,
            token,
            generator=self._generator,
            generation_retry=self._generation_retry,
            hosting_retry=self._hosting_retry,
            on_change=self._on_change,
            **kwargs,
        )
        self._active = runner
        try:
            outcome = await runner.run()
        finally:
            self._active = None
            self._tokens.release(token)

        if not outcome.success:
            logger.warning(
                "Pipeline '%s' %s: %s", outcome.pipeline, outcome.result.value,
                outcome.error or "no error",
            )
        return outcome
