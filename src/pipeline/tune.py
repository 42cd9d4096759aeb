# src/pipeline/tune.py — v1
"""Tune pipeline: apply a free-text design instruction to one page or to all.

Each refactored page is written back to the state as soon as it is done,
so a failure after N of M targets keeps the first N. The run always comes
back to ``ready``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

from sitegen.core.cancellation import CancellationToken
from sitegen.generation.site_generator import SiteGenerator
from sitegen.pipeline.ledger import ExecutionTask, TaskStatus
from sitegen.pipeline.runner import PipelineRunner
from sitegen.pipeline.state import PipelineStatus, ProjectState

logger = logging.getLogger(__name__)

ALL_TARGETS = "all"
TUNE_GROUP = "tune-pages"
TUNE_GROUP_LABEL = "Apply refactoring to pages"


@dataclass(frozen=True)
class TuneTarget:
    id: str
    title: str
    kind: str  # "hub" or "article"


def resolve_targets(state: ProjectState, target_id: str) -> list[TuneTarget]:
    """Pages selected by ``target_id``: every hub then every article for
    "all", otherwise the hub with that id, else the article with that id."""
    if target_id == ALL_TARGETS:
        return [TuneTarget(h.id, h.title, "hub") for h in state.hubs] + [
            TuneTarget(a.id, a.title, "article") for a in state.articles
        ]
    hub = state.find_hub(target_id)
    if hub is not None:
        return [TuneTarget(hub.id, hub.title, "hub")]
    article = state.find_article(target_id)
    if article is not None:
        return [TuneTarget(article.id, article.title, "article")]
    return []


class TuneRunner(PipelineRunner):
    """Refactor the design of existing pages.

    Args:
        instruction: What to change, in the user's words.
        target_id: A hub or article id, or "all".
    """

    name: ClassVar[str] = "tune"

    def __init__(
        self,
        state: ProjectState,
        token: CancellationToken,
        generator: SiteGenerator,
        instruction: str,
        target_id: str = ALL_TARGETS,
        **kwargs: Any,
    ) -> None:
        super().__init__(state, token, **kwargs)
        self._generator = generator
        self._instruction = instruction
        self._target_id = target_id

    def _abort_status(self) -> PipelineStatus:
        return PipelineStatus.READY

    async def _execute(self) -> PipelineStatus:
        state = self.state
        identity = state.identity
        if identity is None:
            raise ValueError("Tuning requires an existing site identity")

        self._seed([
            ExecutionTask(
                id="plan-generation",
                label="Analyze the instruction and plan the work",
                status=TaskStatus.RUNNING,
            ),
        ])
        self._update(
            PipelineStatus.TUNING_DESIGN,
            "Breaking the request down into engineering tasks...",
        )

        plan = await self._generate(
            "plan_tuning", self._generator.plan_tuning, self._instruction, identity,
        )
        self._task("plan-generation", TaskStatus.COMPLETED)
        if plan.plan_summary:
            logger.info("Tuning plan: %s", plan.plan_summary)

        targets = resolve_targets(state, self._target_id)
        if not targets:
            logger.warning("No page matches tuning target %r", self._target_id)

        self._append(
            [
                ExecutionTask(
                    id=f"plan-step-{i}",
                    label=f"[Plan] {step}",
                    status=TaskStatus.COMPLETED,
                )
                for i, step in enumerate(plan.tasks)
            ]
            + [
                ExecutionTask(
                    id=f"tune-{t.id}",
                    label=f"Apply: {t.title}",
                    group_id=TUNE_GROUP,
                    group_label=TUNE_GROUP_LABEL,
                )
                for t in targets
            ]
        )

        for target in targets:
            self._checkpoint()
            task_id = f"tune-{target.id}"
            self._task(task_id, TaskStatus.RUNNING)
            self._update(detail=f"Refactoring: {target.title}")
            await self._tune_one(target)
            self._task(task_id, TaskStatus.COMPLETED)

        return PipelineStatus.READY

    async def _tune_one(self, target: TuneTarget) -> None:
        state = self.state
        pages = state.hubs if target.kind == "hub" else state.articles
        field = "html" if target.kind == "hub" else "content_html"
        i = next((n for n, p in enumerate(pages) if p.id == target.id), None)
        if i is None:
            return

        new_html = await self._generate(
            f"apply_tuning:{target.id}", self._generator.apply_tuning,
            getattr(pages[i], field) or "", self._instruction, state.identity,
        )
        pages[i] = pages[i].model_copy(update={field: new_html})
