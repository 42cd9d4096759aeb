# src/pipeline/build.py — v1
"""Build pipeline: statement of intent -> identity -> hub plan -> pages -> homepage."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from sitegen.core.cancellation import CancellationToken
from sitegen.core.models import HOME_HUB_ID, INDEX_SLUG, HubPage
from sitegen.generation.site_generator import PageLink, PageSpec, SiteGenerator
from sitegen.pipeline.ledger import ExecutionTask, TaskStatus
from sitegen.pipeline.runner import PipelineRunner
from sitegen.pipeline.state import PipelineStatus, ProjectState

logger = logging.getLogger(__name__)

PAGES_GROUP = "gen-pages"
PAGES_GROUP_LABEL = "All page generation"


class BuildRunner(PipelineRunner):
    """Generate a complete site from ``state.opinion``."""

    name: ClassVar[str] = "build"

    def __init__(
        self,
        state: ProjectState,
        token: CancellationToken,
        generator: SiteGenerator,
        **kwargs: Any,
    ) -> None:
        super().__init__(state, token, **kwargs)
        self._generator = generator

    async def _execute(self) -> PipelineStatus:
        state = self.state
        gen = self._generator

        self._seed([
            ExecutionTask(id="identity", label="Define the brand concept", status=TaskStatus.RUNNING),
            ExecutionTask(id="strategy", label="Design the site structure"),
        ])
        self._update(PipelineStatus.BUILDING_IDENTITY, "Drafting the brand identity...")

        # Phase 1: identity
        identity = await self._generate(
            "generate_identity", gen.generate_identity,
            state.opinion, state.site_type, state.tone,
        )
        state.identity = identity
        self._task("identity", TaskStatus.COMPLETED)

        # Phase 2: strategy
        self._task("strategy", TaskStatus.RUNNING)
        self._update(PipelineStatus.GENERATING_STRATEGY, "Planning the site structure...")
        hubs, rationale = await self._generate(
            "generate_strategy", gen.generate_strategy, identity, state.site_type,
        )
        state.hubs = list(hubs)
        state.strategy_rationale = rationale
        self._task("strategy", TaskStatus.COMPLETED)

        self._append(
            [
                ExecutionTask(
                    id=f"build-{hub.id}",
                    label=f"Generate: {hub.title}",
                    group_id=PAGES_GROUP,
                    group_label=PAGES_GROUP_LABEL,
                )
                for hub in hubs
            ]
            + [ExecutionTask(id="finalize-index", label="Assemble the homepage")]
        )
        self._update(PipelineStatus.GENERATING_HUBS, "Starting page generation...")

        # Phase 3: one page per hub, in order
        for i, hub in enumerate(hubs):
            self._checkpoint()
            task_id = f"build-{hub.id}"
            self._task(task_id, TaskStatus.RUNNING)
            self._update(detail=f"Coding HTML: {hub.slug}/index.html")
            html = await self._generate(
                f"generate_page_html:{hub.slug}", gen.generate_page_html,
                PageSpec(title=hub.title, description=hub.description),
                identity, hubs,
                is_root=False,
                site_type=state.site_type,
            )
            state.hubs[i] = hub.model_copy(update={"html": html})
            self._task(task_id, TaskStatus.COMPLETED)
            logger.info("Generated page %d/%d: %s", i + 1, len(hubs), hub.slug)

        # Phase 4: homepage
        self._checkpoint()
        self._task("finalize-index", TaskStatus.RUNNING)
        self._update(detail="Assembling the homepage: index.html")
        pages = list(state.hubs)
        index_html = await self._generate(
            "generate_page_html:index", gen.generate_page_html,
            PageSpec(title=identity.site_name, description=identity.mission),
            identity, pages,
            links=[PageLink(title=h.title, url=f"{h.slug}/index.html") for h in pages],
            is_root=True,
            site_type=state.site_type,
        )
        self._task("finalize-index", TaskStatus.COMPLETED)

        home = HubPage(
            id=HOME_HUB_ID,
            title="Home",
            slug=INDEX_SLUG,
            description="Top page",
            html=index_html,
        )
        state.hubs = [home, *pages]
        return PipelineStatus.READY
