# src/pipeline/publish.py — v1
"""Publish pipeline: push the generated site to GitHub and turn on Pages.

Files are written one by one through the Contents API. An existing file is
overwritten in place by sending its current sha, so re-publishing is
idempotent at the file level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar

from sitegen.core.cancellation import CancellationToken
from sitegen.core.models import Article, HubPage
from sitegen.generation.site_generator import SiteGenerator
from sitegen.hosting.base_client import BaseHostingClient, HostingFactory
from sitegen.pipeline.ledger import ExecutionTask, TaskStatus
from sitegen.pipeline.runner import PipelineRunner
from sitegen.pipeline.state import PipelineStatus, ProjectState

logger = logging.getLogger(__name__)

PUSH_GROUP = "push-group"
PUSH_GROUP_LABEL = "Upload every file"
ARTICLES_FALLBACK_DIR = "articles"
README_PATH = "README.md"


@dataclass(frozen=True)
class PublishFile:
    path: str  # relative to the target directory
    content: str


def page_path(hub: HubPage) -> str:
    return "index.html" if hub.is_index else f"{hub.slug}/index.html"


def article_path(article: Article, hubs: list[HubPage]) -> str:
    parent = next((h for h in hubs if h.id == article.hub_id), None)
    if parent is not None and not parent.is_index:
        return f"{parent.slug}/{article.slug}.html"
    return f"{ARTICLES_FALLBACK_DIR}/{article.slug}.html"


def plan_files(
    hubs: list[HubPage], articles: list[Article], readme: str | None = None,
) -> list[PublishFile]:
    """Every hub, then every article, then the README."""
    files = [PublishFile(page_path(h), h.html or "") for h in hubs]
    files += [PublishFile(article_path(a, hubs), a.content_html or "") for a in articles]
    if readme:
        files.append(PublishFile(README_PATH, readme))
    return files


class PublishRunner(PipelineRunner):
    """Deploy the current site to ``state.github``.

    Args:
        hosting_factory: Builds a hosting client for a GitHubConfig.
        commit_prefix: First word of each commit message.
        on_file: Called with each file path just before it is uploaded.
    """

    name: ClassVar[str] = "publish"

    def __init__(
        self,
        state: ProjectState,
        token: CancellationToken,
        generator: SiteGenerator,
        hosting_factory: HostingFactory,
        commit_prefix: str = "Deploy",
        on_file: Callable[[str], None] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(state, token, **kwargs)
        self._generator = generator
        self._hosting_factory = hosting_factory
        self._commit_prefix = commit_prefix
        self._on_file = on_file
        self._client: BaseHostingClient | None = None

    def _abort_status(self) -> PipelineStatus:
        return PipelineStatus.READY

    async def _cleanup(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _execute(self) -> PipelineStatus:
        state = self.state
        if state.identity is None:
            raise ValueError("Nothing to publish: the site has no identity yet")

        self._seed([
            ExecutionTask(id="check-repo", label="Verify repository details", status=TaskStatus.RUNNING),
            ExecutionTask(
                id="push-files",
                label="Push files",
                group_id=PUSH_GROUP,
                group_label=PUSH_GROUP_LABEL,
            ),
            ExecutionTask(id="enable-pages", label="Enable GitHub Pages"),
        ])
        self._update(PipelineStatus.CREATING_REPO, "Checking the repository...")

        client = self._client = self._hosting_factory(state.github)
        branch = state.github.branch

        # Repository
        info = await self._hosted("get_repo", client.get_repo)
        if info is None:
            self._update(detail=f"Creating repository {client.repo}...")
            await self._hosted("create_repo", client.create_repo)
        self._task("check-repo", TaskStatus.COMPLETED)

        # Files
        self._task("push-files", TaskStatus.RUNNING)
        self._update(PipelineStatus.PUSHING_FILES, "Writing the README...")
        readme = await self._generate(
            "generate_readme", self._generator.generate_readme, state.identity,
        )
        files = plan_files(state.hubs, state.articles, readme)
        for n, file in enumerate(files, 1):
            self._checkpoint()
            if self._on_file is not None:
                self._on_file(file.path)
            self._update(detail=f"Uploading: {file.path}")
            await self._upload(client, file, branch)
            logger.info(
                "Uploaded %d/%d: %s", n, len(files), file.path,
                extra={"data": {"path": file.path, "bytes": len(file.content)}},
            )
        self._task("push-files", TaskStatus.COMPLETED)

        # Pages
        self._task("enable-pages", TaskStatus.RUNNING)
        self._update(PipelineStatus.ENABLING_PAGES, "Enabling GitHub Pages...")
        await self._hosted("enable_pages", client.enable_pages, branch)
        self._task("enable-pages", TaskStatus.COMPLETED)
        return PipelineStatus.DEPLOYED

    async def _upload(
        self, client: BaseHostingClient, file: PublishFile, branch: str,
    ) -> None:
        sha = await self._hosted(
            f"get_file_sha:{file.path}", client.get_file_sha, file.path, branch,
        )
        message = f"{self._commit_prefix} {file.path} via SiteGen"
        await self._hosted(
            f"put_file:{file.path}", client.put_file,
            file.path, file.content, branch, message, sha,
        )
