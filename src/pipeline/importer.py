# src/pipeline/importer.py — v1
"""Import pipeline: restore a project from an already published repository.

The repository's HTML files are the only input. Identity is inferred from
the root document and the hub/article partition from file paths alone;
hub markup is then fetched file by file.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from sitegen.core.cancellation import CancellationToken
from sitegen.core.models import INDEX_SLUG, FileNode, GitHubConfig, HubPage
from sitegen.generation.site_generator import SiteGenerator
from sitegen.hosting.base_client import BaseHostingClient, HostingFactory
from sitegen.pipeline.ledger import ExecutionTask, TaskStatus
from sitegen.pipeline.runner import PipelineRunner
from sitegen.pipeline.state import PipelineStatus, ProjectState

logger = logging.getLogger(__name__)

RESTORE_GROUP = "import-restore"
RESTORE_GROUP_LABEL = "Fetch every page from GitHub"


def find_root_document(files: list[FileNode], target_path: str) -> FileNode | None:
    """The site's index.html: inside the target directory, at the repository
    root, or else the first index.html found anywhere."""
    target = target_path.strip("/")
    preferred = {f"{target}/index.html" if target else "index.html", "index.html"}
    for node in files:
        if node.path in preferred:
            return node
    return next((n for n in files if n.path.endswith("index.html")), None)


def find_hub_file(
    hub: HubPage, files: list[FileNode], root: FileNode | None,
) -> FileNode | None:
    match = next((f for f in files if f"{hub.slug}/index.html" in f.path), None)
    if match is None and hub.slug == INDEX_SLUG:
        return root
    return match


class ImportRunner(PipelineRunner):
    """Rebuild identity, hubs and articles from a GitHub repository.

    Args:
        repo_ref: "owner/repo" or a repository URL.
        credential: Access token for the hosting service.
        hosting_factory: Builds a hosting client for a GitHubConfig.
    """

    name: ClassVar[str] = "import"

    def __init__(
        self,
        state: ProjectState,
        token: CancellationToken,
        generator: SiteGenerator,
        repo_ref: str,
        credential: str,
        hosting_factory: HostingFactory,
        **kwargs: Any,
    ) -> None:
        super().__init__(state, token, **kwargs)
        self._generator = generator
        self._repo_ref = repo_ref
        self._credential = credential
        self._hosting_factory = hosting_factory
        self._client: BaseHostingClient | None = None

    async def _cleanup(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _execute(self) -> PipelineStatus:
        state = self.state
        gen = self._generator

        self._seed([
            ExecutionTask(id="fetch-info", label="Verify repository details", status=TaskStatus.RUNNING),
            ExecutionTask(id="fetch-tree", label="Scan the directory structure"),
            ExecutionTask(id="fetch-content", label="Fetch the main resources"),
            ExecutionTask(id="analyze-brand", label="Analyze the brand identity"),
            ExecutionTask(id="analyze-structure", label="Analyze the content structure"),
            ExecutionTask(
                id="fetch-full-content",
                label="Restore every page",
                group_id=RESTORE_GROUP,
                group_label=RESTORE_GROUP_LABEL,
            ),
        ])
        self._update(PipelineStatus.IMPORTING, "Connecting to GitHub...")

        config = GitHubConfig(token=self._credential, repo=self._repo_ref)
        client = self._client = self._hosting_factory(config)
        config.repo = client.repo

        # Repository metadata; a missing repository is not an error here
        info = await self._hosted("get_repo", client.get_repo)
        if info is not None:
            config.branch = info.default_branch
        else:
            logger.info("Repository %s does not exist yet", client.repo)
        self._task("fetch-info", TaskStatus.COMPLETED)

        # File tree
        self._task("fetch-tree", TaskStatus.RUNNING)
        tree = await self._hosted("list_tree", client.list_tree, config.branch)
        html_files = [n for n in tree if n.path.endswith(".html")]
        logger.info("Found %d HTML files on %s", len(html_files), config.branch)
        self._task("fetch-tree", TaskStatus.COMPLETED)

        # Root document
        self._task("fetch-content", TaskStatus.RUNNING)
        root = find_root_document(html_files, config.path)
        root_html = ""
        if root is not None:
            root_html = await self._hosted(
                "get_file_content", client.get_file_content, root,
            )
        self._task("fetch-content", TaskStatus.COMPLETED)

        # Analysis
        self._update(PipelineStatus.ANALYZING_SITE, "Analyzing the site...")
        self._task("analyze-brand", TaskStatus.RUNNING)
        identity = await self._generate("analyze_identity", gen.analyze_identity, root_html)
        self._task("analyze-brand", TaskStatus.COMPLETED)

        self._task("analyze-structure", TaskStatus.RUNNING)
        hubs, articles = await self._generate(
            "analyze_structure", gen.analyze_structure, [n.path for n in html_files],
        )
        self._task("analyze-structure", TaskStatus.COMPLETED)

        # Hub content, one file at a time
        self._task("fetch-full-content", TaskStatus.RUNNING)
        restored: list[HubPage] = []
        for hub in hubs:
            self._checkpoint()
            node = find_hub_file(hub, html_files, root)
            if node is None:
                logger.info("No file for hub '%s', keeping it without markup", hub.slug)
                restored.append(hub)
                continue
            self._update(detail=f"Fetching: {hub.slug}")
            html = await self._hosted(
                f"get_file_content:{node.path}", client.get_file_content, node,
            )
            restored.append(hub.model_copy(update={"html": html}))
        self._task("fetch-full-content", TaskStatus.COMPLETED)

        state.identity = identity
        state.hubs = restored
        state.articles = list(articles)
        state.github = config
        return PipelineStatus.READY
