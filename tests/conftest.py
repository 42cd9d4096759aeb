# tests/conftest.py — v1
"""Shared test fixtures for all unit tests.

Provides sample site artifacts, a mock generator, an in-memory hosting
client and settings with zero retry delays. No network access: the LLM is
an AsyncMock and GitHub is either FakeHosting or an httpx.MockTransport.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from sitegen.config.settings import Settings
from sitegen.core.models import (
    Article,
    FileNode,
    GitHubConfig,
    HubPage,
    Identity,
    RepoInfo,
    SiteTone,
)
from sitegen.generation.site_generator import SiteGenerator, TunePlan
from sitegen.hosting.base_client import BaseHostingClient
from sitegen.llm.models import LLMResponse
from sitegen.llm.retry import RetryPolicy
from sitegen.pipeline.state import PipelineStatus, ProjectState


# === FIXTURES: Sample data ===


@pytest.fixture
def identity() -> Identity:
    return Identity(
        site_name="Kiln & Co",
        slug="kiln-co",
        mission="Handmade ceramics for everyday tables.",
        brand_description="A small pottery studio with a warm, earthy voice.",
        theme_color="#b45309",
        tone=SiteTone.MINIMAL,
    )


@pytest.fixture
def hubs() -> list[HubPage]:
    return [
        HubPage(id="h1", title="Shop", slug="shop", description="Buy pieces", html="<p>shop</p>"),
        HubPage(id="h2", title="Journal", slug="journal", description="Studio notes", html="<p>journal</p>"),
    ]


@pytest.fixture
def articles() -> list[Article]:
    return [
        Article(id="a1", hub_id="h2", title="Glazing", slug="glazing", content_html="<p>glaze</p>"),
    ]


@pytest.fixture
def ready_state(identity, hubs, articles) -> ProjectState:
    """State after a completed build, with a publish target configured."""
    return ProjectState(
        identity=identity,
        hubs=hubs,
        articles=articles,
        status=PipelineStatus.READY,
        github=GitHubConfig(token="ghp_test", repo="kiln/site"),
    )


@pytest.fixture
def mock_llm_response() -> LLMResponse:
    return LLMResponse(
        content='{"ok": true}',
        input_tokens=100,
        output_tokens=20,
        model="gemini-2.5-flash",
        provider="google",
        latency_ms=120,
    )


# === FIXTURES: Collaborators ===


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from .env, with retries that never sleep."""
    return Settings(
        _env_file=None,
        retry_initial_delay_s=0.0,
        hosting_retry_initial_delay_s=0.0,
        github_token="",
        github_repo="",
    )


@pytest.fixture
def fast_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=5, initial_delay_s=0.0)


@pytest.fixture
def generator(identity) -> AsyncMock:
    """SiteGenerator double whose capabilities return canned results."""
    gen = AsyncMock(spec=SiteGenerator)
    gen.generate_identity.return_value = identity
    gen.analyze_identity.return_value = identity
    gen.generate_strategy.return_value = (
        [
            HubPage(id=f"g{i}", title=f"Section {i}", slug=f"section-{i}")
            for i in range(1, 4)
        ],
        "Three sections cover the studio.",
    )
    gen.generate_page_html.return_value = "<html>page</html>"
    gen.plan_tuning.return_value = TunePlan(
        plan_summary="Darken the palette", tasks=["Switch to slate", "Raise contrast"],
    )
    gen.apply_tuning.side_effect = lambda html, instruction, identity: f"{html}<!--tuned-->"
    gen.generate_readme.return_value = "# Kiln & Co"
    gen.analyze_structure.return_value = ([], [])
    return gen


class FakeHosting(BaseHostingClient):
    """In-memory repository that records every call in order."""

    def __init__(
        self,
        repo: str = "kiln/site",
        exists: bool = True,
        files: dict[str, str] | None = None,
        default_branch: str = "main",
    ) -> None:
        self._repo = repo
        self.exists = exists
        self.files = dict(files or {})
        self.default_branch = default_branch
        self.calls: list[tuple] = []
        self.closed = False

    @property
    def repo(self) -> str:
        return self._repo

    async def get_repo(self):
        self.calls.append(("get_repo",))
        if not self.exists:
            return None
        return RepoInfo(full_name=self._repo, default_branch=self.default_branch)

    async def create_repo(self):
        self.calls.append(("create_repo",))
        self.exists = True

    async def list_tree(self, branch):
        self.calls.append(("list_tree", branch))
        return [FileNode(path=p, url=p) for p in self.files]

    async def get_file_content(self, node):
        self.calls.append(("get_file_content", node.path))
        return self.files[node.path]

    async def get_file_sha(self, path, branch):
        self.calls.append(("get_file_sha", path))
        return f"sha-{path}" if path in self.files else None

    async def put_file(self, path, content, branch, message, sha=None):
        self.calls.append(("put_file", path, sha))
        self.files[path] = content

    async def enable_pages(self, branch):
        self.calls.append(("enable_pages", branch))

    async def aclose(self):
        self.closed = True

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def hosting() -> FakeHosting:
    return FakeHosting()


@pytest.fixture
def make_hosting() -> type[FakeHosting]:
    """FakeHosting class, for tests that need a custom repository."""
    return FakeHosting
