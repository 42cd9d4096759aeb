# src/hosting/github_client.py — v1
"""GitHub REST implementation of BaseHostingClient.

Uses the Contents API for per-file writes (each write is its own commit,
overwriting in place when the current blob sha is supplied), the Git Trees
API for recursive listings and the Pages API to enable static hosting.

Requests are single-shot: transport errors surface as httpx exceptions and
non-success statuses as HostingError, so the caller's RetryPolicy decides
what is worth repeating.
"""

from __future__ import annotations

import base64
import logging
import re
from typing import Any

import httpx

from sitegen.config.settings import ConfigurationError
from sitegen.core.models import FileNode, GitHubConfig, RepoInfo
from sitegen.hosting.base_client import BaseHostingClient, HostingError, HostingFactory

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

_URL_PREFIX = re.compile(r"^https?://(www\.)?github\.com/", re.IGNORECASE)


def clean_repo(repo: str) -> str:
    """Normalize user input (URL, trailing .git, slashes) to "owner/repo"."""
    cleaned = _URL_PREFIX.sub("", repo.strip())
    cleaned = re.sub(r"\.git$", "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip("/")


def pages_source_path(target_path: str) -> str:
    """GitHub Pages only serves from "/" or "/docs"."""
    return "/docs" if target_path.strip("/") == "docs" else "/"


class GitHubClient(BaseHostingClient):
    """Async GitHub client bound to one repository and target directory.

    Args:
        config: Token, repository, branch and target directory.
        api_url: REST API root (GitHub Enterprise installs differ).
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use MockTransport).

    Raises:
        ConfigurationError: If the token or repository is missing.
    """

    def __init__(
        self,
        config: GitHubConfig,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        token = config.token.strip()
        repo = clean_repo(config.repo)
        if not token:
            raise ConfigurationError("GitHub token is not set")
        if "/" not in repo:
            raise ConfigurationError(
                f"Repository must be 'owner/repo' or a GitHub URL, got {config.repo!r}"
            )
        self._repo = repo
        self._target = config.path.strip("/")
        self._client = httpx.AsyncClient(
            base_url=api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def repo(self) -> str:
        return self._repo

    @property
    def repo_name(self) -> str:
        return self._repo.rsplit("/", 1)[-1]

    async def get_repo(self) -> RepoInfo | None:
        resp = await self._client.get(f"/repos/{self._repo}")
        if resp.status_code == 404:
            logger.info("Repository %s not found", self._repo)
            return None
        _raise_for_status("get_repo", resp)
        return RepoInfo.model_validate(resp.json())

    async def create_repo(self) -> None:
        resp = await self._client.post(
            "/user/repos", json={"name": self.repo_name, "auto_init": True},
        )
        if resp.status_code == 422:
            logger.info("Repository %s already exists", self._repo)
            return
        _raise_for_status("create_repo", resp)
        logger.info("Created repository %s", self._repo)

    async def list_tree(self, branch: str) -> list[FileNode]:
        resp = await self._client.get(
            f"/repos/{self._repo}/git/trees/{branch}", params={"recursive": "1"},
        )
        _raise_for_status("list_tree", resp)
        return [FileNode.model_validate(n) for n in resp.json().get("tree", [])]

    async def get_file_content(self, node: FileNode) -> str:
        url = node.url or f"/repos/{self._repo}/contents/{node.path}"
        resp = await self._client.get(url)
        _raise_for_status("get_file_content", resp)
        encoded = resp.json().get("content", "")
        return base64.b64decode(encoded.replace("\n", "")).decode("utf-8")

    async def get_file_sha(self, path: str, branch: str) -> str | None:
        resp = await self._client.get(self._contents_url(path), params={"ref": branch})
        if resp.status_code == 404:
            return None
        _raise_for_status("get_file_sha", resp)
        data = resp.json()
        return data.get("sha") if isinstance(data, dict) else None

    async def put_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
    ) -> None:
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        resp = await self._client.put(self._contents_url(path), json=body)
        _raise_for_status(f"put_file {path}", resp)

    async def enable_pages(self, branch: str) -> None:
        resp = await self._client.post(
            f"/repos/{self._repo}/pages",
            json={"source": {"branch": branch, "path": pages_source_path(self._target)}},
        )
        if resp.status_code == 409:
            logger.info("GitHub Pages already enabled for %s", self._repo)
            return
        _raise_for_status("enable_pages", resp)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _contents_url(self, path: str) -> str:
        full = f"{self._target}/{path}" if self._target else path
        return f"/repos/{self._repo}/contents/{full}"


def _raise_for_status(operation: str, resp: httpx.Response) -> None:
    if resp.is_success:
        return
    try:
        message = resp.json().get("message", "")
    except ValueError:
        message = resp.text[:200]
    raise HostingError(operation, resp.status_code, message)


def github_client_factory(
    api_url: str = DEFAULT_API_URL,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HostingFactory:
    """Bind connection settings; the returned factory takes a GitHubConfig."""

    def factory(config: GitHubConfig) -> GitHubClient:
        return GitHubClient(config, api_url=api_url, timeout=timeout, transport=transport)

    return factory
