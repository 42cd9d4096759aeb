# src/hosting/base_client.py — v1
"""Abstract repository-hosting interface used by Import and Publish."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from sitegen.core.models import FileNode, GitHubConfig, RepoInfo


class HostingError(Exception):
    """Non-success response from the hosting service."""

    def __init__(self, operation: str, status_code: int | None, message: str = ""):
        self.operation = operation
        self.status_code = status_code
        self.message = message
        status = f" ({status_code})" if status_code is not None else ""
        super().__init__(f"{operation} failed{status}: {message or 'unknown error'}")


class BaseHostingClient(ABC):
    """Repository operations needed to import and publish a site.

    Paths passed to file operations are relative to the configured target
    directory; implementations prepend it.
    """

    @property
    @abstractmethod
    def repo(self) -> str:
        """Normalized "owner/repo" reference."""

    @abstractmethod
    async def get_repo(self) -> RepoInfo | None:
        """Repository metadata, or None if the repository does not exist."""

    @abstractmethod
    async def create_repo(self) -> None:
        """Create the repository. An existing repository is not an error."""

    @abstractmethod
    async def list_tree(self, branch: str) -> list[FileNode]:
        """Recursive file listing of ``branch`` (repository-root paths)."""

    @abstractmethod
    async def get_file_content(self, node: FileNode) -> str:
        """Decoded text content of a file from a tree listing."""

    @abstractmethod
    async def get_file_sha(self, path: str, branch: str) -> str | None:
        """Current revision marker of ``path``, or None if it does not exist."""

    @abstractmethod
    async def put_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
    ) -> None:
        """Create ``path``, or overwrite it in place when ``sha`` is given."""

    @abstractmethod
    async def enable_pages(self, branch: str) -> None:
        """Turn on static hosting. Already enabled is not an error."""

    async def aclose(self) -> None:
        """Release transport resources."""


HostingFactory = Callable[[GitHubConfig], BaseHostingClient]
