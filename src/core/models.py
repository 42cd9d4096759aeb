# src/core/models.py — v1
"""Site domain models: Identity, HubPage, Article, hosting config and repo data.

These are the artifacts the pipelines produce and consume. Field aliases
keep the camelCase keys the generation service returns.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

INDEX_SLUG = "index"
HOME_HUB_ID = "home"


class SiteTone(str, Enum):
    PROFESSIONAL = "Professional"
    CREATIVE = "Creative"
    MINIMAL = "Minimal"
    VIVID = "Vivid"
    BRUTALIST = "Brutalist"


class SiteType(str, Enum):
    CORPORATE = "Corporate"
    PERSONAL = "Personal"


class _DomainModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Identity(_DomainModel):
    """Synthesized brand description conditioning every generation call."""

    site_name: str = Field(alias="siteName")
    slug: str
    mission: str
    brand_description: str = Field(alias="brandDescription")
    theme_color: str = Field(alias="themeColor")
    tone: SiteTone | None = None


class HubPage(_DomainModel):
    """Top-level page representing one structural section of the site."""

    id: str = Field(default_factory=lambda: new_id())
    title: str
    slug: str
    description: str = ""
    html: str | None = None

    @property
    def is_index(self) -> bool:
        return self.slug == INDEX_SLUG


class Article(_DomainModel):
    """Content page nested under a hub."""

    id: str = Field(default_factory=lambda: new_id())
    hub_id: str = Field(alias="hubId")
    title: str
    slug: str
    content_html: str | None = Field(default=None, alias="contentHtml")
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        alias="createdAt",
    )


class GitHubConfig(_DomainModel):
    """Target repository for import and publish."""

    token: str = ""
    repo: str = ""  # "owner/repo" or a GitHub URL
    branch: str = "main"
    path: str = "docs"  # target directory inside the repo, "" for root


class RepoInfo(BaseModel):
    """Subset of repository metadata the pipelines rely on."""

    full_name: str = ""
    default_branch: str = "main"
    private: bool = False
    html_url: str = ""


class FileNode(BaseModel):
    """One entry of a recursive repository tree listing."""

    path: str
    type: Literal["blob", "tree", "commit"] = "blob"
    sha: str = ""
    url: str = ""


def new_id() -> str:
    """Short random identifier for generated hubs."""
    return uuid.uuid4().hex[:9]
