# src/pipeline/state.py — v1
"""Mutable project state shared by every pipeline run.

The caller owns one ProjectState and passes it by reference to the
orchestrator. During a run the active runner is its only writer; progress
displays read it between notifications.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from sitegen.core.models import Article, GitHubConfig, HubPage, Identity, SiteTone, SiteType
from sitegen.pipeline.ledger import TaskLedger


class PipelineStatus(str, Enum):
    """Coarse phase of whichever pipeline is active."""

    IDLE = "idle"
    IMPORTING = "importing"
    ANALYZING_SITE = "analyzing_site"
    BUILDING_IDENTITY = "building_identity"
    GENERATING_STRATEGY = "generating_strategy"
    GENERATING_HUBS = "generating_hubs"
    READY = "ready"
    CREATING_REPO = "creating_repo"
    PUSHING_FILES = "pushing_files"
    ENABLING_PAGES = "enabling_pages"
    TUNING_DESIGN = "tuning_design"
    DEPLOYED = "deployed"

    @property
    def is_resting(self) -> bool:
        return self in RESTING_STATUSES


RESTING_STATUSES = frozenset(
    {PipelineStatus.IDLE, PipelineStatus.READY, PipelineStatus.DEPLOYED}
)

DEFAULT_OPINION = (
    "Technology should be a tool that extends human creativity and builds empathy."
)


class ProjectState(BaseModel):
    """Everything a site project carries between runs."""

    # === INPUT ===
    opinion: str = DEFAULT_OPINION
    site_type: SiteType = SiteType.PERSONAL
    tone: SiteTone | None = None

    # === ARTIFACTS ===
    identity: Identity | None = None
    hubs: list[HubPage] = Field(default_factory=list)
    articles: list[Article] = Field(default_factory=list)
    strategy_rationale: str | None = None

    # === PUBLISHING ===
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    gtm_id: str = ""
    adsense_id: str = ""

    # === EXECUTION ===
    status: PipelineStatus = PipelineStatus.IDLE
    ledger: TaskLedger = Field(default_factory=TaskLedger)
    current_detail: str | None = None

    @property
    def resting_status(self) -> PipelineStatus:
        """Resting status matching the current artifacts."""
        return PipelineStatus.READY if self.identity is not None else PipelineStatus.IDLE

    @property
    def is_busy(self) -> bool:
        return not self.status.is_resting

    def find_hub(self, hub_id: str) -> HubPage | None:
        return next((h for h in self.hubs if h.id == hub_id), None)

    def find_article(self, article_id: str) -> Article | None:
        return next((a for a in self.articles if a.id == article_id), None)

    def home_hub(self) -> HubPage | None:
        return next((h for h in self.hubs if h.is_index), self.hubs[0] if self.hubs else None)

    def settle(self) -> None:
        """Normalize a restored snapshot: no run survives a restart."""
        if not self.status.is_resting:
            self.status = self.resting_status
        self.ledger.clear()
        self.current_detail = None
