# tests/unit/core/test_models.py — v1
"""Tests for core/models.py — site domain models.

Also covers version.py import validation.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sitegen.core.models import (
    Article,
    FileNode,
    GitHubConfig,
    HubPage,
    Identity,
    RepoInfo,
    SiteTone,
    new_id,
)


class TestIdentity:
    def test_from_camel_case(self):
        identity = Identity.model_validate({
            "siteName": "Kiln",
            "slug": "kiln",
            "mission": "m",
            "brandDescription": "b",
            "themeColor": "#000",
            "tone": "Brutalist",
        })
        assert identity.site_name == "Kiln"
        assert identity.tone == SiteTone.BRUTALIST

    def test_by_field_name(self, identity):
        assert identity.brand_description.startswith("A small pottery")
        assert identity.model_dump(by_alias=True)["themeColor"] == "#b45309"

    def test_unknown_tone(self):
        with pytest.raises(ValidationError):
            Identity(
                site_name="x", slug="x", mission="m", brand_description="b",
                theme_color="#fff", tone="Loud",
            )


class TestHubPage:
    def test_generated_id(self):
        a = HubPage(title="A", slug="a")
        b = HubPage(title="B", slug="b")
        assert a.id != b.id
        assert len(a.id) == 9
        assert a.html is None

    def test_is_index(self):
        assert HubPage(title="Home", slug="index").is_index
        assert not HubPage(title="Shop", slug="shop").is_index


class TestArticle:
    def test_aliases_and_timestamp(self):
        article = Article.model_validate(
            {"hubId": "h1", "title": "T", "slug": "t", "contentHtml": "<p/>"},
        )
        assert article.hub_id == "h1"
        assert article.content_html == "<p/>"
        assert article.created_at


class TestHostingModels:
    def test_github_defaults(self):
        config = GitHubConfig()
        assert config.branch == "main"
        assert config.path == "docs"
        assert config.token == ""

    def test_repo_info_ignores_extra_fields(self):
        info = RepoInfo.model_validate(
            {"full_name": "kiln/site", "default_branch": "gh-pages", "id": 7},
        )
        assert info.default_branch == "gh-pages"

    def test_file_node(self):
        node = FileNode(path="docs/index.html")
        assert node.type == "blob"


def test_new_id_unique():
    assert len({new_id() for _ in range(50)}) == 50


def test_version_importable():
    from sitegen.version import __version__

    assert __version__ == "0.1.0"
