# tests/unit/generation/test_site_generator.py — v1
"""Tests for generation/site_generator.py — prompts and response parsing."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from sitegen.core.models import SiteTone, SiteType
from sitegen.generation.site_generator import (
    FAILED_PAGE_HTML,
    GenerationError,
    PageLink,
    PageSpec,
    SiteGenerator,
    StrategyResponse,
    TunePlan,
    parse_structured,
)
from sitegen.llm.models import LLMResponse
from sitegen.llm.retry import FATAL, classify_error


def _llm(*contents: str) -> AsyncMock:
    llm = AsyncMock()
    llm.complete.side_effect = [
        LLMResponse(content=c, model="m", provider="google") for c in contents
    ]
    return llm


IDENTITY_JSON = json.dumps({
    "siteName": "Kiln & Co",
    "slug": "kiln-co",
    "mission": "Handmade ceramics.",
    "brandDescription": "Warm and earthy.",
    "themeColor": "#b45309",
    "tone": "Minimal",
})


class TestParseStructured:
    def test_valid(self):
        plan = parse_structured("plan", '{"planSummary": "s", "tasks": ["a"]}', TunePlan)
        assert plan.plan_summary == "s"
        assert plan.tasks == ["a"]

    def test_fenced_json(self):
        plan = parse_structured("plan", '```json\n{"tasks": []}\n```', TunePlan)
        assert plan.tasks == []

    def test_empty(self):
        with pytest.raises(GenerationError, match="empty response"):
            parse_structured("plan", "", TunePlan)

    def test_not_json(self):
        with pytest.raises(GenerationError, match="invalid JSON"):
            parse_structured("plan", "Sure! Here is the plan", TunePlan)

    def test_schema_mismatch(self):
        with pytest.raises(GenerationError, match="does not match schema") as exc_info:
            parse_structured("strategy", '{"hubs": "three"}', StrategyResponse)
        assert exc_info.value.capability == "strategy"

    def test_generation_error_is_fatal(self):
        assert classify_error(GenerationError("x", "bad")) == FATAL


class TestIdentity:
    @pytest.mark.asyncio
    async def test_generate_identity(self):
        llm = _llm(IDENTITY_JSON)
        identity = await SiteGenerator(llm).generate_identity(
            "Pottery", SiteType.CORPORATE, SiteTone.VIVID,
        )
        assert identity.site_name == "Kiln & Co"
        assert identity.tone == SiteTone.MINIMAL
        kwargs = llm.complete.await_args.kwargs
        assert kwargs["response_format"].__name__ == "Identity"
        prompt = llm.complete.await_args.args[0][0].content
        assert '"Vivid"' in prompt
        assert "corporate" in prompt

    @pytest.mark.asyncio
    async def test_analyze_identity_passes_markup(self):
        llm = _llm(IDENTITY_JSON)
        await SiteGenerator(llm).analyze_identity("<h1>Kiln</h1>")
        assert "<h1>Kiln</h1>" in llm.complete.await_args.args[0][0].content


class TestStrategy:
    @pytest.mark.asyncio
    async def test_fresh_ids(self, identity):
        llm = _llm(json.dumps({
            "hubs": [
                {"title": "Shop", "slug": "shop"},
                {"title": "Journal", "slug": "journal", "description": "Notes"},
            ],
            "rationale": "Two sections.",
        }))
        hubs, rationale = await SiteGenerator(llm).generate_strategy(identity)
        assert [h.slug for h in hubs] == ["shop", "journal"]
        assert hubs[0].id != hubs[1].id
        assert all(h.html is None for h in hubs)
        assert rationale == "Two sections."

    @pytest.mark.asyncio
    async def test_index_slug_is_dropped(self, identity):
        llm = _llm(json.dumps({
            "hubs": [
                {"title": "Home", "slug": "index"},
                {"title": "Shop", "slug": "shop"},
                {"title": "Start", "slug": "/Index/"},
            ],
        }))
        hubs, _ = await SiteGenerator(llm).generate_strategy(identity)
        assert [h.slug for h in hubs] == ["shop"]

    @pytest.mark.asyncio
    async def test_analyze_structure(self):
        llm = _llm(json.dumps({
            "hubs": [{"id": "h1", "title": "Shop", "slug": "shop"}],
            "articles": [{"id": "a1", "hubId": "h1", "title": "Cups", "slug": "cups"}],
        }))
        hubs, articles = await SiteGenerator(llm).analyze_structure(["shop/index.html"])
        assert hubs[0].id == "h1"
        assert articles[0].hub_id == "h1"


class TestPages:
    @pytest.mark.asyncio
    async def test_page_prompt_carries_header_links_and_material(self, identity, hubs):
        llm = _llm("```html\n<html>ok</html>\n```")
        html = await SiteGenerator(llm).generate_page_html(
            PageSpec(title="Home", description="Top page", material="Our story"),
            identity,
            hubs,
            links=[PageLink(title="Shop", url="shop/index.html")],
            is_root=True,
        )
        assert html == "<html>ok</html>"
        prompt = llm.complete.await_args.args[0][0].content
        assert "./shop/index.html" in prompt
        assert "- Shop: shop/index.html" in prompt
        assert "Source material: Our story" in prompt
        assert "response_format" not in llm.complete.await_args.kwargs

    @pytest.mark.asyncio
    async def test_empty_page_falls_back(self, identity):
        llm = _llm("")
        html = await SiteGenerator(llm).generate_page_html(
            PageSpec(title="Empty"), identity, [],
        )
        assert html == FAILED_PAGE_HTML


class TestTuning:
    @pytest.mark.asyncio
    async def test_plan(self, identity):
        llm = _llm('{"planSummary": "Darker", "tasks": ["a", "b", "c"]}')
        plan = await SiteGenerator(llm).plan_tuning("Make it dark", identity)
        assert plan.tasks == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_apply_keeps_original_on_empty(self, identity):
        llm = _llm("", "<p>new</p>")
        gen = SiteGenerator(llm)
        assert await gen.apply_tuning("<p>old</p>", "x", identity) == "<p>old</p>"
        assert await gen.apply_tuning("<p>old</p>", "x", identity) == "<p>new</p>"


class TestReadme:
    @pytest.mark.asyncio
    async def test_readme(self, identity):
        llm = _llm("```markdown\n# Kiln & Co\n```")
        assert await SiteGenerator(llm).generate_readme(identity) == "# Kiln & Co"


class TestTruncation:
    @pytest.mark.asyncio
    async def test_truncated_page_is_logged(self, identity, caplog):
        llm = AsyncMock()
        llm.complete.return_value = LLMResponse(
            content="<html><body>half", model="m", provider="google", truncated=True,
        )
        with caplog.at_level("WARNING", logger="sitegen.generation.site_generator"):
            html = await SiteGenerator(llm, max_tokens=100).generate_page_html(
                PageSpec(title="Long"), identity, [],
            )
        assert html == "<html><body>half"
        assert any("100-token limit" in r.getMessage() for r in caplog.records)
