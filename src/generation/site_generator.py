# src/generation/site_generator.py — v1
"""Content-generation capabilities consumed by the pipelines.

Each method is a single LLM call: build the prompt, request a completion
(JSON-constrained where the result is structured), parse. Retrying is the
caller's job: pipelines wrap every call in their RetryPolicy, so nothing
here loops or sleeps. Malformed responses raise GenerationError, which the
retry policy classifies as fatal.
"""

from __future__ import annotations

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sitegen.core.models import (
    INDEX_SLUG,
    Article,
    HubPage,
    Identity,
    SiteTone,
    SiteType,
    new_id,
)
from sitegen.generation.templates import render_footer, render_header, strip_code_fences
from sitegen.llm.base_client import BaseLLMClient
from sitegen.llm.models import Message

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

FAILED_PAGE_HTML = "<html><body>Page generation failed.</body></html>"

_TONES = ", ".join(t.value for t in SiteTone)


class GenerationError(Exception):
    """The generation service returned something unusable."""

    def __init__(self, capability: str, message: str, raw: str = ""):
        self.capability = capability
        self.raw = raw[:2000]
        super().__init__(f"{capability}: {message}")


# --- Response / request schemas ---


class HubDraft(BaseModel):
    title: str
    slug: str
    description: str = ""


class StrategyResponse(BaseModel):
    hubs: list[HubDraft]
    rationale: str = ""


class StructureResponse(BaseModel):
    hubs: list[HubPage] = Field(default_factory=list)
    articles: list[Article] = Field(default_factory=list)


class TunePlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_summary: str = Field(default="", alias="planSummary")
    tasks: list[str] = Field(default_factory=list)


class PageLink(BaseModel):
    title: str
    url: str


class PageSpec(BaseModel):
    """What a page is about; ``material`` is optional source content."""

    title: str
    description: str = ""
    material: str | None = None


# --- Generator ---


class SiteGenerator:
    """Prompted generation calls over any BaseLLMClient.

    Args:
        llm: Client used for every call.
        max_tokens: Completion budget per call.
        temperature: Sampling temperature.
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        max_tokens: int = 8192,
        temperature: float = 0.7,
    ) -> None:
        self._llm = llm
        self._max_tokens = max_tokens
        self._temperature = temperature

    # --- Identity ---

    async def generate_identity(
        self,
        statement: str,
        site_type: SiteType = SiteType.PERSONAL,
        tone: SiteTone | None = None,
    ) -> Identity:
        """Draft a brand identity from the user's statement of intent."""
        tone_line = (
            f'Use the tone "{tone.value}".'
            if tone
            else "Choose the tone that best fits the statement."
        )
        prompt = (
            f'Create a brand identity for a {site_type.value.lower()} website '
            f'based on this statement: "{statement}". {tone_line}'
        )
        system = (
            "You are a brand strategist. Answer in JSON. "
            f"The tone property must be one of: {_TONES}. "
            "themeColor must be a CSS hex color."
        )
        return await self._structured("generate_identity", prompt, system, Identity)

    async def analyze_identity(self, html: str) -> Identity:
        """Infer a brand identity from an existing page, without altering it."""
        prompt = (
            "Analyze the following HTML exactly as it is. Do NOT modify or "
            "rewrite it; only extract the brand information it expresses.\n\n"
            f"{html}"
        )
        system = (
            "You are a website analysis agent. Answer in JSON. "
            f"The tone property must be one of: {_TONES}."
        )
        return await self._structured("analyze_identity", prompt, system, Identity)

    # --- Structure ---

    async def generate_strategy(
        self,
        identity: Identity,
        site_type: SiteType = SiteType.PERSONAL,
    ) -> tuple[list[HubPage], str]:
        """Propose the hub pages of the site. Each hub gets a fresh id."""
        prompt = (
            f'Propose the site structure for "{identity.site_name}" '
            f"({site_type.value.lower()} site).\n"
            f"Mission: {identity.mission}\n"
            f"Brand: {identity.brand_description}\n"
            "Return the top-level sections (hubs) in navigation order, with a "
            "URL-safe slug for each, and a short rationale."
        )
        system = "You are a UX architect. Answer in JSON. Never use the slug 'index'."
        result = await self._structured(
            "generate_strategy", prompt, system, StrategyResponse,
        )
        hubs = []
        for d in result.hubs:
            if d.slug.strip().strip("/").lower() == INDEX_SLUG:
                logger.warning("generate_strategy: dropping hub %r, slug is reserved", d.title)
                continue
            hubs.append(
                HubPage(id=new_id(), title=d.title, slug=d.slug, description=d.description),
            )
        return hubs, result.rationale

    async def analyze_structure(
        self, file_paths: list[str],
    ) -> tuple[list[HubPage], list[Article]]:
        """Partition an existing site's HTML files into hubs and articles."""
        listing = "\n".join(file_paths)
        prompt = (
            "Organize the following website files into top-level hubs and the "
            "articles nested under them. A hub lives at <slug>/index.html; the "
            "root index.html is the hub with slug 'index'. Each article's hubId "
            f"must reference one of the hub ids.\n{listing}"
        )
        system = "You are a website structure analyst. Answer in JSON."
        result = await self._structured(
            "analyze_structure", prompt, system, StructureResponse,
        )
        return result.hubs, result.articles

    # --- Pages ---

    async def generate_page_html(
        self,
        page: PageSpec,
        identity: Identity,
        all_hubs: list[HubPage],
        links: list[PageLink] | None = None,
        is_root: bool = False,
        site_type: SiteType = SiteType.PERSONAL,
        custom_instruction: str | None = None,
    ) -> str:
        """Generate the complete HTML document of one page."""
        header = render_header(identity, site_type, all_hubs, is_root)
        footer = render_footer(identity)
        lines = [
            "You are a front-end engineer.",
            f"Produce HTML that follows the tone: {identity.tone.value if identity.tone else 'Professional'}.",
            "",
            f"Page: {page.title}",
            f"Page purpose: {page.description}",
            f"Site name: {identity.site_name}",
            f"Theme color: {identity.theme_color}",
        ]
        if page.material:
            lines.append(f"Source material: {page.material}")
        if links:
            lines.append("Link to these pages:")
            lines.extend(f"- {link.title}: {link.url}" for link in links)
        if custom_instruction:
            lines.append(f"Additional instruction: {custom_instruction}")
        lines += [
            "",
            "Requirements:",
            "1. Output a complete HTML document.",
            "2. Use Tailwind CSS from the CDN.",
            f"3. Header: {header}",
            f"4. Footer: {footer}",
            "5. Reply with HTML only.",
        ]
        content = await self._text("generate_page_html", "\n".join(lines))
        return strip_code_fences(content) or FAILED_PAGE_HTML

    # --- Tuning ---

    async def plan_tuning(self, instruction: str, identity: Identity) -> TunePlan:
        """Break a design instruction into 3-5 concrete technical steps."""
        tone = identity.tone.value if identity.tone else "unspecified"
        prompt = f"Instruction: {instruction}\nSite tone: {tone}"
        system = (
            "You plan website improvements. List 3 to 5 concrete technical "
            "steps that achieve the instruction, plus an overall summary. "
            "Answer in JSON."
        )
        return await self._structured("plan_tuning", prompt, system, TunePlan)

    async def apply_tuning(
        self, html: str, instruction: str, identity: Identity,
    ) -> str:
        """Rewrite a page's design; content and link structure must survive."""
        tone = identity.tone.value if identity.tone else "unspecified"
        prompt = (
            "Revise the design of the following HTML.\n"
            f"Instruction: {instruction}\n"
            f"Tone: {tone}\n\n"
            "Requirements:\n"
            "1. Do not break the content or the link structure.\n"
            "2. Adjust the Tailwind CSS classes.\n"
            "3. Reply with HTML only.\n\n"
            f"Current HTML:\n{html}"
        )
        content = await self._text("apply_tuning", prompt)
        return strip_code_fences(content) or html

    # --- Repository ---

    async def generate_readme(self, identity: Identity) -> str:
        prompt = (
            f"Write a README.md for the website {identity.site_name}.\n"
            f"Mission: {identity.mission}\n"
            f"Description: {identity.brand_description}"
        )
        content = await self._text("generate_readme", prompt)
        return strip_code_fences(content)

    # --- Internal helpers ---

    async def _text(self, capability: str, prompt: str, system: str | None = None) -> str:
        logger.debug("%s: requesting completion (%d chars)", capability, len(prompt))
        response = await self._llm.complete(
            [Message(role="user", content=prompt)],
            system=system,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        if response.truncated:
            logger.warning(
                "%s: output hit the %d-token limit, markup may be incomplete",
                capability, self._max_tokens,
            )
        return response.content or ""

    async def _structured(
        self,
        capability: str,
        prompt: str,
        system: str,
        schema: type[M],
    ) -> M:
        response = await self._llm.complete(
            [Message(role="user", content=prompt)],
            system=system,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            response_format=schema,
        )
        return parse_structured(capability, response.content, schema)


def parse_structured(capability: str, content: str, schema: type[M]) -> M:
    """Parse a JSON completion into ``schema``.

    Raises:
        GenerationError: On empty, non-JSON or schema-violating content.
    """
    text = strip_code_fences(content or "")
    if not text:
        raise GenerationError(capability, "empty response")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("%s: invalid JSON response: %s", capability, text[:500])
        raise GenerationError(capability, f"invalid JSON ({exc.msg})", text) from exc
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise GenerationError(
            capability, f"response does not match schema: {exc.error_count()} errors", text,
        ) from exc
