# src/generation/templates.py — v1
"""Shared header/footer markup injected into page-generation prompts.

Every generated page embeds the same navigation header and footer so the
site stays consistent. Links are relative: pages at the root use ``./``,
pages one folder down (``<slug>/index.html``) use ``../``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from html import escape

from sitegen.core.models import HubPage, Identity, SiteType

_NAV_LINK = (
    '<a href="{href}" class="text-sm font-bold text-slate-600 '
    'hover:text-indigo-600 transition-colors whitespace-nowrap">{title}</a>'
)

_HEADER = """
<header class="fixed top-0 w-full z-50 bg-white/90 backdrop-blur-md border-b border-slate-100">
  <div class="max-w-7xl mx-auto px-4 sm:px-6 h-20 flex justify-between items-center gap-4">
    <a href="{prefix}index.html" class="flex items-center gap-2 sm:gap-3 group shrink-0">
      <div class="w-8 h-8 sm:w-10 sm:h-10 rounded-xl flex items-center justify-center text-white font-black shadow-lg" style="background-color: {theme_color}">{initial}</div>
      <span class="text-lg sm:text-xl font-black text-slate-800 tracking-tight group-hover:text-indigo-600 transition-colors">{site_name}</span>
    </a>
    <nav class="hidden md:flex items-center gap-6 overflow-x-auto no-scrollbar">{nav}</nav>
    <div class="flex items-center gap-3">
      <a href="#" class="hidden sm:block px-5 py-2.5 bg-slate-900 text-white text-xs font-black rounded-full hover:bg-indigo-600 transition-all whitespace-nowrap">{contact}</a>
      <button class="md:hidden p-2 text-slate-600" onclick="document.getElementById('mobile-menu').classList.toggle('hidden')">
        <i class="fa-solid fa-bars-staggered text-xl"></i>
      </button>
    </div>
  </div>
  <div id="mobile-menu" class="hidden md:hidden bg-white border-b border-slate-100 p-6 space-y-4">
    <div class="flex flex-col gap-4">{nav}</div>
  </div>
</header>"""

_FOOTER = """
<footer class="bg-slate-900 text-white py-16 px-6 mt-20">
  <div class="max-w-7xl mx-auto border-b border-white/10 pb-12 mb-12">
    <h4 class="text-2xl font-black mb-6">{site_name}</h4>
    <p class="text-slate-400 leading-relaxed max-w-md font-medium text-sm sm:text-base">{mission}</p>
  </div>
  <p class="text-slate-500 text-xs sm:text-sm font-bold text-center">&copy; {year} {site_name}. Built with SiteGen.</p>
</footer>"""


def link_prefix(is_root: bool) -> str:
    return "./" if is_root else "../"


def render_header(
    identity: Identity,
    site_type: SiteType,
    hubs: list[HubPage],
    is_root: bool,
) -> str:
    prefix = link_prefix(is_root)
    nav = "".join(
        _NAV_LINK.format(href=f"{prefix}{h.slug}/index.html", title=escape(h.title))
        for h in hubs
        if not h.is_index
    )
    return _HEADER.format(
        prefix=prefix,
        theme_color=escape(identity.theme_color),
        initial=escape(identity.site_name[:1]),
        site_name=escape(identity.site_name),
        nav=nav,
        contact="Contact us" if site_type == SiteType.CORPORATE else "Contact",
    )


def render_footer(identity: Identity, year: int | None = None) -> str:
    return _FOOTER.format(
        site_name=escape(identity.site_name),
        mission=escape(identity.mission),
        year=year or datetime.now(timezone.utc).year,
    )


def strip_code_fences(text: str) -> str:
    """Drop Markdown code fences the model wraps around HTML or Markdown."""
    lines = [ln for ln in text.strip().splitlines() if not ln.strip().startswith("```")]
    return "\n".join(lines).strip()
