# src/main.py — v1
"""CLI entry point — build, tune, import, publish, status commands.

Usage:
    sitegen build "<statement of intent>" [--type corporate] [--tone Minimal]
    sitegen tune "<instruction>" [--target <page id>|all]
    sitegen import <owner/repo> [--token TOKEN]
    sitegen publish [--repo owner/repo] [--branch main] [--path docs]
    sitegen status

The project state is kept in a local snapshot between commands. Ctrl-C
cancels the running pipeline cleanly; the snapshot is saved either way.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Awaitable, Callable

from sitegen.config.settings import Settings, load_settings
from sitegen.core.models import SiteTone, SiteType
from sitegen.logging.logger import setup_logging
from sitegen.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = load_settings()
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="sitegen",
        description=f"SiteGen v{__version__} — AI website generator and publisher",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--state", type=Path, default=None,
        help="Project snapshot file (default: STATE_FILE setting)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- build ---
    p_build = subparsers.add_parser("build", help="Generate a new site")
    p_build.add_argument("statement", help="What the site is about, in your words")
    p_build.add_argument(
        "--type", dest="site_type", default=SiteType.PERSONAL.value,
        type=_parse_site_type,
        help="Site type: personal or corporate (default: personal)",
    )
    p_build.add_argument(
        "--tone", default=None, type=_parse_tone,
        help="Tone: " + ", ".join(t.value for t in SiteTone),
    )
    p_build.set_defaults(func=_cmd_build)

    # --- tune ---
    p_tune = subparsers.add_parser("tune", help="Refactor the design of pages")
    p_tune.add_argument("instruction", help="Design change to apply")
    p_tune.add_argument(
        "--target", default="all",
        help="Hub or article id to tune (default: all)",
    )
    p_tune.set_defaults(func=_cmd_tune)

    # --- import ---
    p_import = subparsers.add_parser(
        "import", help="Restore a site from a GitHub repository",
    )
    p_import.add_argument("repo", help="owner/repo or repository URL")
    p_import.add_argument(
        "--token", default=None,
        help="GitHub token (default: GITHUB_TOKEN setting)",
    )
    p_import.set_defaults(func=_cmd_import)

    # --- publish ---
    p_publish = subparsers.add_parser(
        "publish", help="Deploy the site to GitHub Pages",
    )
    p_publish.add_argument("--repo", default=None, help="owner/repo")
    p_publish.add_argument("--branch", default=None, help="Target branch")
    p_publish.add_argument("--path", default=None, help="Target directory")
    p_publish.add_argument("--token", default=None, help="GitHub token")
    p_publish.set_defaults(func=_cmd_publish)

    # --- status ---
    p_status = subparsers.add_parser("status", help="Show the project state")
    p_status.set_defaults(func=_cmd_status)

    return parser


def _parse_site_type(value: str) -> SiteType:
    for site_type in SiteType:
        if site_type.value.lower() == value.lower():
            return site_type
    raise argparse.ArgumentTypeError(f"unknown site type: {value}")


def _parse_tone(value: str) -> SiteTone:
    for tone in SiteTone:
        if tone.value.lower() == value.lower():
            return tone
    raise argparse.ArgumentTypeError(f"unknown tone: {value}")


# --- Commands ---


async def _cmd_build(args: argparse.Namespace, settings: Settings) -> int:
    """Generate a site from a statement of intent."""
    def prepare(state):
        state.opinion = args.statement
        state.site_type = args.site_type
        state.tone = args.tone

    return await _run_pipeline(
        args, settings, lambda orch: orch.start_build(), prepare=prepare,
    )


async def _cmd_tune(args: argparse.Namespace, settings: Settings) -> int:
    """Apply a design instruction to one page or all pages."""
    return await _run_pipeline(
        args, settings, lambda orch: orch.start_tune(args.instruction, args.target),
    )


async def _cmd_import(args: argparse.Namespace, settings: Settings) -> int:
    """Restore the project from an existing repository."""
    token = args.token or settings.github_token
    return await _run_pipeline(
        args, settings, lambda orch: orch.start_import(args.repo, token),
    )


def _apply_publish_target(github, args: argparse.Namespace, settings: Settings) -> None:
    """Resolve the deploy target: CLI flags, then the snapshot, then settings.

    A snapshot that never targeted a repository carries only model defaults,
    so its branch and path are seeded from settings first.
    """
    if not github.repo:
        github.branch = settings.github_branch
        github.path = settings.github_path
    github.repo = args.repo or github.repo or settings.github_repo
    github.branch = args.branch or github.branch or settings.github_branch
    if args.path is not None:
        github.path = args.path
    github.path = github.path.strip("/")
    github.token = args.token or github.token or settings.github_token


async def _cmd_publish(args: argparse.Namespace, settings: Settings) -> int:
    """Push the site to GitHub and enable Pages."""
    def prepare(state):
        _apply_publish_target(state.github, args, settings)

    return await _run_pipeline(
        args, settings,
        lambda orch: orch.start_publish(on_file=lambda path: print(f"  -> {path}")),
        prepare=prepare,
    )


async def _cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    """Print the saved project state."""
    from sitegen.storage.snapshot import SnapshotStore

    store = SnapshotStore(args.state or settings.state_file)
    state = store.load()

    print(f"\nProject ({store.path}):")
    print(f"  Status:   {state.status.value}")
    if state.identity is None:
        print("  No site yet. Run `sitegen build` or `sitegen import`.")
        return 0
    print(f"  Site:     {state.identity.site_name} ({state.site_type.value})")
    print(f"  Mission:  {state.identity.mission}")
    print(f"  Pages:    {len(state.hubs)} hubs, {len(state.articles)} articles")
    for hub in state.hubs:
        marker = "" if hub.html else "  (no markup)"
        print(f"    [{hub.id}] {hub.slug}: {hub.title}{marker}")
    if state.github.repo:
        print(f"  GitHub:   {state.github.repo}@{state.github.branch}/{state.github.path}")
    return 0


# --- Helpers ---


async def _run_pipeline(
    args: argparse.Namespace,
    settings: Settings,
    start: Callable[..., Awaitable],
    prepare: Callable | None = None,
) -> int:
    """Load the snapshot, run one pipeline with Ctrl-C wired to cancel, save."""
    from sitegen.generation.site_generator import SiteGenerator
    from sitegen.hosting.github_client import github_client_factory
    from sitegen.llm.client_factory import create_llm_client
    from sitegen.pipeline.orchestrator import SiteOrchestrator
    from sitegen.storage.snapshot import SnapshotStore

    store = SnapshotStore(args.state or settings.state_file)
    state = store.load()
    if prepare is not None:
        prepare(state)

    generator = SiteGenerator(
        create_llm_client(settings=settings),
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_default_temperature,
    )
    orchestrator = SiteOrchestrator(
        state,
        generator,
        github_client_factory(settings.github_api_url, settings.http_timeout_s),
        settings=settings,
        on_change=_progress_printer(),
    )

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel_active)
        handler_installed = True
    except NotImplementedError:
        # Windows event loops: Ctrl-C falls back to KeyboardInterrupt
        handler_installed = False

    try:
        outcome = await start(orchestrator)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)
        store.save(state)

    print(f"\n{outcome.pipeline}: {outcome.result.value} -> {outcome.status.value}")
    if outcome.error and outcome.result.value == "failed":
        print(f"  Error: {outcome.error}", file=sys.stderr)
    return 0 if outcome.success else (130 if outcome.result.value == "canceled" else 1)


def _progress_printer() -> Callable:
    """Observer that prints each new progress detail once."""
    last: list[str | None] = [None]

    def on_change(state) -> None:
        if state.current_detail and state.current_detail != last[0]:
            print(f"[{state.status.value}] {state.current_detail}")
        last[0] = state.current_detail

    return on_change


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
