# tests/unit/pipeline/test_orchestrator.py — v1
"""Tests for pipeline/orchestrator.py — exclusivity, cancellation, progress."""

from __future__ import annotations

import asyncio

import pytest

from sitegen.pipeline.orchestrator import PipelineBusy, SiteOrchestrator
from sitegen.pipeline.runner import RunResult
from sitegen.pipeline.state import PipelineStatus, ProjectState


def _orchestrator(state, generator, hosting, settings):
    return SiteOrchestrator(state, generator, lambda config: hosting, settings=settings)


@pytest.fixture
def blocked(generator, identity):
    """Make generate_identity wait until the returned event is set."""
    entered = asyncio.Event()
    release = asyncio.Event()

    async def identity_call(*args, **kwargs):
        entered.set()
        await release.wait()
        return identity

    generator.generate_identity.side_effect = identity_call
    return entered, release


class TestExclusivity:
    @pytest.mark.asyncio
    async def test_second_start_rejected_while_running(
        self, generator, hosting, settings, ready_state, blocked,
    ):
        entered, release = blocked
        orch = _orchestrator(ready_state, generator, hosting, settings)
        task = asyncio.create_task(orch.start_build())
        await entered.wait()

        assert orch.active == "build"
        with pytest.raises(PipelineBusy) as exc_info:
            await orch.start_publish()
        assert exc_info.value.active == "build"
        assert hosting.calls == []

        release.set()
        outcome = await task
        assert outcome.success
        assert orch.active is None

    @pytest.mark.asyncio
    async def test_next_run_allowed_after_completion(
        self, generator, hosting, settings, ready_state,
    ):
        orch = _orchestrator(ready_state, generator, hosting, settings)
        assert (await orch.start_tune("x")).success
        assert (await orch.start_publish()).success


class TestCancelActive:
    def test_nothing_running(self, generator, hosting, settings):
        orch = _orchestrator(ProjectState(), generator, hosting, settings)
        assert orch.cancel_active() is False

    @pytest.mark.asyncio
    async def test_cancel_running_build(self, generator, hosting, settings, blocked):
        entered, release = blocked
        state = ProjectState()
        orch = _orchestrator(state, generator, hosting, settings)
        task = asyncio.create_task(orch.start_build())
        await entered.wait()

        assert orch.cancel_active("stop") is True
        release.set()
        outcome = await task

        assert outcome.result == RunResult.CANCELED
        assert outcome.error == "stop"
        assert state.status == PipelineStatus.IDLE
        generator.generate_strategy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fresh_token_after_cancel(self, generator, hosting, settings, blocked):
        entered, release = blocked
        state = ProjectState()
        orch = _orchestrator(state, generator, hosting, settings)
        task = asyncio.create_task(orch.start_build())
        await entered.wait()
        orch.cancel_active()
        release.set()
        await task

        # The next run is not affected by the earlier cancellation
        outcome = await orch.start_build()
        assert outcome.success
        assert state.status == PipelineStatus.READY

    @pytest.mark.asyncio
    async def test_task_cancellation_unwinds_state(
        self, generator, hosting, settings, blocked,
    ):
        entered, _ = blocked
        state = ProjectState()
        orch = _orchestrator(state, generator, hosting, settings)
        task = asyncio.create_task(orch.start_build())
        await entered.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert state.status == PipelineStatus.IDLE
        assert len(state.ledger) == 0
        assert orch.active is None


class TestProgress:
    @pytest.mark.asyncio
    async def test_progress_mid_run(self, generator, hosting, settings, blocked):
        entered, release = blocked
        state = ProjectState()
        orch = _orchestrator(state, generator, hosting, settings)
        task = asyncio.create_task(orch.start_build())
        await entered.wait()

        progress = orch.progress()
        assert progress.status == PipelineStatus.BUILDING_IDENTITY
        assert progress.position.definition.key == "build"
        assert progress.position.step_index == 0
        assert [t.id for t in progress.ledger.ungrouped][:2] == ["identity", "strategy"]

        release.set()
        await task

    def test_progress_idle(self, generator, hosting, settings):
        progress = _orchestrator(ProjectState(), generator, hosting, settings).progress()
        assert progress.status == PipelineStatus.IDLE
        assert progress.position is None
        assert progress.detail is None
