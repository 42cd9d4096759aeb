# tests/unit/pipeline/test_runner.py — v1
"""Tests for pipeline/runner.py — PipelineRunner unwinding rules."""

from __future__ import annotations

import asyncio
import logging
from typing import ClassVar

import pytest

from sitegen.core.cancellation import CancellationToken
from sitegen.llm.retry import RetryPolicy
from sitegen.logging.context import LogContext, get_context
from sitegen.pipeline.ledger import ExecutionTask, TaskStatus
from sitegen.pipeline.runner import PipelineRunner, RunResult
from sitegen.pipeline.state import PipelineStatus, ProjectState


# --- Helpers ---

class StepRunner(PipelineRunner):
    """Two-task runner whose second step is supplied by the test."""

    name: ClassVar[str] = "steps"

    def __init__(self, state, token, second=None, **kwargs):
        super().__init__(state, token, **kwargs)
        self.second = second
        self.cleaned = False
        self.context_during_run = LogContext()

    async def _cleanup(self):
        self.cleaned = True

    async def _execute(self):
        self._seed([
            ExecutionTask(id="one", label="One", status=TaskStatus.RUNNING),
            ExecutionTask(id="two", label="Two"),
        ])
        self._update(PipelineStatus.GENERATING_HUBS, "Working...")
        self.context_during_run = get_context()
        self.state.strategy_rationale = "kept"
        self._task("one", TaskStatus.COMPLETED)
        self._task("two", TaskStatus.RUNNING)
        if self.second is not None:
            await self.second(self)
        self._task("two", TaskStatus.COMPLETED)
        return PipelineStatus.READY


def _runner(state=None, second=None, **kwargs):
    return StepRunner(
        state or ProjectState(),
        CancellationToken(),
        second=second,
        generation_retry=RetryPolicy(max_attempts=2, initial_delay_s=0.0),
        **kwargs,
    )


class TestRunOutcomes:
    @pytest.mark.asyncio
    async def test_success(self):
        runner = _runner()
        outcome = await runner.run()
        assert outcome.result == RunResult.COMPLETED
        assert outcome.status == PipelineStatus.READY
        assert outcome.error is None
        assert outcome.duration_ms >= 0
        assert runner.state.status == PipelineStatus.READY
        assert runner.cleaned is True

    @pytest.mark.asyncio
    async def test_failure_marks_running_task(self):
        snapshots: list[dict[str, TaskStatus]] = []

        async def boom(runner):
            raise RuntimeError("boom")

        runner = _runner(
            second=boom,
            on_change=lambda s: snapshots.append({t.id: t.status for t in s.ledger.tasks}),
        )
        outcome = await runner.run()

        assert outcome.result == RunResult.FAILED
        assert outcome.error == "boom"
        assert isinstance(outcome.exception, RuntimeError)
        assert {"one": TaskStatus.COMPLETED, "two": TaskStatus.FAILED} in snapshots
        assert snapshots[-1] == {}
        assert runner.state.status == PipelineStatus.IDLE
        assert runner.state.current_detail is None
        assert runner.state.strategy_rationale == "kept"
        assert runner.cleaned is True

    @pytest.mark.asyncio
    async def test_cancel_marks_nothing_failed(self):
        snapshots: list[dict[str, TaskStatus]] = []

        async def cancel(runner):
            runner.token.cancel("stop")
            runner._checkpoint()

        runner = _runner(
            second=cancel,
            on_change=lambda s: snapshots.append({t.id: t.status for t in s.ledger.tasks}),
        )
        outcome = await runner.run()

        assert outcome.result == RunResult.CANCELED
        assert outcome.error == "stop"
        assert all(TaskStatus.FAILED not in tasks.values() for tasks in snapshots)
        assert runner.state.status == PipelineStatus.IDLE

    @pytest.mark.asyncio
    async def test_fallback_is_ready_with_prior_identity(self, identity):
        async def boom(runner):
            raise RuntimeError("boom")

        state = ProjectState(identity=identity, status=PipelineStatus.READY)
        outcome = await _runner(state, second=boom).run()
        assert outcome.status == PipelineStatus.READY

    @pytest.mark.asyncio
    async def test_fallback_snapshotted_at_start(self, identity):
        async def set_identity_then_fail(runner):
            runner.state.identity = identity
            raise RuntimeError("late")

        state = ProjectState()
        outcome = await _runner(state, second=set_identity_then_fail).run()
        assert outcome.status == PipelineStatus.IDLE

    @pytest.mark.asyncio
    async def test_asyncio_cancellation_reraised(self):
        async def hang(runner):
            await asyncio.sleep(3600)

        runner = _runner(second=hang)
        task = asyncio.create_task(runner.run())
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert runner.state.status == PipelineStatus.IDLE
        assert len(runner.state.ledger) == 0
        assert runner.cleaned is True


class TestRemoteCalls:
    @pytest.mark.asyncio
    async def test_generate_routes_through_policy(self):
        attempts = []

        async def flaky(value):
            attempts.append(value)
            if len(attempts) == 1:
                raise ConnectionError("reset")
            return value * 2

        async def call(runner):
            runner.result = await runner._generate("double", flaky, 21)

        runner = _runner(second=call)
        await runner.run()
        assert runner.result == 42
        assert attempts == [21, 21]


class TestLoggingContext:
    @pytest.mark.asyncio
    async def test_run_and_phase_in_context(self, caplog):
        runner = _runner()
        with caplog.at_level(logging.INFO, logger="sitegen.pipeline.runner"):
            await runner.run()

        assert runner.context_during_run.pipeline == "steps"
        assert runner.context_during_run.phase == "generating_hubs"
        assert runner.context_during_run.run_id
        assert get_context() == LogContext()
        assert any("completed" in r.getMessage() for r in caplog.records)
