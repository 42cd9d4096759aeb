# tests/unit/pipeline/test_unit_state.py — v1
"""Tests for pipeline/state.py — ProjectState and PipelineStatus."""

from __future__ import annotations

from sitegen.core.models import HubPage
from sitegen.pipeline.ledger import ExecutionTask
from sitegen.pipeline.state import RESTING_STATUSES, PipelineStatus, ProjectState


class TestPipelineStatus:
    def test_resting(self):
        assert RESTING_STATUSES == {
            PipelineStatus.IDLE, PipelineStatus.READY, PipelineStatus.DEPLOYED,
        }
        assert PipelineStatus.DEPLOYED.is_resting
        assert not PipelineStatus.PUSHING_FILES.is_resting


class TestProjectState:
    def test_defaults(self):
        state = ProjectState()
        assert state.status == PipelineStatus.IDLE
        assert state.identity is None
        assert state.hubs == []
        assert len(state.ledger) == 0
        assert state.github.path == "docs"
        assert state.is_busy is False

    def test_resting_status(self, identity):
        assert ProjectState().resting_status == PipelineStatus.IDLE
        assert ProjectState(identity=identity).resting_status == PipelineStatus.READY

    def test_lookups(self, ready_state):
        assert ready_state.find_hub("h2").slug == "journal"
        assert ready_state.find_hub("zz") is None
        assert ready_state.find_article("a1").slug == "glazing"

    def test_home_hub(self, ready_state):
        assert ready_state.home_hub().id == "h1"
        ready_state.hubs.append(HubPage(id="home", title="Home", slug="index"))
        assert ready_state.home_hub().id == "home"
        assert ProjectState().home_hub() is None

    def test_settle_interrupted_run(self, identity):
        state = ProjectState(
            identity=identity,
            status=PipelineStatus.PUSHING_FILES,
            current_detail="Uploading: index.html",
        )
        state.ledger.seed([ExecutionTask(id="t", label="T")])
        state.settle()
        assert state.status == PipelineStatus.READY
        assert len(state.ledger) == 0
        assert state.current_detail is None

    def test_settle_keeps_deployed(self):
        state = ProjectState(status=PipelineStatus.DEPLOYED)
        state.settle()
        assert state.status == PipelineStatus.DEPLOYED
