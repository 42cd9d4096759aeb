# src/pipeline/workflows.py — v1
"""Static workflow definitions used to narrate progress.

Maps each PipelineStatus to the human-facing step of the workflow it
belongs to. The table is partitioned by status: a status appears in at most
one definition, so ``resolve()`` is unique. It is consulted only for
display, never to decide whether a pipeline advances.
"""

from __future__ import annotations

from dataclasses import dataclass

from sitegen.pipeline.state import PipelineStatus


@dataclass(frozen=True)
class WorkflowStep:
    id: str
    label: str
    description: str
    statuses: frozenset[PipelineStatus]


@dataclass(frozen=True)
class WorkflowDefinition:
    key: str
    title: str
    steps: tuple[WorkflowStep, ...]

    @property
    def statuses(self) -> frozenset[PipelineStatus]:
        return frozenset(s for step in self.steps for s in step.statuses)


@dataclass(frozen=True)
class WorkflowPosition:
    definition: WorkflowDefinition
    step_index: int

    @property
    def step(self) -> WorkflowStep:
        return self.definition.steps[self.step_index]

    @property
    def total_steps(self) -> int:
        return len(self.definition.steps)


def _step(id: str, label: str, description: str, *statuses: PipelineStatus) -> WorkflowStep:
    return WorkflowStep(id=id, label=label, description=description, statuses=frozenset(statuses))


S = PipelineStatus

WORKFLOWS: tuple[WorkflowDefinition, ...] = (
    WorkflowDefinition(
        key="build",
        title="Build a new site",
        steps=(
            _step("phase1", "Brand definition", "AI-drafted brand identity", S.BUILDING_IDENTITY),
            _step("phase2", "Strategy & structure", "Site structure and UX plan", S.GENERATING_STRATEGY),
            _step("phase3", "Implementation", "HTML/CSS generation for every page", S.GENERATING_HUBS),
            _step("phase4", "Finishing", "Integration and final touches", S.READY),
        ),
    ),
    WorkflowDefinition(
        key="deploy",
        title="Deploy to GitHub",
        steps=(
            _step("phase1", "Repository", "Create or verify the remote repository", S.CREATING_REPO),
            _step("phase2", "Asset transfer", "Push and commit every file", S.PUSHING_FILES),
            _step("phase3", "Publishing", "Enable GitHub Pages", S.ENABLING_PAGES, S.DEPLOYED),
        ),
    ),
    WorkflowDefinition(
        key="import",
        title="Restore from repository",
        steps=(
            _step("phase1", "Fetch resources", "Read repository metadata and files", S.IMPORTING),
            _step("phase2", "Structure analysis", "Extract identity and page structure", S.ANALYZING_SITE),
        ),
    ),
    WorkflowDefinition(
        key="tune",
        title="Design tuning",
        steps=(
            _step("planning", "Work plan", "Break the instruction into concrete tasks", S.TUNING_DESIGN),
            _step("execution", "Apply design", "Refactor the HTML of each page"),
        ),
    ),
)

# IDLE is the only status with no workflow step.
UNMAPPED_STATUSES = frozenset({PipelineStatus.IDLE})


def _build_index(
    workflows: tuple[WorkflowDefinition, ...],
) -> dict[PipelineStatus, WorkflowPosition]:
    index: dict[PipelineStatus, WorkflowPosition] = {}
    for definition in workflows:
        for step_index, step in enumerate(definition.steps):
            for status in step.statuses:
                if status in index:
                    raise ValueError(
                        f"Status {status.value!r} mapped by both "
                        f"{index[status].definition.key!r} and {definition.key!r}"
                    )
                index[status] = WorkflowPosition(definition, step_index)
    missing = set(PipelineStatus) - set(index) - UNMAPPED_STATUSES
    if missing:
        raise ValueError(f"Statuses without a workflow step: {sorted(s.value for s in missing)}")
    return index


_INDEX = _build_index(WORKFLOWS)


def resolve(status: PipelineStatus) -> WorkflowPosition | None:
    """Return the workflow and step index for ``status`` (None for idle)."""
    return _INDEX.get(status)


def get_workflow(key: str) -> WorkflowDefinition:
    for definition in WORKFLOWS:
        if definition.key == key:
            return definition
    raise KeyError(key)
