# src/pipeline/ledger.py — v1
"""Execution ledger: ordered tasks of the active pipeline run.

The ledger is seeded when a run starts, may be appended to as later phases
discover work (one task per generated page, per tuned target, ...), and is
cleared wholesale when the run ends. Tasks are never reordered or removed
individually. ``render()`` is a pure projection used by progress displays.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionTask(BaseModel):
    """One unit of pipeline work."""

    id: str
    label: str
    status: TaskStatus = TaskStatus.PENDING
    group_id: str | None = None
    group_label: str | None = None


class GroupProgress(BaseModel):
    """Aggregate progress of one task group."""

    group_id: str
    label: str
    tasks: list[ExecutionTask]
    completed: int
    total: int
    any_running: bool

    @property
    def is_done(self) -> bool:
        return self.total > 0 and self.completed == self.total


class LedgerView(BaseModel):
    """Grouped projection of the ledger, in first-appearance order."""

    ungrouped: list[ExecutionTask] = Field(default_factory=list)
    groups: list[GroupProgress] = Field(default_factory=list)

    @property
    def running(self) -> list[ExecutionTask]:
        found = [t for t in self.ungrouped if t.status == TaskStatus.RUNNING]
        for group in self.groups:
            found.extend(t for t in group.tasks if t.status == TaskStatus.RUNNING)
        return found


class TaskLedger(BaseModel):
    """Ordered, insertion-stable collection of ExecutionTasks."""

    tasks: list[ExecutionTask] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tasks)

    def seed(self, tasks: Iterable[ExecutionTask]) -> None:
        """Replace the whole ledger (start of a run)."""
        self.tasks = [t.model_copy() for t in tasks]

    def append(self, tasks: Iterable[ExecutionTask]) -> None:
        self.tasks.extend(t.model_copy() for t in tasks)

    def set_status(self, task_id: str, status: TaskStatus) -> bool:
        """Transition the task with ``task_id``.

        Unknown ids are ignored: a canceled run may still race a stale
        update. Returns whether a task was updated.
        """
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                self.tasks[i] = task.model_copy(update={"status": status})
                return True
        return False

    def get(self, task_id: str) -> ExecutionTask | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def running(self) -> list[ExecutionTask]:
        return [t for t in self.tasks if t.status == TaskStatus.RUNNING]

    def clear(self) -> None:
        self.tasks = []

    def render(self) -> LedgerView:
        """Partition tasks into ungrouped ones and per-group progress."""
        ungrouped: list[ExecutionTask] = []
        grouped: dict[str, list[ExecutionTask]] = {}
        for task in self.tasks:
            if task.group_id:
                grouped.setdefault(task.group_id, []).append(task)
            else:
                ungrouped.append(task)

        groups = [
            GroupProgress(
                group_id=group_id,
                label=members[0].group_label or group_id,
                tasks=members,
                completed=sum(1 for t in members if t.status == TaskStatus.COMPLETED),
                total=len(members),
                any_running=any(t.status == TaskStatus.RUNNING for t in members),
            )
            for group_id, members in grouped.items()
        ]
        return LedgerView(ungrouped=ungrouped, groups=groups)
