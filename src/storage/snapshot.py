# src/storage/snapshot.py — v1
"""Local JSON snapshot of the ProjectState between CLI invocations.

Runs never resume from a snapshot: loading settles any non-resting status
and drops the ledger. The hosting token is not written unless asked for.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from sitegen.pipeline.state import ProjectState

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Load and save one ProjectState file."""

    def __init__(self, path: str | Path, include_secrets: bool = False) -> None:
        self._path = Path(path).expanduser()
        self._include_secrets = include_secrets

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> ProjectState:
        """Read the snapshot, or return a fresh state if there is none.

        Raises:
            ValueError: If the file exists but is not a valid snapshot.
        """
        if not self.exists():
            logger.debug("No snapshot at %s, starting fresh", self._path)
            return ProjectState()
        try:
            state = ProjectState.model_validate_json(
                self._path.read_text(encoding="utf-8")
            )
        except ValidationError as exc:
            raise ValueError(f"Corrupt snapshot {self._path}: {exc}") from exc
        state.settle()
        return state

    def save(self, state: ProjectState) -> None:
        """Write atomically (temp file then rename)."""
        exclude = None if self._include_secrets else {"github": {"token"}}
        payload = state.model_dump_json(indent=2, exclude=exclude)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, self._path)
        logger.debug("Saved snapshot to %s", self._path)
