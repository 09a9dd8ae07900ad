"""Apply oracle-proposed full-file replacements to disk."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

from ..errors import MutationError
from ..extractor import CodeUpdate
from ..workspace import ProjectWorkspace

logger = logging.getLogger(__name__)


class CodeMutator:
    """
    Write a batch of CodeUpdates concurrently.

    Writes to distinct paths are independent. Two updates for the same path
    in one batch race: each write is atomic, so exactly one content wins,
    but which one is unspecified. Failed batches are not rolled back.
    """

    def __init__(self, workspace: ProjectWorkspace | None = None):
        self.workspace = workspace or ProjectWorkspace()

    async def apply(self, updates: list[CodeUpdate]) -> None:
        """
        Write every update; raise after all writes settle if any failed.

        Raises:
            MutationError: Mapping of failed path -> error message
        """
        duplicates = [
            path for path, count in Counter(u.file_path for u in updates).items()
            if count > 1
        ]
        for path in duplicates:
            logger.warning(f"Multiple updates target {path} in one batch; last write wins")

        outcomes = await asyncio.gather(
            *(self._write(update) for update in updates),
            return_exceptions=True
        )

        failures = {
            update.file_path: str(outcome)
            for update, outcome in zip(updates, outcomes)
            if isinstance(outcome, Exception)
        }
        if failures:
            for path, error in failures.items():
                logger.error(f"Error applying code update to {path}: {error}")
            raise MutationError(failures)

    async def _write(self, update: CodeUpdate) -> None:
        await self.workspace.write_text(update.file_path, update.content)
        logger.info(f"Updated file {update.file_path}: {update.reason}")
