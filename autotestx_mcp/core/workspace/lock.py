"""Advisory single-session lock for a project directory."""

from __future__ import annotations

import asyncio
import logging
import os

from ...constants import LOCK_FILE_NAME
from ..errors import ProjectLockedError

logger = logging.getLogger(__name__)


class ProjectLock:
    """
    Async context manager guarding a project directory against a second
    concurrent repair session.

    The lock is a file created with O_CREAT | O_EXCL holding the owner's pid.
    A lock left behind by a process that no longer exists is taken over.

    Usage:
        async with ProjectLock(project_dir):
            await loop.run(project_dir)
    """

    def __init__(self, project_dir: str):
        self.project_dir = project_dir
        self.lock_path = os.path.join(project_dir, LOCK_FILE_NAME)
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Take the lock or raise ProjectLockedError."""

        for _ in range(2):
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                holder = self._read_holder()
                if holder is not None and _pid_alive(holder):
                    raise ProjectLockedError(self.project_dir, holder)
                logger.warning(f"Removing stale project lock {self.lock_path} (pid {holder})")
                try:
                    os.unlink(self.lock_path)
                except FileNotFoundError:
                    pass
                continue

            with os.fdopen(fd, "w") as handle:
                handle.write(str(os.getpid()))
            self._held = True
            logger.debug(f"Acquired project lock {self.lock_path}")
            return

        raise ProjectLockedError(self.project_dir, self._read_holder())

    def release(self) -> None:
        """Release the lock if held by this instance."""

        if not self._held:
            return
        try:
            os.unlink(self.lock_path)
        except FileNotFoundError:
            logger.warning(f"Project lock {self.lock_path} vanished before release")
        self._held = False
        logger.debug(f"Released project lock {self.lock_path}")

    def _read_holder(self) -> int | None:
        try:
            with open(self.lock_path, encoding="utf-8") as handle:
                return int(handle.read().strip() or 0) or None
        except (OSError, ValueError):
            return None

    async def __aenter__(self) -> ProjectLock:
        await asyncio.to_thread(self.acquire)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await asyncio.to_thread(self.release)


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by another user
        return True
    return True
