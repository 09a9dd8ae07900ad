"""
Project Workspace - file-system access for a project under repair.

Provides:
- Recursive listing with ignore patterns (matched per path component)
- Text reads and atomic text writes (parent directories created)
- Stat information
- Path resolution confined to the project directory

All I/O runs in worker threads so callers can fan out with asyncio.gather.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
import stat
import tempfile
from datetime import datetime
from pathlib import Path

from ...constants import DEFAULT_IGNORE_PATTERNS
from ..errors import PathOutsideProjectError
from .models import FileInfo

logger = logging.getLogger(__name__)


def _read_umask() -> int:
    # os.umask can only be read by setting it, so read it once at import
    umask = os.umask(0)
    os.umask(umask)
    return umask


_PROCESS_UMASK = _read_umask()


class ProjectWorkspace:
    """Async file operations used by the repair engine."""

    def __init__(self, ignore_patterns: list[str] | None = None):
        """
        Initialize the workspace.

        Args:
            ignore_patterns: Extra fnmatch patterns added to the defaults
        """
        self.ignore_patterns = [*DEFAULT_IGNORE_PATTERNS, *(ignore_patterns or [])]

    def should_ignore(self, relative_path: str) -> bool:
        """True if any component of `relative_path` matches an ignore pattern."""

        parts = Path(relative_path).parts
        return any(
            fnmatch.fnmatch(part, pattern)
            for part in parts
            for pattern in self.ignore_patterns
        )

    async def list_files(self, root: str) -> list[str]:
        """List all non-ignored files under `root` (absolute paths, sorted)."""
        return await asyncio.to_thread(self._list_files_sync, root)

    def _list_files_sync(self, root: str) -> list[str]:
        base = os.path.abspath(root)
        results = []

        for dirpath, dirnames, filenames in os.walk(base):
            rel_dir = os.path.relpath(dirpath, base)
            # Prune ignored directories in place so os.walk skips them
            dirnames[:] = [
                d for d in dirnames
                if not self.should_ignore(os.path.join(rel_dir, d))
            ]
            for name in filenames:
                rel_path = os.path.normpath(os.path.join(rel_dir, name))
                if not self.should_ignore(rel_path):
                    results.append(os.path.join(dirpath, name))

        return sorted(results)

    async def read_text(self, path: str) -> str:
        """Read a file as UTF-8 text."""
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")

    async def write_text(self, path: str, content: str) -> None:
        """Write `content` to `path`, replacing it atomically."""
        await asyncio.to_thread(write_text_atomic, path, content)

    async def stat(self, path: str) -> FileInfo:
        """Return stat information for `path` (raises OSError if missing)."""

        stats = await asyncio.to_thread(os.stat, path)
        return FileInfo(
            path=path,
            size=stats.st_size,
            extension=os.path.splitext(path)[1],
            is_directory=os.path.isdir(path),
            modified_time=datetime.fromtimestamp(stats.st_mtime),
        )

    async def is_file(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.isfile, path)


def write_text_atomic(path: str, content: str) -> None:
    """
    Create parent directories, write a temp sibling and os.replace it over `path`.

    The replaced file keeps the mode of the file it overwrites; new files
    get the usual umask-derived mode instead of mkstemp's 0600.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    mode = _target_mode(path)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".autotestx-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def _target_mode(path: str) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return 0o666 & ~_PROCESS_UMASK


def resolve_in_project(project_dir: str, path: str) -> str:
    """
    Resolve an oracle-supplied path against the project directory.

    Absolute paths already inside the project are kept; other absolute
    paths are re-rooted under it. Raises PathOutsideProjectError when the
    result escapes the project (e.g. via '..') or is the project root.
    """
    root = os.path.abspath(project_dir)

    if os.path.isabs(path):
        candidate = os.path.normpath(path)
        if candidate == root:
            raise PathOutsideProjectError(path, project_dir)
        if _is_within(candidate, root):
            return candidate
        path = path.lstrip("/\\")

    candidate = os.path.normpath(os.path.join(root, path))
    if candidate == root or not _is_within(candidate, root):
        raise PathOutsideProjectError(path, project_dir)
    return candidate


def _is_within(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # Different drives on Windows
        return False
