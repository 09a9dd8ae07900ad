"""
Error Locator - decide which files a test failure implicates.

Primary strategy: scan the failure output for source-file-looking tokens
that contain a path separator. When that finds nothing, the caller asks for
fallback context instead: the most recently modified test files plus the
local modules they import.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re

from ...constants import (
    FALLBACK_TEST_FILE_LIMIT,
    JS_IMPORT_EXTENSIONS,
    SOURCE_EXTENSIONS,
    THIRD_PARTY_DIRS,
)
from ..workspace import ProjectWorkspace
from .models import SourceBundle, SourceFile, SourceLabel

logger = logging.getLogger(__name__)

# Longest extensions first so 'foo.tsx' is never cut to 'foo.ts'
_EXTENSIONS = sorted((ext.lstrip(".") for ext in SOURCE_EXTENSIONS), key=len, reverse=True)
SOURCE_FILE_RE = re.compile(r"[A-Za-z0-9_\-./\\]+\.(?:" + "|".join(_EXTENSIONS) + r")\b")

JS_IMPORT_RE = re.compile(
    r"""(?:\bimport\s+(?:[^'";]*?\s+from\s+)?|\brequire\s*\(\s*)['"]([^'"]+)['"]"""
)
PY_FROM_IMPORT_RE = re.compile(r"^\s*from\s+(\.*)([\w.]*)\s+import\s", re.MULTILINE)
PY_IMPORT_RE = re.compile(r"^\s*import\s+([\w.]+)", re.MULTILINE)


def is_test_file(path: str) -> bool:
    """Naming conventions for JS/TS and Python test files."""

    name = os.path.basename(path)
    parts = re.split(r"[/\\]", path)
    return (
        ".test." in name
        or ".spec." in name
        or "__tests__" in parts
        or (name.startswith("test_") and name.endswith(".py"))
        or name.endswith("_test.py")
    )


class ErrorLocator:
    """Heuristic fault localization over test output and project files."""

    def __init__(
        self,
        workspace: ProjectWorkspace | None = None,
        fallback_limit: int = FALLBACK_TEST_FILE_LIMIT
    ):
        self.workspace = workspace or ProjectWorkspace()
        self.fallback_limit = fallback_limit

    # =========================================================================
    # Primary: parse failure output
    # =========================================================================

    def locate_failing_files(self, test_output: str, project_dir: str) -> set[str]:
        """Return absolute paths of source files mentioned in `test_output`."""

        found: set[str] = set()

        for line in test_output.splitlines():
            for token in SOURCE_FILE_RE.findall(line):
                if "/" not in token and "\\" not in token:
                    continue
                if THIRD_PARTY_DIRS.intersection(re.split(r"[/\\]", token)):
                    continue

                if os.path.isabs(token):
                    found.add(os.path.normpath(token))
                else:
                    found.add(os.path.normpath(os.path.join(project_dir, token)))

        return found

    async def build_bundle(
        self,
        paths: list[str] | set[str],
        project_dir: str,
        label: SourceLabel | None = None
    ) -> SourceBundle:
        """Read `paths` concurrently into a bundle; unreadable files are skipped."""

        ordered = sorted(paths)
        contents = await asyncio.gather(
            *(self.workspace.read_text(path) for path in ordered),
            return_exceptions=True
        )

        bundle = SourceBundle(project_dir=project_dir)
        for path, content in zip(ordered, contents):
            if isinstance(content, Exception):
                logger.warning(f"Could not read file {path}: {content}")
                continue
            bundle.files.append(SourceFile(path=path, content=content, label=label))
        return bundle

    # =========================================================================
    # Fallback: recent tests + their local imports
    # =========================================================================

    async def collect_fallback_context(self, project_dir: str) -> SourceBundle:
        """Bundle the most recently modified test files (TEST) and the local modules they import (IMPL)."""

        all_files = await self.workspace.list_files(project_dir)
        test_paths = [
            path for path in all_files
            if is_test_file(os.path.relpath(path, project_dir))
        ]
        recent = await self.select_recent_test_files(test_paths)
        logger.info(f"Fallback context: {len(recent)} recent test file(s) of {len(test_paths)}")

        tests = await self.build_bundle(recent, project_dir, label="TEST")
        # Keep recency order, not path order, for the test section
        tests.files.sort(key=lambda source: recent.index(source.path))

        seen = set(recent)
        impl_paths: list[str] = []
        for test_file in tests.files:
            for path in await self.resolve_local_imports(test_file, project_dir):
                if path not in seen:
                    seen.add(path)
                    impl_paths.append(path)

        impls = await self.build_bundle(impl_paths, project_dir, label="IMPL")

        return SourceBundle(project_dir=project_dir, files=[*tests.files, *impls.files])

    async def select_recent_test_files(self, paths: list[str]) -> list[str]:
        """At most `fallback_limit` paths, most recently modified first."""

        infos = await asyncio.gather(
            *(self.workspace.stat(path) for path in paths),
            return_exceptions=True
        )
        dated = [
            (path, info.modified_time)
            for path, info in zip(paths, infos)
            if not isinstance(info, Exception)
        ]
        # sorted() is stable with reverse=True, so ties keep listing order
        dated = sorted(dated, key=lambda item: item[1], reverse=True)
        return [path for path, _ in dated[:self.fallback_limit]]

    async def resolve_local_imports(self, test_file: SourceFile, project_dir: str) -> list[str]:
        """Resolve same-project, non-parent-relative imports of a test file to files."""

        if test_file.path.endswith(".py"):
            candidate_sets = self._python_candidates(test_file, project_dir)
        else:
            candidate_sets = self._js_candidates(test_file)

        resolved = []
        for candidates in candidate_sets:
            path = await self._first_existing(candidates)
            if path and path not in resolved:
                resolved.append(path)
        return resolved

    def _js_candidates(self, test_file: SourceFile) -> list[list[str]]:
        test_dir = os.path.dirname(test_file.path)
        candidate_sets = []

        for specifier in JS_IMPORT_RE.findall(test_file.content):
            # Bare package names and parent-relative paths are not followed
            if not specifier.startswith("./"):
                continue
            base = os.path.normpath(os.path.join(test_dir, specifier))
            if os.path.splitext(base)[1]:
                candidate_sets.append([base])
            else:
                candidate_sets.append([f"{base}{ext}" for ext in JS_IMPORT_EXTENSIONS])

        return candidate_sets

    def _python_candidates(self, test_file: SourceFile, project_dir: str) -> list[list[str]]:
        test_dir = os.path.dirname(test_file.path)
        candidate_sets = []

        modules: list[tuple[str, str]] = [
            (dots, module) for dots, module in PY_FROM_IMPORT_RE.findall(test_file.content)
        ]
        modules.extend(("", module) for module in PY_IMPORT_RE.findall(test_file.content))

        for dots, module in modules:
            if len(dots) > 1 or not module:
                continue
            relative = module.replace(".", os.sep)
            bases = [test_dir] if dots else [project_dir, test_dir]

            candidates = []
            for base in bases:
                candidates.append(os.path.join(base, f"{relative}.py"))
                candidates.append(os.path.join(base, relative, "__init__.py"))
            candidate_sets.append(candidates)

        return candidate_sets

    async def _first_existing(self, candidates: list[str]) -> str | None:
        for candidate in candidates:
            if await self.workspace.is_file(candidate):
                return os.path.normpath(candidate)
        return None
