"""
Generation Loop - create initial tests for a project, then repair until green.

Pipeline:
1. Ask the oracle which files are critical (given the directory listing)
2. Ask the oracle for tests covering those files
3. Write the tests into the project
4. Hand over to RepairLoop
"""

from __future__ import annotations

import logging
import os

from ..errors import AutoTestXError, PathOutsideProjectError
from ..extractor import CodeUpdate, ResponseExtractor, TestFile
from ..locator import ErrorLocator
from ..mutator import CodeMutator
from ..oracle import BaseOracle, PromptBuilder
from ..workspace import ProjectWorkspace, resolve_in_project
from .loop import RepairLoop
from .models import RepairResult

logger = logging.getLogger(__name__)


class GenerationLoop:
    """Identify critical files, generate and write tests, then run RepairLoop."""

    def __init__(
        self,
        oracle: BaseOracle,
        repair_loop: RepairLoop,
        workspace: ProjectWorkspace | None = None,
        extractor: ResponseExtractor | None = None,
        prompts: PromptBuilder | None = None
    ):
        self.oracle = oracle
        self.repair_loop = repair_loop
        self.workspace = workspace or repair_loop.workspace
        self.extractor = extractor or repair_loop.extractor
        self.prompts = prompts or repair_loop.prompts
        self.locator = ErrorLocator(self.workspace)
        self.mutator = CodeMutator(self.workspace)

    async def run(self, project_dir: str, result: RepairResult | None = None) -> RepairResult:
        """Generate tests for `project_dir` and repair until they pass, appending to `result`."""

        project_dir = os.path.abspath(project_dir)
        logger.info(f"Starting test generation for project at: {project_dir}")
        if result is None:
            result = RepairResult()

        try:
            critical_files = await self.identify_critical_files(project_dir)
            result.actions.append(f"Identified {len(critical_files)} critical files")
            for path in critical_files:
                logger.info(f"Critical file: {path}")

            test_files = await self.generate_test_files(project_dir, critical_files)
            result.actions.append(f"Generated {len(test_files)} test files")

            await self.write_test_files(project_dir, test_files)
            result.actions.append("Wrote test files to disk")

        except (AutoTestXError, OSError) as e:
            logger.error(f"Test generation failed: {e}")
            result.errors.append(str(e))
            return result

        return await self.repair_loop.run(project_dir, result)

    async def identify_critical_files(self, project_dir: str) -> list[str]:
        """Absolute paths of the files the oracle judges most worth testing."""

        all_files = await self.workspace.list_files(project_dir)
        structure = "\n".join(os.path.relpath(path, project_dir) for path in all_files)

        response = await self.oracle.generate(self.prompts.critical_files(structure))
        if not response.success:
            raise AutoTestXError(f"Failed to identify critical files: {response.error}")

        paths = []
        for path in self.extractor.extract_critical_files(response.content):
            try:
                paths.append(resolve_in_project(project_dir, path))
            except PathOutsideProjectError as e:
                logger.warning(f"Skipping critical file: {e}")
        return paths

    async def generate_test_files(self, project_dir: str, critical_files: list[str]) -> list[TestFile]:
        """
        Read the critical files concurrently and ask the oracle for tests.

        The reply's <DependencyGraph> entries become the repair loop's
        context files, so later failure prompts carry the code under test.
        """
        bundle = await self.locator.build_bundle(critical_files, project_dir)
        if bundle.is_empty:
            raise AutoTestXError("None of the identified critical files could be read")

        response = await self.oracle.generate(self.prompts.test_generation(bundle.render()))
        if not response.success:
            raise AutoTestXError(f"Failed to generate test files: {response.error}")

        test_files = self.extractor.extract_test_files(response.content)
        self.repair_loop.context_files = self._dependency_paths(project_dir, response.content)
        return test_files

    def _dependency_paths(self, project_dir: str, content: str) -> list[str]:
        paths = []
        for node in self.extractor.extract_dependency_graph(content):
            if not node.path:
                continue
            try:
                path = resolve_in_project(project_dir, node.path)
            except PathOutsideProjectError as e:
                logger.warning(f"Skipping dependency graph entry: {e}")
                continue
            if path not in paths:
                logger.info(f"Dependency of generated tests: {node.path} ({node.reason or 'no reason given'})")
                paths.append(path)
        return paths

    async def write_test_files(self, project_dir: str, test_files: list[TestFile]) -> None:
        """Write generated tests concurrently, each confined to the project."""

        updates = [
            CodeUpdate(
                file_path=resolve_in_project(project_dir, test_file.path),
                content=test_file.content,
                reason="Generated test file"
            )
            for test_file in test_files
        ]
        await self.mutator.apply(updates)
