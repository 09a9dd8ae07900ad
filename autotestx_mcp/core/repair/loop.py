"""
Repair Loop - bounded convergence loop driving a project's tests to green.

Each iteration:
1. Determine and run the test command
2. Stop on success
3. Locate implicated files (or collect fallback context)
4. Ask the oracle for code updates and extract them
5. Install any missing packages
6. Stop if there is nothing to apply
7. Apply the updates and go again, up to max_iterations test runs
"""

from __future__ import annotations

import json
import logging
import os
import shlex

from ...constants import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TEST_COMMAND,
    DEFAULT_TEST_TIMEOUT_MS,
    PYTHON_PROJECT_FILES,
)
from ..errors import AutoTestXError, OracleError, PathOutsideProjectError
from ..extractor import CodeUpdate, NoUpdates, ResponseExtractor
from ..locator import ErrorLocator
from ..mutator import CodeMutator
from ..oracle import BaseOracle, PromptBuilder
from ..packages import PackageResolver, find_project_python, normalize_package_names
from ..runner import CommandRunner
from ..workspace import ProjectWorkspace, resolve_in_project
from .models import RepairResult

logger = logging.getLogger(__name__)


class RepairLoop:
    """Run tests, ask the oracle for fixes, apply them; repeat until green or out of budget."""

    def __init__(
        self,
        oracle: BaseOracle,
        runner: CommandRunner | None = None,
        workspace: ProjectWorkspace | None = None,
        extractor: ResponseExtractor | None = None,
        locator: ErrorLocator | None = None,
        resolver: PackageResolver | None = None,
        mutator: CodeMutator | None = None,
        prompts: PromptBuilder | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        test_command: str | None = None,
        test_timeout_ms: int = DEFAULT_TEST_TIMEOUT_MS
    ):
        self.oracle = oracle
        self.runner = runner or CommandRunner()
        self.workspace = workspace or ProjectWorkspace()
        self.extractor = extractor or ResponseExtractor()
        self.locator = locator or ErrorLocator(self.workspace)
        self.resolver = resolver or PackageResolver(self.runner)
        self.mutator = mutator or CodeMutator(self.workspace)
        self.prompts = prompts or PromptBuilder()
        self.max_iterations = max_iterations
        self.test_command = test_command
        self.test_timeout_ms = test_timeout_ms
        # Files the generated tests depend on; appended to every failure context
        self.context_files: list[str] = []

    async def run(self, project_dir: str, result: RepairResult | None = None) -> RepairResult:
        """
        Drive the project's tests to green; never raises for in-session failures.

        Pass `result` to accumulate into a caller-owned trail, which stays
        readable if the session is cancelled mid-iteration.
        """
        project_dir = os.path.abspath(project_dir)
        if result is None:
            result = RepairResult()

        for iteration in range(1, self.max_iterations + 1):
            result.iterations = iteration
            logger.info(f"Repair iteration {iteration}/{self.max_iterations}")
            result.actions.append(f"Starting repair iteration {iteration}/{self.max_iterations}")

            command = await self.determine_test_command(project_dir)
            test_result = await self.runner.execute(command, project_dir, self.test_timeout_ms)

            if test_result.success:
                result.success = True
                result.actions.append("All tests are passing")
                return result

            result.actions.append("Tests failed, analyzing issues from test output")

            try:
                updates = await self.analyze_failures(project_dir, test_result.output)
                result.actions.append(f"Identified {len(updates)} code updates")

                missing = [u.missing_package for u in updates if u.missing_package]
                if missing:
                    await self.resolver.install(project_dir, missing)
                    installed = ", ".join(normalize_package_names(missing))
                    result.actions.append(f"Installed missing packages: {installed}")

                if not updates:
                    result.errors.append("Failed to identify code fixes from test output")
                    break

                await self.mutator.apply(updates)
                result.actions.append(f"Applied {len(updates)} code updates")

            except (AutoTestXError, OSError) as e:
                logger.error(f"Repair iteration {iteration} aborted: {e}")
                result.errors.append(str(e))
                break

        result.errors.append(f"Failed to get tests passing after {self.max_iterations} iterations")
        return result

    # =========================================================================
    # Test command detection
    # =========================================================================

    async def determine_test_command(self, project_dir: str) -> str:
        """
        Pick the test command.

        Precedence: explicit override, package.json "test" script,
        jest config, mocha config, Python manifest (through the project
        virtualenv's interpreter when there is one), then 'npm test'.
        """
        if self.test_command:
            return self.test_command

        try:
            package_json = json.loads(
                await self.workspace.read_text(os.path.join(project_dir, "package.json"))
            )
            if isinstance(package_json, dict) and package_json.get("scripts", {}).get("test"):
                return "npm test"
        except (OSError, ValueError, AttributeError):
            pass

        try:
            names = [os.path.basename(f) for f in await self.workspace.list_files(project_dir)]
        except OSError as e:
            logger.warning(f"Error determining test command: {e}, defaulting to '{DEFAULT_TEST_COMMAND}'")
            return DEFAULT_TEST_COMMAND

        if any(name.startswith("jest.config") for name in names):
            return "npx jest"
        if any(name.startswith(".mocharc") for name in names):
            return "npx mocha"
        if any(name in PYTHON_PROJECT_FILES for name in names):
            python = find_project_python(project_dir)
            return f"{shlex.quote(python)} -m pytest" if python else "pytest"
        return DEFAULT_TEST_COMMAND

    # =========================================================================
    # Failure analysis
    # =========================================================================

    async def analyze_failures(self, project_dir: str, test_output: str) -> list[CodeUpdate]:
        """
        Ask the oracle for updates addressing `test_output`.

        Returns updates with paths resolved inside the project.

        Raises:
            OracleError: If the oracle reply is a failure
        """
        failing = self.locator.locate_failing_files(test_output, project_dir)
        bundle = await self.locator.build_bundle(failing, project_dir) if failing else None

        if bundle is None or bundle.is_empty:
            logger.info("No readable files implicated by test output, collecting fallback context")
            bundle = await self.locator.collect_fallback_context(project_dir)

        related = [path for path in self.context_files if path not in bundle.paths]
        if related:
            extra = await self.locator.build_bundle(related, project_dir, label="IMPL")
            bundle.files.extend(extra.files)

        if bundle.is_empty:
            logger.warning("No implicated files and no fallback context; sending test output only")

        prompt = self.prompts.repair(test_output, bundle.render())
        response = await self.oracle.generate(prompt)
        if not response.success:
            raise OracleError(f"Failed to analyze test failures: {response.error}")

        extraction = self.extractor.parse_code_updates(response.content)
        if isinstance(extraction, NoUpdates):
            logger.warning(f"Oracle reply carried no code updates: {extraction.reason}")

        return self._resolve_paths(extraction.updates, project_dir)

    def _resolve_paths(self, updates: list[CodeUpdate], project_dir: str) -> list[CodeUpdate]:
        resolved = []
        for update in updates:
            try:
                resolved.append(update.with_path(resolve_in_project(project_dir, update.file_path)))
            except PathOutsideProjectError as e:
                logger.warning(f"Skipping update: {e}")
        return resolved
