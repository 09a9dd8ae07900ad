"""Prompt templates for the three oracle requests (critical files, tests, repair)."""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

CRITICAL_FILES = "critical-files-identification"
TEST_GENERATION = "test-generation"
REPAIR = "repair-troubleshooting"

PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


DEFAULT_TEMPLATES: dict[str, str] = {
    CRITICAL_FILES: """You are a code analysis assistant specialized in identifying critical files in a codebase.
Examine the directory structure below and pick the files that most deserve tests.

Consider:
1. Core functionality files
2. Files with complex logic
3. Files that define important types or interfaces
4. Files that handle critical business logic

Respond ONLY in this format (paths relative to the project root):
<CriticalFiles>
  <Path><![CDATA[path/to/file1.ts]]></Path>
  <Path><![CDATA[path/to/file2.py]]></Path>
</CriticalFiles>

Directory structure:
{directory_structure}
""",
    TEST_GENERATION: """You are a test generation assistant. Analyze the source files below and write tests
covering the main behaviors, edge cases and failure modes. Use the testing framework
that fits the project's language (e.g. jest for TypeScript/JavaScript, pytest for Python).

Respond in this format (paths relative to the project root):
<TestGenerationReport>
  <Create>
    <TestFile>
      <Path>path/to/test/file.test.ts</Path>
      <Content><![CDATA[
// test code here
      ]]></Content>
    </TestFile>
  </Create>
  <DependencyGraph>
    <Path>path/to/related/file.ts</Path>
    <Reason>Functionality called by the test</Reason>
  </DependencyGraph>
</TestGenerationReport>

Source files:
{source_code}
""",
    REPAIR: """You are fixing a project whose test suite fails.

1. Read the error output carefully, including line numbers
2. Examine the code context and determine the root cause
3. Propose COMPLETE replacement file contents (not diffs)
4. List any missing third-party dependencies
5. If the test command itself is missing, add it without modifying existing code

Respond in this format (paths relative to the project root):
<CodeUpdates>
  <Update>
    <FilePath>path/to/file.ts</FilePath>
    <Reason>Brief explanation of what was wrong</Reason>
    <Content><![CDATA[
// complete corrected file content
    ]]></Content>
    <MissingDependencies>
      <Dependency>package-name</Dependency>
    </MissingDependencies>
  </Update>
</CodeUpdates>

Terminal output:
{terminal_output}

Current code:
{code}
""",
}


class PromptBuilder:
    """Fill prompt templates; files in `prompt_dir` override defaults by name."""

    def __init__(self, prompt_dir: str | None = None):
        self.templates = dict(DEFAULT_TEMPLATES)
        if prompt_dir:
            self._load_overrides(Path(prompt_dir))

    def _load_overrides(self, prompt_dir: Path) -> None:
        if not prompt_dir.is_dir():
            logger.warning(f"Prompt directory not found: {prompt_dir}")
            return

        for path in sorted(prompt_dir.iterdir()):
            if path.suffix in (".txt", ".md"):
                self.templates[path.stem] = path.read_text(encoding="utf-8")
                logger.info(f"Loaded prompt template: {path.stem}")

    def format(self, name: str, **variables: str) -> str:
        """
        Replace {key} placeholders in one pass over the template.

        Unknown placeholders are left as-is, and placeholder-like text inside
        substituted values (test output, source code) is never expanded.
        """
        def substitute(match: re.Match) -> str:
            return variables.get(match.group(1), match.group(0))

        return PLACEHOLDER_RE.sub(substitute, self.templates[name])

    def critical_files(self, directory_structure: str) -> str:
        return self.format(CRITICAL_FILES, directory_structure=directory_structure)

    def test_generation(self, source_code: str) -> str:
        return self.format(TEST_GENERATION, source_code=source_code)

    def repair(self, terminal_output: str, code: str) -> str:
        return self.format(REPAIR, terminal_output=terminal_output, code=code)
