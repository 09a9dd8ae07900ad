"""
Response Extractor - turn raw oracle replies into typed actions.

This is the only module that interprets oracle response syntax. Replies use
a tagged-block protocol:

    <CriticalFiles><Path>src/a.ts, src/b.ts</Path></CriticalFiles>

    <TestGenerationReport>
      <Create><TestFile><Path/><Content/></TestFile></Create>
      <DependencyGraph><Path/><Reason/></DependencyGraph>
    </TestGenerationReport>

    <CodeUpdates>
      <Update>
        <FilePath/><Reason/><Content/>
        <MissingDependencies><Dependency/></MissingDependencies>
      </Update>
    </CodeUpdates>

For code updates only, a reply without <CodeUpdates> falls back to fenced
code blocks preceded (within 5 lines) by a "File path: <path>" marker.
"""

from __future__ import annotations

import logging
import re
import textwrap
import xml.etree.ElementTree as ET

from ..errors import NoValidContentError
from .models import (
    CodeUpdate,
    DependencyNode,
    FallbackUpdates,
    NoUpdates,
    StructuredUpdates,
    TestFile,
    UpdateExtraction,
)

logger = logging.getLogger(__name__)

# Wrapper element so sibling blocks in one span still form a document
SYNTHETIC_ROOT = "AutoTestXReply"

# Leaf elements whose text may be raw code and needs CDATA protection
LEAF_TAGS = ("Content", "Path", "FilePath", "Reason", "Dependency")

LEAF_ELEMENT_RE = re.compile(
    r"<(?P<tag>" + "|".join(LEAF_TAGS) + r")(?P<attrs>\s[^>]*)?>(?P<body>.*?)</(?P=tag)>",
    re.DOTALL,
)

CODE_BLOCK_RE = re.compile(
    r"```[\w+\-.]*[ \t]*\n?(?:[ \t]*//[ \t]*(?P<reason>[^\n]+)\n)?(?P<body>.*?)```",
    re.DOTALL,
)
FILE_PATH_MARKER_RE = re.compile(r"File\s*path[\s*_]*:\s*([^\n]+)", re.IGNORECASE)
MISSING_DEPS_MARKER = "Missing dependencies"
MISSING_DEPS_RE = re.compile(r"Missing dependencies[\s*_]*:\s*([^\n]*)", re.IGNORECASE)

FALLBACK_CONTEXT_LINES = 5


class ResponseExtractor:
    """Parse oracle replies into critical-file paths, test files or code updates."""

    # =========================================================================
    # Tag span + tree parsing
    # =========================================================================

    def extract_xml_content(self, text: str, tag_name: str) -> str:
        """
        Return the span from the first <tag> to the LAST </tag>.

        Using the last closing tag tolerates the oracle echoing example
        tags earlier in its reasoning.

        Raises:
            NoValidContentError: If either tag is missing or out of order
        """
        start_tag = f"<{tag_name}>"
        end_tag = f"</{tag_name}>"
        start = text.find(start_tag)
        end = text.rfind(end_tag)

        if start == -1 or end == -1 or end < start:
            raise NoValidContentError(tag_name)

        return text[start:end + len(end_tag)]

    def parse_xml(self, xml_text: str, tag_name: str) -> ET.Element:
        """
        Parse a tag span and return its last top-level <tag> element.

        The span may hold several sibling blocks when the oracle echoed an
        example before its real answer, so it is parsed under a synthetic
        root. Attempts, in order: the span as-is, the span with leaf text
        wrapped in CDATA, then only the last block with leaf text wrapped.

        Raises:
            NoValidContentError: If no attempt yields a <tag> element
        """
        last_start = xml_text.rfind(f"<{tag_name}>")
        last_block = xml_text[last_start:] if last_start != -1 else xml_text
        candidates = (xml_text, _protect_leaf_text(xml_text), _protect_leaf_text(last_block))

        error: ET.ParseError | None = None
        for candidate in candidates:
            try:
                wrapper = ET.fromstring(f"<{SYNTHETIC_ROOT}>{candidate}</{SYNTHETIC_ROOT}>")
            except ET.ParseError as e:
                error = error or e
                continue

            blocks = wrapper.findall(tag_name)
            if blocks:
                if len(blocks) > 1:
                    logger.debug(f"Found {len(blocks)} '{tag_name}' blocks, using the last one")
                return blocks[-1]

        reason = error or f"no <{tag_name}> element"
        logger.error(f"Error parsing XML for '{tag_name}': {reason}")
        raise NoValidContentError(tag_name, f"Failed to parse '{tag_name}' content: {reason}")

    def _load(self, text: str, tag_name: str) -> ET.Element:
        return self.parse_xml(self.extract_xml_content(text, tag_name), tag_name)

    # =========================================================================
    # Critical files
    # =========================================================================

    def extract_critical_files(self, text: str) -> list[str]:
        """Extract critical file paths; comma-joined <Path> entries are split."""

        try:
            root = self._load(text, "CriticalFiles")
        except NoValidContentError as e:
            logger.error(f"Error extracting critical files: {e}")
            raise

        paths = []
        for element in root.iter("Path"):
            for part in _element_text(element).split(","):
                part = part.strip()
                if part:
                    paths.append(part)
        return paths

    # =========================================================================
    # Generated tests
    # =========================================================================

    def extract_test_files(self, text: str) -> list[TestFile]:
        """Extract generated test files from a <TestGenerationReport>."""

        try:
            root = self._load(text, "TestGenerationReport")
        except NoValidContentError as e:
            logger.error(f"Error extracting test files: {e}")
            raise

        results = []
        for test_file in root.iter("TestFile"):
            path_element = test_file.find(".//Path")
            content_element = test_file.find(".//Content")
            if path_element is None or content_element is None:
                continue

            path = _element_text(path_element).strip()
            if not path:
                continue
            results.append(TestFile(
                path=path,
                content=_normalize_block(_element_text(content_element))
            ))
        return results

    def extract_dependency_graph(self, text: str) -> list[DependencyNode]:
        """Extract <DependencyGraph> entries from a <TestGenerationReport>."""

        root = self._load(text, "TestGenerationReport")
        nodes = []
        for node in root.iter("DependencyGraph"):
            path_element = node.find(".//Path")
            if path_element is None:
                continue
            reason_element = node.find(".//Reason")
            nodes.append(DependencyNode(
                path=_element_text(path_element).strip(),
                reason=_element_text(reason_element).strip() if reason_element is not None else ""
            ))
        return nodes

    # =========================================================================
    # Code updates
    # =========================================================================

    def parse_code_updates(self, text: str) -> UpdateExtraction:
        """Classify the reply as structured, fallback or empty."""

        if "<CodeUpdates>" in text:
            try:
                root = self._load(text, "CodeUpdates")
            except NoValidContentError as e:
                logger.error(f"Error extracting code updates: {e}")
                return NoUpdates(reason=str(e))

            updates = self._updates_from_tree(root)
            if not updates:
                return NoUpdates(reason="CodeUpdates block contained no complete <Update> entries")
            return StructuredUpdates(updates=updates)

        updates = self._updates_from_code_blocks(text)
        if not updates:
            return NoUpdates(reason="No <CodeUpdates> block and no fenced code block with a file path")
        return FallbackUpdates(updates=updates)

    def extract_code_updates(self, text: str) -> list[CodeUpdate]:
        """Extract code updates; returns [] when nothing is recoverable."""
        return list(self.parse_code_updates(text).updates)

    def _updates_from_tree(self, root: ET.Element) -> list[CodeUpdate]:
        updates = []

        for update in root.iter("Update"):
            path_element = update.find(".//FilePath")
            content_element = update.find(".//Content")
            if path_element is None or content_element is None:
                continue

            file_path = _element_text(path_element).strip()
            if not file_path:
                logger.warning("Skipping <Update> with an empty <FilePath>")
                continue

            reason_element = update.find(".//Reason")
            deps_element = update.find(".//MissingDependencies")
            missing = []
            if deps_element is not None:
                missing = [
                    _element_text(dep).strip()
                    for dep in deps_element.iter("Dependency")
                ]

            updates.append(CodeUpdate(
                file_path=file_path,
                content=_normalize_block(_element_text(content_element)),
                reason=_element_text(reason_element).strip() if reason_element is not None else "",
                missing_package=", ".join(name for name in missing if name)
            ))

        return updates

    def _updates_from_code_blocks(self, text: str) -> list[CodeUpdate]:
        updates = []

        for match in CODE_BLOCK_RE.finditer(text):
            context = _preceding_lines(text, match.start(), FALLBACK_CONTEXT_LINES)

            path_matches = FILE_PATH_MARKER_RE.findall(context)
            if not path_matches:
                continue
            file_path = path_matches[-1].strip(" \t`*\"'")
            if not file_path:
                continue

            missing_package = ""
            if MISSING_DEPS_MARKER.lower() in context.lower():
                missing_package = _parse_missing_marker(context)
                if not missing_package:
                    logger.warning(f"Missing dependencies flagged for {file_path} but no names were listed")

            updates.append(CodeUpdate(
                file_path=file_path,
                content=_normalize_block(match.group("body")),
                reason=(match.group("reason") or "Code update").strip(),
                missing_package=missing_package
            ))

        return updates


# =============================================================================
# Helpers
# =============================================================================

def _element_text(element: ET.Element) -> str:
    """Full text content of an element (like DOM textContent)."""
    return "".join(element.itertext())


def _normalize_block(text: str) -> str:
    """Strip CDATA padding: dedent, drop surrounding blank lines, end with one newline."""

    cleaned = textwrap.dedent(text).strip("\n").rstrip()
    return f"{cleaned}\n" if cleaned else ""


def _protect_leaf_text(xml_text: str) -> str:
    """Wrap raw leaf-element text in CDATA so code with '<' or '&' parses."""

    def wrap(match: re.Match) -> str:
        body = match.group("body")
        if body.strip().startswith("<![CDATA["):
            return match.group(0)
        safe = body.replace("]]>", "]]]]><![CDATA[>")
        attrs = match.group("attrs") or ""
        return f"<{match.group('tag')}{attrs}><![CDATA[{safe}]]></{match.group('tag')}>"

    return LEAF_ELEMENT_RE.sub(wrap, xml_text)


def _preceding_lines(text: str, position: int, count: int) -> str:
    lines = text[:position].split("\n")
    if lines and not lines[-1].strip():
        lines = lines[:-1]
    return "\n".join(lines[-count:])


def _parse_missing_marker(context: str) -> str:
    names = []
    for listed in MISSING_DEPS_RE.findall(context):
        for name in listed.split(","):
            name = name.strip(" \t`*\"'.")
            if name and name not in names:
                names.append(name)
    return ", ".join(names)
