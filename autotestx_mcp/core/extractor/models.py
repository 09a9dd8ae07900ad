"""Dataclasses for typed oracle actions."""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class TestFile:
    """A generated test file, written verbatim to disk."""
    __test__ = False  # not a pytest test class

    path: str
    content: str

    def to_dict(self) -> dict:
        return {"path": self.path, "content": self.content}


@dataclass(frozen=True)
class DependencyNode:
    """A source file the oracle says a generated test relies on."""
    path: str
    reason: str = ""


@dataclass(frozen=True)
class CodeUpdate:
    """
    A full-file replacement proposed by the oracle.

    Attributes:
        file_path: Target path (relative as extracted; absolute once resolved)
        content: Complete new file content
        reason: Oracle's explanation of the change
        missing_package: Comma-joined missing dependency names, or ""
    """
    file_path: str
    content: str
    reason: str = ""
    missing_package: str = ""

    def with_path(self, file_path: str) -> CodeUpdate:
        return replace(self, file_path=file_path)

    def to_dict(self) -> dict:
        result = {
            "file_path": self.file_path,
            "reason": self.reason,
            "content": self.content,
        }
        if self.missing_package:
            result["missing_package"] = self.missing_package
        return result


# =============================================================================
# Update extraction outcome (tagged union)
# =============================================================================

@dataclass(frozen=True)
class StructuredUpdates:
    """Updates parsed from a <CodeUpdates> block."""
    updates: list[CodeUpdate] = field(default_factory=list)


@dataclass(frozen=True)
class FallbackUpdates:
    """Updates recovered from fenced code blocks preceded by a file path marker."""
    updates: list[CodeUpdate] = field(default_factory=list)


@dataclass(frozen=True)
class NoUpdates:
    """Nothing recoverable in the reply."""
    reason: str
    updates: list[CodeUpdate] = field(default_factory=list)


UpdateExtraction = StructuredUpdates | FallbackUpdates | NoUpdates
