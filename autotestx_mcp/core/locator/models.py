"""Data models for fault localization."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal

SourceLabel = Literal["TEST", "IMPL"]


@dataclass(frozen=True)
class SourceFile:
    """A project file included as context for the oracle."""
    path: str
    content: str
    label: SourceLabel | None = None


@dataclass
class SourceBundle:
    """Labeled source files rendered as one prompt section."""
    project_dir: str
    files: list[SourceFile] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.files

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def render(self) -> str:
        """Render as 'File (LABEL): rel\\n\\ncontent' entries joined by '---'."""

        entries = []
        for source in self.files:
            relative = os.path.relpath(source.path, self.project_dir)
            header = f"File ({source.label}): {relative}" if source.label else f"File: {relative}"
            entries.append(f"{header}\n\n{source.content}\n\n")
        return "---\n\n".join(entries)
