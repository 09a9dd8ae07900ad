"""Data models for project files."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FileInfo:
    """Stat information for a path inside a project."""
    path: str
    size: int
    extension: str
    is_directory: bool
    modified_time: datetime
