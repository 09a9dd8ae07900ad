"""Workspace module - project file access and session locking."""

from .lock import ProjectLock
from .models import FileInfo
from .workspace import ProjectWorkspace, resolve_in_project, write_text_atomic

__all__ = [
    "FileInfo",
    "ProjectWorkspace",
    "ProjectLock",
    "resolve_in_project",
    "write_text_atomic",
]
