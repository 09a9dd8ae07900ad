"""Exception types raised by the repair engine.

Execution failures (non-zero exits, timeouts) are not exceptions: they are
captured in CommandResult. Running out of iterations is a normal RepairResult.
"""

from __future__ import annotations


class AutoTestXError(Exception):
    """Base class for all repair engine errors."""


class NoValidContentError(AutoTestXError):
    """The oracle reply carries none of the expected tagged structure."""

    def __init__(self, tag_name: str, message: str | None = None):
        self.tag_name = tag_name
        super().__init__(message or f"No valid XML content found with tag '{tag_name}'")


class OracleError(AutoTestXError):
    """The oracle could not produce a reply."""


class OracleConfigurationError(OracleError):
    """The oracle cannot be set up (missing key, SDK or unknown provider)."""


class InstallError(AutoTestXError):
    """A dependency install command failed."""

    def __init__(self, output: str):
        self.output = output
        super().__init__(f"Failed to install missing packages: {output}")


class MutationError(AutoTestXError):
    """One or more writes in an update batch failed (no rollback)."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        paths = ", ".join(sorted(failures))
        super().__init__(f"Failed to apply code updates to: {paths}")


class PathOutsideProjectError(AutoTestXError):
    """A proposed path resolves outside the project directory."""

    def __init__(self, path: str, project_dir: str):
        self.path = path
        self.project_dir = project_dir
        super().__init__(f"Path '{path}' escapes project directory '{project_dir}'")


class ProjectLockedError(AutoTestXError):
    """Another live session holds the project directory."""

    def __init__(self, project_dir: str, holder_pid: int | None = None):
        self.project_dir = project_dir
        self.holder_pid = holder_pid
        holder = f" (pid {holder_pid})" if holder_pid else ""
        super().__init__(f"Project directory is locked by another session{holder}: {project_dir}")
