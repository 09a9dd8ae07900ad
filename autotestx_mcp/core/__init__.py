"""Core domain logic for the AutoTestX repair engine."""


from .errors import (
    AutoTestXError,
    InstallError,
    MutationError,
    NoValidContentError,
    OracleConfigurationError,
    OracleError,
    PathOutsideProjectError,
    ProjectLockedError,
)
from .extractor import CodeUpdate, ResponseExtractor, TestFile
from .locator import ErrorLocator, SourceBundle
from .mutator import CodeMutator
from .oracle import BaseOracle, OracleRegistry, PromptBuilder
from .packages import PackageResolver
from .repair import GenerationLoop, RepairLoop, RepairResult
from .runner import CommandResult, CommandRunner, run_command
from .workspace import ProjectLock, ProjectWorkspace

__all__ = [
    # Errors
    "AutoTestXError",
    "NoValidContentError",
    "OracleError",
    "OracleConfigurationError",
    "InstallError",
    "MutationError",
    "PathOutsideProjectError",
    "ProjectLockedError",
    # Runner
    "run_command",
    "CommandRunner",
    "CommandResult",
    # Extractor
    "ResponseExtractor",
    "CodeUpdate",
    "TestFile",
    # Locator
    "ErrorLocator",
    "SourceBundle",
    # Packages / mutation
    "PackageResolver",
    "CodeMutator",
    # Oracle
    "BaseOracle",
    "OracleRegistry",
    "PromptBuilder",
    # Loops
    "RepairLoop",
    "GenerationLoop",
    "RepairResult",
    # Workspace
    "ProjectWorkspace",
    "ProjectLock",
]
