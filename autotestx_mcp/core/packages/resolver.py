"""
Package Resolver - install dependencies the oracle reports as missing.

The package manager is picked from a decision table over files in the
project root. Rows are checked in order; the first match wins, and every
row is reachable. With no signal at all the configured default is used
(fail-open).
"""

from __future__ import annotations

import json
import logging
import os
import shlex
import sys

from ...constants import DEFAULT_INSTALL_TIMEOUT_MS, DEFAULT_PACKAGE_MANAGER
from ..errors import InstallError
from ..runner import CommandRunner

logger = logging.getLogger(__name__)

PYTHON_MANIFESTS = ("pyproject.toml", "requirements.txt", "setup.py", "setup.cfg")

# Project-local virtualenvs, checked in order
VENV_DIRS = (".venv", "venv", "env")


def find_project_python(project_dir: str) -> str | None:
    """Interpreter of the project's own virtualenv, if it has one."""

    for venv in VENV_DIRS:
        for relative in (("bin", "python"), ("Scripts", "python.exe")):
            candidate = os.path.join(project_dir, venv, *relative)
            if os.path.isfile(candidate):
                return candidate
    return None


def _pip_install(project_dir: str) -> str:
    # Without a project venv, install next to the interpreter running us
    python = find_project_python(project_dir) or sys.executable
    return f"{shlex.quote(python)} -m pip install"


class PackageResolver:
    """Choose a package manager and install missing packages with one command."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        timeout_ms: int = DEFAULT_INSTALL_TIMEOUT_MS,
        default_manager: str = DEFAULT_PACKAGE_MANAGER
    ):
        self.runner = runner or CommandRunner()
        self.timeout_ms = timeout_ms
        self.default_manager = default_manager

    def determine_package_manager(self, project_dir: str) -> str:
        """Return the install command prefix for `project_dir`."""

        def exists(name: str) -> bool:
            return os.path.isfile(os.path.join(project_dir, name))

        if exists("package.json"):
            if not self._package_json_readable(project_dir):
                logger.warning("package.json could not be parsed, checking Python manifests")
            elif exists("pnpm-lock.yaml"):
                return "pnpm add"
            elif exists("yarn.lock"):
                return "yarn add"
            else:
                return "npm install"

        if exists("Pipfile"):
            return "pipenv install"
        if exists("poetry.lock"):
            return "poetry add"
        if exists("uv.lock"):
            return "uv add"
        if any(exists(name) for name in PYTHON_MANIFESTS):
            return _pip_install(project_dir)

        logger.warning(f"No package manager signal found, defaulting to '{self.default_manager}'")
        return self.default_manager

    def _package_json_readable(self, project_dir: str) -> bool:
        try:
            with open(os.path.join(project_dir, "package.json"), encoding="utf-8") as handle:
                json.load(handle)
            return True
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Error reading package.json: {e}")
            return False

    async def install(self, project_dir: str, package_names: list[str]) -> None:
        """
        Install all `package_names` in one command.

        Entries may be comma-joined lists; they are split and deduplicated.

        Raises:
            InstallError: If the install command does not succeed
        """
        names = normalize_package_names(package_names)
        if not names:
            logger.info("No missing packages to install")
            return

        manager = self.determine_package_manager(project_dir)
        command = f"{manager} {' '.join(shlex.quote(name) for name in names)}"
        logger.info(f"Installing missing packages: {', '.join(names)}")

        result = await self.runner.execute(command, project_dir, self.timeout_ms)
        if not result.success:
            logger.error(f"Error installing missing packages: {result.output}")
            raise InstallError(result.output)


def normalize_package_names(package_names: list[str]) -> list[str]:
    """Split comma-joined entries, strip, drop blanks and duplicates (order kept)."""

    names: list[str] = []
    for entry in package_names:
        for name in entry.split(","):
            name = name.strip()
            if name and name not in names:
                names.append(name)
    return names
