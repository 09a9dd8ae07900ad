"""Tests for the package resolver module."""

import shlex
import sys

import pytest

from autotestx_mcp.core.errors import InstallError
from autotestx_mcp.core.packages import PackageResolver, normalize_package_names
from autotestx_mcp.core.runner import CommandResult


def touch(directory, *names, content="{}"):
    for name in names:
        (directory / name).write_text(content)


# =============================================================================
# Decision table
# =============================================================================

class TestDeterminePackageManager:
    """Every row of the decision table is reachable."""

    def test_pnpm(self, tmp_path):
        touch(tmp_path, "package.json", "pnpm-lock.yaml", "yarn.lock")

        assert PackageResolver().determine_package_manager(str(tmp_path)) == "pnpm add"

    def test_yarn(self, tmp_path):
        touch(tmp_path, "package.json", "yarn.lock")

        assert PackageResolver().determine_package_manager(str(tmp_path)) == "yarn add"

    def test_npm(self, tmp_path):
        touch(tmp_path, "package.json")

        assert PackageResolver().determine_package_manager(str(tmp_path)) == "npm install"

    def test_pipenv(self, tmp_path):
        touch(tmp_path, "Pipfile", "requirements.txt")

        assert PackageResolver().determine_package_manager(str(tmp_path)) == "pipenv install"

    def test_poetry(self, tmp_path):
        touch(tmp_path, "poetry.lock", "pyproject.toml")

        assert PackageResolver().determine_package_manager(str(tmp_path)) == "poetry add"

    def test_uv(self, tmp_path):
        touch(tmp_path, "uv.lock", "pyproject.toml")

        assert PackageResolver().determine_package_manager(str(tmp_path)) == "uv add"

    def test_pip(self, tmp_path):
        touch(tmp_path, "requirements.txt")

        expected = f"{shlex.quote(sys.executable)} -m pip install"
        assert PackageResolver().determine_package_manager(str(tmp_path)) == expected

    def test_pip_uses_project_virtualenv(self, tmp_path):
        touch(tmp_path, "requirements.txt")
        (tmp_path / ".venv" / "bin").mkdir(parents=True)
        touch(tmp_path / ".venv" / "bin", "python", content="")

        expected = f"{tmp_path / '.venv' / 'bin' / 'python'} -m pip install"
        assert PackageResolver().determine_package_manager(str(tmp_path)) == expected

    def test_default_when_no_signal(self, tmp_path):
        resolver = PackageResolver(default_manager="yarn add")

        assert resolver.determine_package_manager(str(tmp_path)) == "yarn add"

    def test_broken_package_json_falls_through(self, tmp_path):
        touch(tmp_path, "package.json", content="{not json")
        touch(tmp_path, "poetry.lock")

        assert PackageResolver().determine_package_manager(str(tmp_path)) == "poetry add"


# =============================================================================
# Install
# =============================================================================

class TestInstall:
    """One install command for all names."""

    @pytest.mark.asyncio
    async def test_single_command_with_all_names(self, tmp_path, make_runner):
        touch(tmp_path, "package.json")
        runner = make_runner([CommandResult(success=True, output="added 2 packages")])
        resolver = PackageResolver(runner, timeout_ms=1234)

        await resolver.install(str(tmp_path), ["lodash, axios", "lodash"])

        assert runner.calls == [("npm install lodash axios", str(tmp_path), 1234)]

    @pytest.mark.asyncio
    async def test_names_are_shell_quoted(self, tmp_path, make_runner):
        touch(tmp_path, "package.json")
        runner = make_runner([CommandResult(success=True, output="")])

        await PackageResolver(runner).install(str(tmp_path), ["evil; rm -rf /"])

        assert runner.commands == ["npm install 'evil; rm -rf /'"]

    @pytest.mark.asyncio
    async def test_failure_raises(self, tmp_path, make_runner):
        runner = make_runner([CommandResult(success=False, output="E404 not found")])

        with pytest.raises(InstallError) as exc_info:
            await PackageResolver(runner).install(str(tmp_path), ["nope"])

        assert exc_info.value.output == "E404 not found"

    @pytest.mark.asyncio
    async def test_nothing_to_install(self, tmp_path, make_runner):
        runner = make_runner()

        await PackageResolver(runner).install(str(tmp_path), ["", " , "])

        assert runner.calls == []


class TestNormalizePackageNames:
    def test_split_strip_dedupe(self):
        assert normalize_package_names(["a, b", " c ", "a", ""]) == ["a", "b", "c"]
