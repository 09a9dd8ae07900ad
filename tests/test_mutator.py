"""Tests for the code mutator module."""

import asyncio
import os

import pytest

from autotestx_mcp.core.errors import MutationError
from autotestx_mcp.core.extractor import CodeUpdate
from autotestx_mcp.core.mutator import CodeMutator


@pytest.fixture
def mutator():
    return CodeMutator()


class TestApply:
    """Concurrent full-file writes."""

    @pytest.mark.asyncio
    async def test_distinct_paths_both_written(self, mutator, tmp_path):
        """Two updates to two paths leave exactly their contents."""
        a = str(tmp_path / "src" / "a.ts")
        b = str(tmp_path / "src" / "b.ts")

        await mutator.apply([
            CodeUpdate(file_path=a, content="export const a = 1;\n"),
            CodeUpdate(file_path=b, content="export const b = 2;\n"),
        ])

        with open(a) as handle:
            assert handle.read() == "export const a = 1;\n"
        with open(b) as handle:
            assert handle.read() == "export const b = 2;\n"

    @pytest.mark.asyncio
    async def test_same_path_exactly_one_wins(self, mutator, tmp_path):
        """Two updates to one path leave one of the two contents, never a mix."""
        target = str(tmp_path / "same.ts")
        contents = {"first version\n" * 200, "second version\n" * 200}

        await mutator.apply([CodeUpdate(file_path=target, content=c) for c in contents])

        with open(target) as handle:
            assert handle.read() in contents

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, mutator, tmp_path):
        target = str(tmp_path / "a.ts")

        await mutator.apply([
            CodeUpdate(file_path=target, content="1"),
            CodeUpdate(file_path=target, content="2"),
        ])

        assert os.listdir(tmp_path) == ["a.ts"]

    @pytest.mark.asyncio
    async def test_creates_parent_directories(self, mutator, tmp_path):
        target = tmp_path / "deep" / "er" / "x.py"

        await mutator.apply([CodeUpdate(file_path=str(target), content="x = 1\n")])

        assert target.read_text() == "x = 1\n"

    @pytest.mark.asyncio
    async def test_failure_reports_path_and_keeps_other_writes(self, mutator, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        bad = str(blocker / "x.ts")
        good = str(tmp_path / "good.ts")

        with pytest.raises(MutationError) as exc_info:
            await mutator.apply([
                CodeUpdate(file_path=bad, content="x"),
                CodeUpdate(file_path=good, content="ok"),
            ])

        assert list(exc_info.value.failures) == [bad]
        with open(good) as handle:
            assert handle.read() == "ok"

    @pytest.mark.asyncio
    async def test_empty_batch(self, mutator):
        await mutator.apply([])

    @pytest.mark.asyncio
    async def test_concurrent_batches(self, mutator, tmp_path):
        updates = [
            CodeUpdate(file_path=str(tmp_path / f"f{i}.ts"), content=str(i))
            for i in range(20)
        ]

        await asyncio.gather(mutator.apply(updates[:10]), mutator.apply(updates[10:]))

        assert sorted(os.listdir(tmp_path)) == sorted(f"f{i}.ts" for i in range(20))
