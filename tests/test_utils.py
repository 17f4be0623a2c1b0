import asyncio
import os
from pathlib import Path

import pytest

from diagram_builder.utils import (
    OutputDirectoryError,
    needs_regeneration,
    resolve_output_path,
    run_shell,
)


@pytest.mark.asyncio
async def test_run_shell_echo():
    res = await run_shell("echo hello")
    assert res.returncode == 0
    assert res.stdout.decode("utf-8").strip() == "hello"


@pytest.mark.asyncio
async def test_run_shell_nonzero_exit():
    res = await run_shell("echo oops >&2; exit 7")
    assert res.returncode == 7
    assert b"oops" in res.stderr


@pytest.mark.asyncio
async def test_run_shell_timeout():
    # sleep should exist on Linux/macOS
    res = await run_shell("sleep 2", timeout_sec=0.3)
    assert res.returncode == 124
    assert b"Timeout after" in res.stderr


@pytest.mark.asyncio
async def test_run_shell_timeout_after_child_exited(monkeypatch: pytest.MonkeyPatch):
    # Child finishes just as the deadline fires; kill() then finds no process
    async def late_wait_for(aw, timeout):
        await aw
        raise asyncio.TimeoutError

    def gone(self):
        raise ProcessLookupError

    monkeypatch.setattr("diagram_builder.utils.asyncio.wait_for", late_wait_for)
    monkeypatch.setattr(asyncio.subprocess.Process, "kill", gone)

    res = await run_shell("true", timeout_sec=1)
    assert res.returncode == 124
    assert b"Timeout after 1s" in res.stderr


def test_resolve_output_path_same_dir(tmp_path: Path):
    src = tmp_path / "diagram.mmd"
    assert resolve_output_path("mmd", "svg", src) == tmp_path / "diagram.svg"


def test_resolve_output_path_only_replaces_trailing_extension(tmp_path: Path):
    src = tmp_path / "mmd.flow.mmd"
    assert resolve_output_path("mmd", "png", src).name == "mmd.flow.png"


def test_resolve_output_path_creates_segments_idempotently(tmp_path: Path):
    src = tmp_path / "a" / "graph.dot"
    first = resolve_output_path("dot", "png", src, ["out", "img"])
    second = resolve_output_path("dot", "png", src, ["out", "img"])
    assert first == second == tmp_path / "a" / "out" / "img" / "graph.png"
    assert first.parent.is_dir()


def test_resolve_output_path_reports_unwritable_dir(tmp_path: Path):
    blocker = tmp_path / "out"
    blocker.write_text("not a directory")
    with pytest.raises(OutputDirectoryError):
        resolve_output_path("dot", "png", tmp_path / "graph.dot", ["out"])


def test_needs_regeneration_missing_target(tmp_path: Path):
    src = tmp_path / "x.dot"
    src.write_text("digraph {}")
    assert needs_regeneration(src, tmp_path / "x.png")


def test_needs_regeneration_compares_mtimes_strictly(tmp_path: Path):
    src = tmp_path / "x.dot"
    out = tmp_path / "x.png"
    src.write_text("digraph {}")
    out.write_text("png")

    os.utime(src, (1000, 1000))
    os.utime(out, (1000, 1000))
    assert not needs_regeneration(src, out)

    os.utime(out, (2000, 2000))
    assert not needs_regeneration(src, out)

    os.utime(src, (3000, 3000))
    assert needs_regeneration(src, out)


def test_needs_regeneration_missing_source(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        needs_regeneration(tmp_path / "gone.dot", tmp_path / "gone.png")
