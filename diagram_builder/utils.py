from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence


class OutputDirectoryError(RuntimeError):
    """Raised when an output directory cannot be created."""


@dataclass
class CmdResult:
    returncode: int
    stdout: bytes
    stderr: bytes


async def run_shell(cmd: str, timeout_sec: float | None = None) -> CmdResult:
    """Run a shell command, returning stdout/stderr as bytes.

    Uses bash if available for better compatibility. Falls back to /bin/sh.
    A ``timeout_sec`` of None waits for the command indefinitely.
    """
    shell = "/bin/bash" if Path("/bin/bash").exists() else "/bin/sh"
    try:
        proc = await asyncio.create_subprocess_exec(
            shell,
            "-c",
            cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        # Commands are assembled from quoted paths and renderer flags only.
        proc = await asyncio.create_subprocess_shell(  # nosec B602
            cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_sec)
    except asyncio.TimeoutError:
        try:
            proc.kill()
            await proc.wait()
        except ProcessLookupError:
            # Already exited and reaped
            pass
        return CmdResult(
            returncode=124, stdout=b"", stderr=f"Timeout after {timeout_sec}s".encode()
        )

    return CmdResult(returncode=proc.returncode or 0, stdout=stdout or b"", stderr=stderr or b"")


def resolve_output_path(ext: str, fmt: str, source: Path, segments: Sequence[str] = ()) -> Path:
    """Return where ``source`` rendered as ``fmt`` goes, creating the directory.

    The trailing ``.ext`` of the file name is replaced by ``.fmt``; the directory is
    the source's own directory joined with ``segments``.
    """
    suffix = f".{ext.lstrip('.')}"
    name = source.name
    stem = name[: -len(suffix)] if name.endswith(suffix) else source.stem
    out_dir = source.parent.joinpath(*segments)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputDirectoryError(f"Cannot create output directory {out_dir}: {e}") from e
    return out_dir / f"{stem}.{fmt.lstrip('.')}"


def needs_regeneration(source: Path, target: Path) -> bool:
    # A missing source propagates FileNotFoundError
    source_mtime = source.stat().st_mtime
    try:
        target_mtime = target.stat().st_mtime
    except FileNotFoundError:
        return True
    return source_mtime > target_mtime


def decode_output(data: bytes) -> str:
    return data.decode("utf-8", errors="replace").strip()
