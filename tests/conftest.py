import os
import stat
from pathlib import Path

import pytest

from diagram_builder.config import Settings

FAKE_SVG = '<svg xmlns="http://www.w3.org/2000/svg"><style>#a{fill:red}</style><g></g></svg>'

FAKE_MMDC = f"""#!/bin/sh
out=""
while [ "$#" -gt 0 ]; do
  if [ "$1" = "-o" ]; then out="$2"; fi
  shift
done
printf '%s' '{FAKE_SVG}' > "$out"
"""

FAKE_DOT = """#!/bin/sh
out=""
while [ "$#" -gt 0 ]; do
  if [ "$1" = "-o" ]; then out="$2"; fi
  shift
done
printf 'graph' > "$out"
"""

FAKE_PLANTUML = """#!/bin/sh
fmt=""
dir=""
src=""
while [ "$#" -gt 0 ]; do
  case "$1" in
    -t*) fmt="${1#-t}" ;;
    -o) dir="$2"; shift ;;
    *) src="$1" ;;
  esac
  shift
done
name="${src##*/}"
printf 'uml' > "$dir/${name%.*}.$fmt"
"""

FAILING = """#!/bin/sh
echo "syntax error in line 1" >&2
exit 3
"""


def write_script(directory: Path, name: str, body: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_bin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An empty directory that is the only entry on PATH."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))
    return bin_dir


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    d = tmp_path / "docs"
    d.mkdir()
    return d


def mk_settings(
    docs_dir: Path,
    segments: tuple[str, ...] = (),
    css: Path | None = None,
    debug: bool = False,
    timeout: float | None = None,
) -> Settings:
    return Settings(
        docs_dir=docs_dir,
        output_segments=segments,
        css_file=css or docs_dir / "styles" / "diagrams.css",
        debug=debug,
        render_timeout_sec=timeout,
    )


def age(path: Path, seconds: int = 100) -> None:
    st = path.stat()
    os.utime(path, (st.st_atime - seconds, st.st_mtime - seconds))
