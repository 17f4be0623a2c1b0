from __future__ import annotations

import asyncio
import logging
import shlex
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path

from .config import Settings
from .mermaid import default_options, load_css, parse_directives, postprocess_svg
from .renderer import render_if_stale
from .utils import OutputDirectoryError, resolve_output_path

FORMATS = ("png", "svg")

MERMAID_EXT = "mmd"
GRAPHVIZ_EXT = "dot"
PLANTUML_EXT = "puml"


def _which(binary: str, dialect: str) -> str | None:
    path = shutil.which(binary)
    if path is None:
        logging.warning("Skipping %s diagrams: %s not installed", dialect, binary)
    return path


def _discover(docs_dir: Path, ext: str) -> list[Path]:
    return sorted(p for p in docs_dir.rglob(f"*.{ext}") if p.is_file())


def _outputs(ext: str, source: Path, settings: Settings) -> dict[str, Path]:
    return {
        fmt: resolve_output_path(ext, fmt, source, settings.output_segments) for fmt in FORMATS
    }


async def _guarded(source: Path, work: Awaitable[object]) -> None:
    try:
        await work
    except OutputDirectoryError:
        raise
    except Exception as e:
        logging.error("Failed to process %s: %r", source, e)


def _q(value: object) -> str:
    return shlex.quote(str(value))


async def _render_mermaid_file(
    mmdc: str, source: Path, outputs: dict[str, Path], css: str, settings: Settings
) -> None:
    text = source.read_text(encoding="utf-8", errors="replace")
    options = parse_directives(text, default_options(settings.css_file))

    extra = ""
    if options.get("theme"):
        extra += f" -t {_q(options['theme'])}"
    if options.get("backgroundColor"):
        extra += f" -b {_q(options['backgroundColor'])}"

    async def one(fmt: str) -> None:
        target = outputs[fmt]
        cmd = (
            f"{_q(mmdc)} -i {_q(source)} -o {_q(target)}"
            f" -w {_q(options['width'])} -H {_q(options['height'])}{extra}"
        )
        generated = await render_if_stale(
            cmd, source, target, settings.render_timeout_sec, settings.debug
        )
        # Only fresh output is styled; an up-to-date SVG already carries the block
        if generated and fmt == "svg":
            postprocess_svg(target, css)

    await asyncio.gather(*(_guarded(source, one(fmt)) for fmt in outputs))


async def render_mermaid(settings: Settings) -> None:
    """Render ``*.mmd`` files with mermaid-cli, then style the SVG output."""
    mmdc = _which("mmdc", "Mermaid")
    if mmdc is None:
        return
    sources = _discover(settings.docs_dir, MERMAID_EXT)
    if not sources:
        logging.debug("No .%s files under %s", MERMAID_EXT, settings.docs_dir)
        return
    jobs = [(src, _outputs(MERMAID_EXT, src, settings)) for src in sources]
    css = load_css(settings.css_file)
    await asyncio.gather(
        *(_guarded(src, _render_mermaid_file(mmdc, src, outs, css, settings)) for src, outs in jobs)
    )


async def _render_each_format(
    ext: str,
    binary: str,
    dialect: str,
    settings: Settings,
    build_cmd: Callable[[str, str, Path, Path], str],
) -> None:
    exe = _which(binary, dialect)
    if exe is None:
        return
    sources = _discover(settings.docs_dir, ext)
    if not sources:
        logging.debug("No .%s files under %s", ext, settings.docs_dir)
        return
    jobs = [(src, _outputs(ext, src, settings)) for src in sources]
    await asyncio.gather(
        *(
            _guarded(
                src,
                render_if_stale(
                    build_cmd(exe, fmt, src, target),
                    src,
                    target,
                    settings.render_timeout_sec,
                    settings.debug,
                ),
            )
            for src, outs in jobs
            for fmt, target in outs.items()
        )
    )


def graphviz_command(exe: str, fmt: str, source: Path, target: Path) -> str:
    return f"{_q(exe)} -T{fmt} {_q(source)} -o {_q(target)}"


def plantuml_command(exe: str, fmt: str, source: Path, target: Path) -> str:
    # PlantUML writes <stem>.<fmt> into the -o directory
    return f"{_q(exe)} -t{fmt} -o {_q(target.parent)} {_q(source)}"


async def render_graphviz(settings: Settings) -> None:
    await _render_each_format(GRAPHVIZ_EXT, "dot", "Graphviz", settings, graphviz_command)


async def render_plantuml(settings: Settings) -> None:
    await _render_each_format(PLANTUML_EXT, "plantuml", "PlantUML", settings, plantuml_command)


async def build_all(settings: Settings) -> None:
    """Run all three drivers concurrently and wait for every render to settle."""
    logging.info("Building diagrams under %s", settings.docs_dir)
    await asyncio.gather(
        render_mermaid(settings),
        render_graphviz(settings),
        render_plantuml(settings),
    )
