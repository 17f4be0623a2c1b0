from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

DIRECTIVE_MARKER = "%%"
DEFAULT_WIDTH = "1200"
DEFAULT_HEIGHT = "1200"
STYLE_ANCHOR = "</style><g>"


def default_options(css_file: Path) -> dict[str, str]:
    return {"width": DEFAULT_WIDTH, "height": DEFAULT_HEIGHT, "cssFile": str(css_file)}


def parse_directives(text: str, defaults: Mapping[str, str]) -> dict[str, str]:
    """Return ``defaults`` overridden by ``%% key : value`` lines in ``text``.

    Lines that do not split into exactly one key and one value on ``:`` are
    ignored, which also skips Mermaid's own ``%%{init: ...}%%`` blocks.
    """
    options = dict(defaults)
    for raw in text.splitlines():
        line = raw.strip()
        if not line.startswith(DIRECTIVE_MARKER):
            continue
        parts = line[len(DIRECTIVE_MARKER):].split(":")
        if len(parts) != 2:
            continue
        key, value = parts[0].strip(), parts[1].strip()
        if not key:
            continue
        options[key] = value
    return options


def style_block(css: str) -> str:
    return f"<style>{css}</style>"


def inject_css(svg: str, css: str) -> str:
    """Splice a style block between the renderer's ``</style>`` and first ``<g>``.

    SVGs without the literal ``</style><g>`` sequence are returned unchanged.
    """
    if STYLE_ANCHOR not in svg:
        return svg
    return svg.replace(STYLE_ANCHOR, f"</style>{style_block(css)}<g>", 1)


def load_css(css_file: Path) -> str:
    try:
        return css_file.read_text(encoding="utf-8")
    except OSError as e:
        logging.error("Failed to read style-sheet %s: %s", css_file, e)
        return ""


def postprocess_svg(svg_path: Path, css: str) -> None:
    try:
        svg = svg_path.read_text(encoding="utf-8")
        svg_path.write_text(inject_css(svg, css), encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logging.error("Failed to inject styles into %s: %s", svg_path, e)
        return
    logging.debug("Injected styles into %s", svg_path)
