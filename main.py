from __future__ import annotations

import argparse
import asyncio
import logging
from logging.handlers import RotatingFileHandler
from typing import Sequence

from dotenv import load_dotenv

from diagram_builder import __version__
from diagram_builder.config import Settings, load_settings
from diagram_builder.drivers import build_all
from diagram_builder.utils import OutputDirectoryError


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="diagram-builder",
        description="Render Mermaid, Graphviz and PlantUML sources under docs/ to PNG and SVG.",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Verbose output, including renderer commands.")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _configure_logging(settings: Settings) -> None:
    # Console always; optional rotating file
    log_format = "%(asctime)s %(levelname)s %(name)s %(message)s"
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=log_format)
    logging.getLogger().setLevel(level)
    if settings.log_file:
        try:
            settings.log_file.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                settings.log_file,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backups,
                encoding="utf-8",
            )
            fh.setLevel(level)
            fh.setFormatter(logging.Formatter(log_format))
            logging.getLogger().addHandler(fh)
        except OSError:
            logging.exception("Failed to set up file logging")


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    # Load .env if present
    load_dotenv()

    settings = load_settings(debug=args.debug)
    _configure_logging(settings)
    logging.debug("Settings: %s", settings)

    try:
        asyncio.run(build_all(settings))
    except OutputDirectoryError as e:
        logging.critical("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        raise SystemExit(130)
