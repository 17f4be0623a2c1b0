from __future__ import annotations

import logging
from pathlib import Path

from .utils import decode_output, needs_regeneration, run_shell


async def render_if_stale(
    cmd: str,
    source: Path,
    target: Path,
    timeout_sec: float | None = None,
    debug: bool = False,
) -> bool:
    """Run a renderer command when ``target`` is older than ``source``.

    Returns True only when the command ran and exited with status 0. Renderer
    failures are logged and never raised; a missing ``source`` propagates
    FileNotFoundError from the staleness check. With ``debug`` the command line
    and the renderer's own output are logged.
    """
    if not needs_regeneration(source, target):
        logging.info("%s already exists, skipping", target)
        return False

    if debug:
        logging.debug("Running: %s", cmd)
    try:
        res = await run_shell(cmd, timeout_sec=timeout_sec)
    except OSError as e:
        logging.error("Failed to generate %s: %s", target, e)
        return False

    if res.returncode != 0:
        logging.error(
            "Failed to generate %s [exit %s]: %s",
            target,
            res.returncode,
            decode_output(res.stderr) or decode_output(res.stdout),
        )
        return False

    for stream in (res.stdout, res.stderr):
        if debug and stream:
            logging.debug("%s: %s", source.name, decode_output(stream))
    logging.info("Generated %s", target)
    return True
