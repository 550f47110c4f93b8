"""Clean task: empty the output directory."""

from __future__ import annotations

import shutil

from ..orchestrator import task
from ..orchestrator.logging import get_logger


logger = get_logger("tasks.clean")


@task(name="clean")
def clean(ctx):
    """Delete all contents of the output directory (the directory itself stays)."""
    out = ctx.config.output_dir
    out.mkdir(parents=True, exist_ok=True)
    removed = 0
    for entry in out.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed += 1
    logger.info("Removed %d entries from %s", removed, out)
