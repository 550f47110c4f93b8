"""Copy static assets (images, JSON configs) into the output directory."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Iterable

from ..orchestrator import parallel, task
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import expand_globs, relative_target


logger = get_logger("tasks.copy")


def copy_tree(patterns: Iterable[str], base: Path, dest: Path) -> list[Path]:
    """Copy files matching `patterns`, keeping their path relative to `base`."""
    copied: list[Path] = []
    for src in expand_globs(patterns):
        target = relative_target(src, base, dest)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, target)
        copied.append(target)
    return copied


@task(name="copy-images")
def copy_images(ctx):
    """Copy image assets into the output directory."""
    cfg = ctx.config
    copied = copy_tree(cfg.image_globs, cfg.image_base, cfg.output_dir)
    logger.info("Copied %d image(s) to %s", len(copied), cfg.output_dir)


@task(name="copy-configs")
def copy_configs(ctx):
    """Copy JSON config files into the output directory."""
    cfg = ctx.config
    copied = copy_tree(cfg.config_globs, cfg.config_base, cfg.output_dir)
    logger.info("Copied %d config file(s) to %s", len(copied), cfg.output_dir)


copy_assets = parallel("copy", copy_images, copy_configs)
