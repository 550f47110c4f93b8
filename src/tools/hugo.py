from __future__ import annotations

import subprocess

from ..orchestrator.config import BuildConfig
from ..orchestrator.errors import ToolError
from ..orchestrator.logging import tool_logger


logger = tool_logger("hugo")


def hugo_args(config: BuildConfig) -> list[str]:
    args = [
        config.hugo_bin,
        "-d",
        str(config.output_dir),
        "--config",
        ",".join(config.hugo_configs),
    ]
    # Sitemaps need an absolute URL (with scheme) to be accepted by search
    # engines; only deploy builds override Hugo's baseURL.
    if config.is_production and config.base_url:
        args += ["-b", config.base_url]
    args += list(config.hugo_extra_args)
    return args


def run_hugo(config: BuildConfig) -> int:
    """Run Hugo with inherited stdio and return its exit code."""
    args = hugo_args(config)
    logger.info("Running: %s", " ".join(args))
    try:
        proc = subprocess.run(args, check=False)
    except FileNotFoundError:
        raise ToolError("hugo", f"executable not found: {config.hugo_bin}") from None
    return proc.returncode
