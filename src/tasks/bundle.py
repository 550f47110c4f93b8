"""Webpack bundle task."""

from __future__ import annotations

from ..orchestrator import task
from ..orchestrator.errors import ToolError
from ..orchestrator.logging import tool_logger
from ..tools.webpack import run_bundler


logger = tool_logger("webpack")


@task(name="bundle")
def bundle(ctx):
    """Bundle the front-end scripts with webpack."""
    report = run_bundler(ctx.config)
    if report.ok:
        logger.info("[Webpack] build report:\n%s", report.output or "(no output)")
    else:
        logger.error("[Webpack] build report:\n%s", report.output or "(no output)")
    # Reload on both outcomes so the browser shows the bundler's error overlay.
    ctx.reload(None)
    if not report.ok:
        raise ToolError("webpack", f"bundle failed with exit code {report.returncode}")
