"""Hugo site build task."""

from __future__ import annotations

from ..orchestrator import task
from ..orchestrator.errors import ToolError
from ..tools.hugo import run_hugo


@task(name="site-build")
def site_build(ctx):
    """Build the Hugo site into the output directory."""
    code = run_hugo(ctx.config)
    if code == 0 or not ctx.config.fatal_tool_errors:
        ctx.reload(None)
    if code != 0:
        raise ToolError("hugo", f"Hugo build failed with exit code {code}")
