"""Local development server with live reload.

`serve` builds the site once, then serves the output directory and rebuilds
on source changes. Tool failures never stop the session: the watch loop keeps
running across typo-level content errors.
"""

from __future__ import annotations

from ..orchestrator import series, task
from ..orchestrator.watch import DevServer
from .build import build
from .bundle import bundle
from .copy import copy_configs, copy_images
from .favicon import inject_favicon
from .hugo import site_build


site_rebuild = series("rebuild-site", site_build, inject_favicon)
asset_rebuild = series("rebuild-assets", bundle, copy_images, copy_configs)


@task(name="dev-server")
def dev_server(ctx):
    """Serve the output directory and rebuild on source changes."""
    session = ctx.derive(tool_errors="warn")
    server = DevServer(session)
    server.watch(session.config.server.site_globs, site_rebuild)
    server.watch(session.config.server.asset_globs, asset_rebuild)
    server.serve()


serve = series("serve", build, dev_server)
