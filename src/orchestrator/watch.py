"""Development server with live reload and watch-triggered task runs.

Wraps `livereload.Server`: each watch group binds a set of glob patterns to a
task handle, and a change to any matching file runs that task as a fresh
invocation of the pipeline.
"""

from __future__ import annotations

from typing import Iterable, Optional

from livereload import Server
from livereload.handlers import LiveReloadHandler

from .core import RunContext, TaskSpec
from .logging import get_logger


logger = get_logger("orchestrator.watch")


class DevServer:
    def __init__(self, ctx: RunContext, server: Optional[Server] = None):
        self.ctx = ctx
        self.server = server if server is not None else Server()
        self.groups: list[tuple[tuple[str, ...], TaskSpec]] = []
        self._serving = False

    def watch(self, globs: Iterable[str], trigger: TaskSpec) -> None:
        """Run `trigger` whenever a file matching any of `globs` changes."""
        spec = self.ctx.pipeline.resolve(trigger)
        patterns = tuple(globs)
        callback = self._make_trigger(spec)
        for pattern in patterns:
            self.server.watch(pattern, callback, delay=self.ctx.config.server.delay)
        self.groups.append((patterns, spec))
        logger.info("Watching %s → %s", ", ".join(patterns), spec.name)

    def _make_trigger(self, spec: TaskSpec):
        def _trigger():
            try:
                result = self.ctx.pipeline.run(spec, self.ctx.config, reload=self.reload)
            except Exception:  # noqa: BLE001
                # Keep the watch loop alive; the next change retries.
                logger.exception("Watch-triggered task failed: %s", spec.name)
                return
            for warning in result.warnings:
                logger.warning("%s: %s", spec.name, warning)

        _trigger.__name__ = f"trigger_{spec.name.replace(':', '_').replace('-', '_')}"
        return _trigger

    def reload(self, path: Optional[str] = None) -> None:
        if not self._serving:
            return
        LiveReloadHandler.reload_waiters(path)

    def serve(self) -> None:
        """Serve the output directory until the process is stopped."""
        cfg = self.ctx.config
        self._serving = True
        logger.info(
            "Dev server at http://%s:%d (root=%s)",
            cfg.server.host,
            cfg.server.port,
            cfg.output_dir,
        )
        self.server.serve(
            root=str(cfg.output_dir),
            host=cfg.server.host,
            port=cfg.server.port,
            open_url_delay=1 if cfg.server.open_browser else None,
        )
