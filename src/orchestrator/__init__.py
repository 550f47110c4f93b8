"""Lightweight in-repo orchestrator for the site build.

Provides task handles, series/parallel composition, a runner with a uniform
future-based completion contract, a live-reload dev server and a Typer CLI.
"""

from .core import Pipeline, RunContext, TaskResult, TaskSpec, parallel, series, task  # re-export for convenience

__all__ = [
    "Pipeline",
    "RunContext",
    "TaskResult",
    "TaskSpec",
    "parallel",
    "series",
    "task",
]
