from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import Dict

import typer

from .config import load_config
from .core import Pipeline, TaskSpec
from .errors import ConfigurationError, OrchestratorError
from .logging import attach_file_handler, get_logger


app = typer.Typer(add_completion=False, help="Static site build orchestrator CLI")
log = get_logger("orchestrator.cli")

EXIT_FAILED = 1
EXIT_CONFIG = 2


def discover_tasks(tasks_pkg: str = "src.tasks") -> Dict[str, TaskSpec]:
    """Import all modules in the `tasks` package and collect task handles."""
    specs: Dict[str, TaskSpec] = {}
    try:
        pkg = importlib.import_module(tasks_pkg)
    except ModuleNotFoundError as e:
        raise ConfigurationError(f"No tasks package found: {tasks_pkg}") from e
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{tasks_pkg}."):
        try:
            mod = importlib.import_module(m.name)
        except ImportError as e:
            raise ConfigurationError(f"Failed to import {m.name}: {e}") from e
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            if not isinstance(obj, TaskSpec):
                continue
            existing = specs.get(obj.name)
            if existing is not None and existing is not obj:
                raise ConfigurationError(
                    f"Duplicate task name {obj.name!r} in {m.name}"
                )
            specs[obj.name] = obj
    return specs


def load_pipeline(tasks_pkg: str = "src.tasks") -> Pipeline:
    return Pipeline(tasks=discover_tasks(tasks_pkg).values(), name="site")


@app.command("list")
def list_tasks():
    """List registered tasks."""
    try:
        pipe = load_pipeline()
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)
    typer.echo("Registered tasks:")
    for name in sorted(pipe.tasks):
        spec = pipe.tasks[name]
        typer.echo(f"- {name}" + (f": {spec.description}" if spec.description else ""))


@app.command()
def run(
    name: str = typer.Argument(..., help="Task name to run (e.g. build, serve)"),
    config: str = typer.Option("configs/base.yaml", help="Path to YAML config"),
    log_file: str = typer.Option("", help="Also write logs to this file"),
):
    """Run a task and everything it depends on."""
    if log_file:
        attach_file_handler(Path(log_file))
    try:
        pipe = load_pipeline()
        spec = pipe.resolve(name)
        cfg = load_config(config)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    log.warning("Build mode: %s", "PRODUCTION" if cfg.is_production else "DEVELOPMENT")
    try:
        result = pipe.run(spec, cfg)
    except ConfigurationError as e:
        log.error("Configuration error: %s", e)
        raise typer.Exit(code=EXIT_CONFIG)
    except OrchestratorError as e:
        log.error("Task %s failed: %s", name, e)
        raise typer.Exit(code=EXIT_FAILED)
    except KeyboardInterrupt:
        log.info("Interrupted")
        raise typer.Exit(code=130)

    if result.warnings:
        log.warning(
            "Task %s finished with %d tool warning(s):\n  %s",
            name,
            len(result.warnings),
            "\n  ".join(result.warnings),
        )
    else:
        log.info("Task %s finished in %.2fs", name, result.seconds)


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
