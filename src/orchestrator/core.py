from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional, Union

from .config import BuildConfig
from .errors import ConfigurationError, ToolError
from .logging import get_logger, tool_logger


ACTION = "action"
SERIES = "series"
PARALLEL = "parallel"


@dataclass(frozen=True, eq=False)
class TaskSpec:
    """Handle for a registered unit of work.

    Leaf tasks carry `fn`; compositions carry `children` and run them either
    one after another (series) or concurrently (parallel). Handles compare by
    identity, so two different tasks can never alias each other by name.
    """

    name: str
    fn: Optional[Callable[["RunContext"], None]] = None
    kind: str = ACTION
    children: tuple["TaskSpec", ...] = ()
    description: str = ""

    def __repr__(self) -> str:
        return f"TaskSpec({self.name!r}, kind={self.kind})"


@dataclass
class TaskResult:
    name: str
    status: str = "ok"
    seconds: float = 0.0
    warnings: list[str] = field(default_factory=list)


def task(name: str):
    """Decorator to declare a leaf task.

    The wrapped function receives a single `RunContext` and returns nothing.
    The decorator returns the `TaskSpec` handle, which compositions and
    watch registrations refer to.
    """

    def deco(fn: Callable[["RunContext"], None]) -> TaskSpec:
        doc = (fn.__doc__ or "").strip().splitlines()
        return TaskSpec(name=name, fn=fn, description=doc[0] if doc else "")

    return deco


def _compose(kind: str, name: str, children: tuple[TaskSpec, ...]) -> TaskSpec:
    if not children:
        raise ConfigurationError(f"{kind} task {name!r} has no children")
    for child in children:
        if not isinstance(child, TaskSpec):
            raise ConfigurationError(
                f"{kind} task {name!r} expects task handles, got {child!r}"
            )
    arrow = " → " if kind == SERIES else " | "
    return TaskSpec(
        name=name,
        kind=kind,
        children=children,
        description=arrow.join(c.name for c in children),
    )


def series(name: str, *children: TaskSpec) -> TaskSpec:
    """Run children strictly left to right."""
    return _compose(SERIES, name, children)


def parallel(name: str, *children: TaskSpec) -> TaskSpec:
    """Run children concurrently; completes once all of them have."""
    return _compose(PARALLEL, name, children)


def _no_reload(path: Optional[str] = None) -> None:
    return None


@dataclass
class RunContext:
    config: BuildConfig
    pipeline: "Pipeline"
    reload: Callable[[Optional[str]], None] = _no_reload
    # names of tasks whose tool failure was tolerated earlier in this run
    tolerated: set[str] = field(default_factory=set)

    def derive(self, **changes) -> "RunContext":
        return RunContext(
            config=replace(self.config, **changes),
            pipeline=self.pipeline,
            reload=self.reload,
            tolerated=self.tolerated,
        )


TaskRef = Union[str, TaskSpec]


class Pipeline:
    def __init__(self, tasks: Iterable[TaskSpec], name: str = "pipeline"):
        self.name = name
        self.tasks: dict[str, TaskSpec] = {}
        for spec in tasks:
            self.register(spec)
        self.validate()
        self.logger = get_logger(f"orchestrator.{self.name}")

    def register(self, spec: TaskSpec) -> TaskSpec:
        existing = self.tasks.get(spec.name)
        if existing is not None and existing is not spec:
            raise ConfigurationError(f"Duplicate task name: {spec.name}")
        self.tasks[spec.name] = spec
        return spec

    def validate(self) -> None:
        for spec in self.tasks.values():
            for child in spec.children:
                if self.tasks.get(child.name) is not child:
                    raise ConfigurationError(
                        f"Task {spec.name!r} references unregistered task {child.name!r}"
                    )

    def resolve(self, ref: TaskRef) -> TaskSpec:
        if isinstance(ref, TaskSpec):
            if self.tasks.get(ref.name) is not ref:
                raise ConfigurationError(f"Task not registered: {ref.name}")
            return ref
        try:
            return self.tasks[ref]
        except KeyError:
            known = ", ".join(sorted(self.tasks))
            raise ConfigurationError(
                f"Unknown task: {ref!r} (known tasks: {known})"
            ) from None

    def run(
        self,
        ref: TaskRef,
        config: BuildConfig,
        reload: Optional[Callable[[Optional[str]], None]] = None,
    ) -> TaskResult:
        """Run a task and everything it composes.

        Raises the first fatal error; tolerated tool failures are reported in
        the returned result's `warnings`.
        """
        spec = self.resolve(ref)
        ctx = RunContext(config=config, pipeline=self, reload=reload or _no_reload)
        self.logger.info("Selected task: %s (%s)", spec.name, spec.description or spec.kind)
        return _Run(self, ctx).start(spec).result()


class _Run:
    """One invocation: every distinct task executes at most once."""

    def __init__(self, pipeline: Pipeline, ctx: RunContext):
        self.pipeline = pipeline
        self.ctx = ctx
        self.futures: dict[str, Future] = {}
        self.lock = threading.Lock()

    def start(self, spec: TaskSpec) -> Future:
        with self.lock:
            existing = self.futures.get(spec.name)
            if existing is not None:
                return existing
            fut: Future = Future()
            self.futures[spec.name] = fut
        fut.set_running_or_notify_cancel()
        try:
            result = self._execute(spec)
        except Exception as e:  # noqa: BLE001
            fut.set_exception(e)
        else:
            fut.set_result(result)
        return fut

    def _execute(self, spec: TaskSpec) -> TaskResult:
        step_logger = get_logger(f"orchestrator.{self.pipeline.name}.{spec.name}")
        started = time.perf_counter()
        if spec.kind == SERIES:
            result = self._series(spec)
        elif spec.kind == PARALLEL:
            result = self._parallel(spec)
        else:
            result = self._action(spec, step_logger)
        result.seconds = time.perf_counter() - started
        step_logger.info("Done: %s [%s] in %.2fs", spec.name, result.status, result.seconds)
        return result

    def _action(self, spec: TaskSpec, step_logger) -> TaskResult:
        step_logger.info("Run: %s", spec.name)
        try:
            spec.fn(self.ctx)
        except ToolError as e:
            if self.ctx.config.fatal_tool_errors:
                raise
            tool_logger(e.tool).error("%s (continuing)", e.detail)
            with self.lock:
                self.ctx.tolerated.add(spec.name)
            return TaskResult(name=spec.name, status="warned", warnings=[str(e)])
        return TaskResult(name=spec.name)

    def _series(self, spec: TaskSpec) -> TaskResult:
        result = TaskResult(name=spec.name)
        for child in spec.children:
            child_result = self.start(child).result()
            result.warnings.extend(child_result.warnings)
        if result.warnings:
            result.status = "warned"
        return result

    def _parallel(self, spec: TaskSpec) -> TaskResult:
        result = TaskResult(name=spec.name)
        with ThreadPoolExecutor(max_workers=len(spec.children)) as pool:
            futures = [
                pool.submit(lambda c: self.start(c).result(), child)
                for child in spec.children
            ]
            wait(futures)
        # Surface the first failure only after every sibling has finished.
        for fut in futures:
            result.warnings.extend(fut.result().warnings)
        if result.warnings:
            result.status = "warned"
        return result
